from .cli.main import app

app(prog_name="argocd-resource-tracker")
