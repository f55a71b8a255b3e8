"""Main CLI interface using Typer."""

from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from .. import __version__
from ..core import GroupedResourceKinds
from ..core.tracker import ResourceTracker
from ..core.strategies import build_strategy
from ..core.walker import GraphWalker
from ..errors import ConfigurationError
from ..exporters import get_exporter
from ..k8s import ApplicationClient, K8sClient, KubectlGraphEngine
from ..model.application import ArgoApplication
from ..model.config import DEFAULT_ARGOCD_NAMESPACE, DEFAULT_WORKERS, TrackerConfig
from ..model.export import ExportFormat, RelationSource, TrackingMethod
from ..utils.logger import get_logger, set_log_level

# Create CLI app
app = typer.Typer(
    name="argocd-resource-tracker",
    help="Discover the resource kinds Argo CD applications depend on",
    add_completion=True,
)

console = Console()
logger = get_logger(__name__)


def _parse_relation_source(value: str) -> RelationSource:
    try:
        return RelationSource(value)
    except ValueError:
        raise ConfigurationError(
            f"invalid --relation-source: {value} (use 'resourcegraph' or 'graph')"
        )


def _build_config(**settings) -> TrackerConfig:
    try:
        return TrackerConfig(**settings)
    except ValidationError as e:
        raise ConfigurationError(f"invalid configuration: {e}") from e


def _load_applications(
    client: ApplicationClient, app_name: Optional[str], app_namespace: str, all_apps: bool
) -> List[ArgoApplication]:
    if all_apps:
        return client.list_applications(app_namespace)
    return [client.get_application(app_name, app_namespace)]


def _emit(
    grouped: GroupedResourceKinds,
    format: ExportFormat,
    output: Optional[Path],
    as_setting: bool,
) -> None:
    """Print the inclusion document and optionally save it."""
    exporter = get_exporter(format, as_setting=as_setting)
    typer.echo(exporter.render(grouped), nl=False)

    if output:
        exporter.export(grouped, output)
        console.print(f"[green]✓[/green] Resource inclusions written to [cyan]{output}[/cyan]")


def _merge_existing(
    grouped: GroupedResourceKinds, client: ApplicationClient, namespace: str
) -> GroupedResourceKinds:
    """Fold previously recorded inclusions into the discovered ones."""
    document = client.get_resource_inclusions(namespace)
    if not document:
        console.print("[yellow]No existing resource inclusions found[/yellow]")
        return grouped

    existing = GroupedResourceKinds.from_yaml(document)
    merged = GroupedResourceKinds()
    merged.merge(existing)
    merged.merge(grouped)

    if merged == existing:
        console.print("Resource inclusions are [green]up to date[/green]")
    else:
        console.print("Resource inclusions [yellow]changed[/yellow] since the last analysis")
    return merged


@app.command()
def analyze(
    app_name: Optional[str] = typer.Option(
        None, "--app", "-a", help="Application name (required for single app analysis)"
    ),
    all_apps: bool = typer.Option(
        False, "--all-apps", help="Analyze all applications in the namespace"
    ),
    app_namespace: str = typer.Option(
        DEFAULT_ARGOCD_NAMESPACE, "--appNamespace", help="Application namespace"
    ),
    namespace: str = typer.Option(
        DEFAULT_ARGOCD_NAMESPACE, "--namespace", "-n", help="Argo CD namespace"
    ),
    kubeconfig: Optional[str] = typer.Option(
        None, "--kubeconfig", help="Path to kubeconfig file (default: kubectl resolves KUBECONFIG)"
    ),
    relation_source: str = typer.Option(
        RelationSource.RESOURCE_GRAPH.value,
        "--relation-source",
        help="Relationship backend: 'resourcegraph' or 'graph'",
    ),
    tracking_method: TrackingMethod = typer.Option(
        TrackingMethod.LABEL, "--tracking-method", help="Tracking used by Argo CD (graph source)"
    ),
    workers: int = typer.Option(
        DEFAULT_WORKERS,
        "--workers",
        "-w",
        envvar="RESOURCE_TRACKER_WORKERS",
        help="Number of applications analyzed concurrently",
    ),
    strict_destination: bool = typer.Option(
        False,
        "--strict-destination",
        help="Fail an application whose destination cluster cannot be mapped",
    ),
    merge_existing: bool = typer.Option(
        False,
        "--merge-existing",
        help="Merge the inclusions recorded in the resource-relation-lookup ConfigMap",
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Also write the document to this file"
    ),
    format: ExportFormat = typer.Option(
        ExportFormat.YAML, "--format", "-f", help="Output format for the document"
    ),
    loglevel: str = typer.Option(
        "info",
        "--loglevel",
        envvar="RESOURCE_TRACKER_LOGLEVEL",
        help="Set the loglevel to one of trace|debug|info|warn|error",
    ),
):
    """Analyze resource relationships of one or all Argo CD applications."""
    try:
        set_log_level(loglevel)
        if not all_apps and not app_name:
            raise ConfigurationError("either --app or --all-apps must be specified")

        config = _build_config(
            workers=workers,
            argocd_namespace=namespace,
            kubeconfig=kubeconfig,
            relation_source=_parse_relation_source(relation_source),
            tracking_method=tracking_method,
            strict_destination=strict_destination,
        )
        client = K8sClient(kubeconfig=config.kubeconfig, timeout=config.command_timeout)
        app_client = ApplicationClient(client)
        apps = _load_applications(app_client, app_name, app_namespace, all_apps)

        console.print(
            f"analyze: relationSource={config.relation_source.value} "
            f"apps={len(apps)} appNamespace={app_namespace}"
        )

        with ResourceTracker(build_strategy(config, client), workers=config.workers) as tracker:
            result = tracker.analyze(apps)

        if result.fatal_error:
            raise result.fatal_error

        grouped = result.kinds
        if merge_existing:
            grouped = _merge_existing(grouped, app_client, namespace)

        _emit(grouped, format, output, as_setting=True)

        if result.first_error:
            console.print(
                f"{len(result.errors)} of {result.processed} applications failed; first error:"
            )
            console.print(f"[red]Error:[/red] {escape(str(result.first_error))}")
            raise typer.Exit(1)

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command("run-query")
def run_query(
    loglevel: str = typer.Option(
        "info",
        "--loglevel",
        envvar="RESOURCE_TRACKER_LOGLEVEL",
        help="Set the loglevel to one of trace|debug|info|warn|error",
    ),
    kubeconfig: Optional[str] = typer.Option(
        None, "--kubeconfig", help="Full path to kube client configuration (default: KUBECONFIG)"
    ),
    tracking_method: TrackingMethod = typer.Option(
        TrackingMethod.LABEL,
        "--tracking-method",
        help="Either label or annotation tracking used by Argo CD",
    ),
    app_name: str = typer.Option(
        "", "--app-name", help="Only track this application (default: all applications)"
    ),
    app_namespace: str = typer.Option(
        "", "--app-namespace", help="Namespace of the applications (default: all namespaces)"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Also write the document to this file"
    ),
    format: ExportFormat = typer.Option(
        ExportFormat.YAML, "--format", "-f", help="Output format for the document"
    ),
):
    """Query live objects with graph queries to find application dependencies."""
    try:
        set_log_level(loglevel)
        logger.info(f"argocd-resource-tracker {__version__} starting [loglevel:{loglevel.upper()}]")

        client = K8sClient(kubeconfig=kubeconfig)
        apps = ApplicationClient(client).list_applications(app_namespace)
        if app_name:
            apps = [argo_app for argo_app in apps if argo_app.name == app_name][:1]

        openshift = client.supports_api_group("config.openshift.io")
        walker = GraphWalker(KubectlGraphEngine(client), tracking_method, openshift=openshift)

        grouped = GroupedResourceKinds()
        for argo_app in apps:
            logger.info(f"Querying Argo CD application '{argo_app.name}'")
            children = walker.application_children(argo_app.name)
            logger.info(f"Children of Argo CD application '{argo_app.name}': {len(children)}")
            grouped.merge_resource_infos(children)

        logger.debug(
            f"{walker.queries} graph queries issued, {len(walker.visited_kinds)} kinds expanded"
        )
        _emit(grouped, format, output, as_setting=False)

    except Exception as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def version():
    """Show the version."""
    console.print(f"argocd-resource-tracker [cyan]{__version__}[/cyan]")


if __name__ == "__main__":
    app()
