"""Test direct resource extraction."""

import pytest

from resource_tracker.core.addressing import resource_key
from resource_tracker.core.direct import extract_direct_resources


@pytest.mark.unit
class TestExtractDirectResources:
    def test_managed_resources(self, make_app, web_resources):
        direct = extract_direct_resources(make_app("web", resources=web_resources))

        assert direct.keys == {"apps_Deployment"}
        assert len(direct.infos) == 1
        info = direct.infos[0]
        assert (info.group, info.version, info.kind, info.name, info.namespace) == (
            "apps",
            "v1",
            "Deployment",
            "web",
            "default",
        )

    def test_core_resources_use_sentinel(self, make_app):
        app = make_app("web", resources=[{"version": "v1", "kind": "Service", "name": "web"}])

        assert extract_direct_resources(app).keys == {"core_Service"}

    def test_excluded_resource_warning(self, make_app):
        """Test that kinds named in an excluded resource warning become direct keys."""
        app = make_app(
            "rbac",
            conditions=[
                {
                    "type": "ExcludedResourceWarning",
                    "message": "rbac.authorization.k8s.io/RoleBinding my-binding",
                }
            ],
        )

        direct = extract_direct_resources(app)

        assert direct.keys == {resource_key("rbac.authorization.k8s.io", "RoleBinding")}
        assert direct.infos[0].name == "my-binding"
        assert direct.infos[0].version == "v1"

    def test_excluded_core_resource(self, make_app):
        app = make_app(
            "web",
            conditions=[{"type": "ExcludedResourceWarning", "message": "/ConfigMap web-config"}],
        )

        assert extract_direct_resources(app).keys == {"core_ConfigMap"}

    def test_other_conditions_are_ignored(self, make_app):
        app = make_app(
            "web",
            conditions=[
                {"type": "SyncError", "message": "apps/Deployment web failed"},
                {"type": "ExcludedResourceWarning", "message": "nothing to see here"},
            ],
        )

        direct = extract_direct_resources(app)

        assert direct.keys == set()
        assert direct.infos == []

    def test_both_sources_are_combined(self, make_app, web_resources):
        app = make_app(
            "web",
            resources=web_resources,
            conditions=[
                {"type": "ExcludedResourceWarning", "message": "batch/Job migrate-db"}
            ],
        )

        assert extract_direct_resources(app).keys == {"apps_Deployment", "batch_Job"}
