"""Test resource key addressing."""

import pytest

from resource_tracker.core.addressing import (
    CORE_GROUP,
    api_group,
    normalize_group,
    render_group,
    render_key,
    resource_key,
    resource_key_from_api_version,
    split_key,
)


@pytest.mark.unit
class TestResourceKey:
    def test_core_group_uses_sentinel(self):
        """Test that the empty group is stored as the core sentinel."""
        assert resource_key("", "Pod") == "core_Pod"
        assert resource_key(CORE_GROUP, "Pod") == resource_key("", "Pod")

    def test_named_group(self):
        assert resource_key("apps", "Deployment") == "apps_Deployment"

    def test_version_is_not_part_of_key(self):
        """Test that two versions of the same kind share a key."""
        assert resource_key_from_api_version("apps/v1", "Deployment") == resource_key_from_api_version(
            "apps/v1beta2", "Deployment"
        )
        assert resource_key_from_api_version("v1", "Pod") == "core_Pod"

    @pytest.mark.parametrize(
        "group,kind",
        [
            ("", "ConfigMap"),
            ("apps", "StatefulSet"),
            ("rbac.authorization.k8s.io", "RoleBinding"),
        ],
    )
    def test_render_round_trip(self, group, kind):
        """Test that rendering a key gives back the Kubernetes group and kind."""
        assert render_key(resource_key(group, kind)) == (group, kind)

    def test_split_keeps_sentinel(self):
        assert split_key("core_Secret") == ("core", "Secret")

    def test_split_on_first_separator(self):
        """Test that kinds may contain the separator."""
        assert split_key("example.com_My_Kind") == ("example.com", "My_Kind")

    @pytest.mark.parametrize("key", ["Pod", "_Pod", "apps_", ""])
    def test_split_malformed_key(self, key):
        with pytest.raises(ValueError, match="malformed resource key"):
            split_key(key)


@pytest.mark.unit
class TestGroups:
    def test_api_group_from_api_version(self):
        assert api_group("v1") == ""
        assert api_group("apps/v1") == "apps"
        assert api_group("networking.k8s.io/v1") == "networking.k8s.io"

    def test_normalize_and_render(self):
        assert normalize_group("") == CORE_GROUP
        assert normalize_group("apps") == "apps"
        assert render_group(CORE_GROUP) == ""
        assert render_group("") == ""
        assert render_group("batch") == "batch"
