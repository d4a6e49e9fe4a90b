"""Unit tests for configuration validation."""

from __future__ import annotations

import pytest

from gke_deploy.config import PluginSettings
from gke_deploy.domain.errors import ConfigValidationError
from gke_deploy.domain.models.deployment import RolloutTarget
from gke_deploy.domain.services.config_resolver import (
    parse_vars,
    parse_wait_deployments,
    validate_config,
    validate_kubectl_version,
)


def _settings(**overrides: object) -> PluginSettings:
    values: dict[str, object] = {"zone": "us-central1-a", "cluster_name": "demo"}
    values.update(overrides)
    return PluginSettings(**values)


class TestLocationExclusivity:
    def test_zone_only(self) -> None:
        config = validate_config(_settings(zone="us-central1-a", region=""))
        assert config.zone == "us-central1-a"

    def test_region_only(self) -> None:
        config = validate_config(_settings(zone="", region="us-central1"))
        assert config.region == "us-central1"

    def test_neither(self) -> None:
        with pytest.raises(ConfigValidationError, match="at least one of region or zone"):
            validate_config(_settings(zone="", region=""))

    def test_both(self) -> None:
        with pytest.raises(ConfigValidationError, match="at most one of region or zone"):
            validate_config(_settings(zone="us-central1-a", region="us-central1"))


class TestClusterName:
    def test_missing(self) -> None:
        with pytest.raises(ConfigValidationError, match="cluster-name"):
            validate_config(_settings(cluster_name=""))

    def test_exclusivity_checked_first(self) -> None:
        with pytest.raises(ConfigValidationError, match="region or zone"):
            validate_config(_settings(zone="", cluster_name=""))


class TestKubectlVersion:
    def test_default_version_needs_no_allow_list(self) -> None:
        validate_kubectl_version("", [])

    def test_no_extra_versions_available(self) -> None:
        with pytest.raises(ConfigValidationError, match="no extra kubectl versions"):
            validate_kubectl_version("1.14", [])

    def test_unknown_version(self) -> None:
        with pytest.raises(ConfigValidationError, match="must be one of 1.13, 1.15"):
            validate_kubectl_version("1.14", ["1.13", "1.15"])

    def test_known_version(self) -> None:
        validate_kubectl_version("1.14", ["1.13", "1.14"])

    def test_allow_list_from_settings(self) -> None:
        config = validate_config(
            _settings(kubectl_version="1.14", extra_kubectl_versions="1.13 1.14")
        )
        assert config.kubectl_cmd == "kubectl.1.14"
        assert config.extra_kubectl_versions == ["1.13", "1.14"]

    def test_rejected_via_settings(self) -> None:
        with pytest.raises(ConfigValidationError, match="unsupported|must be one of"):
            validate_config(_settings(kubectl_version="1.99", extra_kubectl_versions="1.13"))


class TestParseVars:
    def test_empty(self) -> None:
        assert parse_vars("") == {}

    def test_object(self) -> None:
        assert parse_vars('{"color": "blue", "replicas": 3}') == {"color": "blue", "replicas": 3}

    def test_malformed(self) -> None:
        with pytest.raises(ConfigValidationError, match="Error parsing vars"):
            parse_vars("{not json")

    def test_not_an_object(self) -> None:
        with pytest.raises(ConfigValidationError, match="JSON object"):
            parse_vars('["a"]')


class TestParseWaitDeployments:
    def test_empty(self) -> None:
        assert parse_wait_deployments("") == []

    def test_json_array_keeps_order(self) -> None:
        targets = parse_wait_deployments('["foo", "bar/baz", "api"]')
        assert [str(t) for t in targets] == ["deployment/foo", "bar/baz", "deployment/api"]

    def test_comma_separated(self) -> None:
        targets = parse_wait_deployments("foo, statefulset/db")
        assert targets == [RolloutTarget.parse("foo"), RolloutTarget.parse("statefulset/db")]

    def test_malformed_json(self) -> None:
        with pytest.raises(ConfigValidationError):
            parse_wait_deployments('["foo"')

    def test_non_string_entries(self) -> None:
        with pytest.raises(ConfigValidationError, match="array of strings"):
            parse_wait_deployments("[1, 2]")


class TestValidateConfig:
    def test_builds_full_config(self) -> None:
        config = validate_config(
            _settings(
                namespace="staging",
                vars='{"color": "blue"}',
                wait_deployments='["web"]',
                wait_seconds=30,
                dry_run=True,
                drone_build_number="7",
                drone_commit="abc",
                drone_branch="main",
                drone_tag="v1",
                record=False,
            )
        )
        assert config.namespace == "staging"
        assert config.vars == {"color": "blue"}
        assert [str(t) for t in config.wait_deployments] == ["deployment/web"]
        assert config.wait_seconds == 30
        assert config.dry_run is True
        assert config.build_number == "7"
        assert config.tag == "v1"
        assert config.record_change_cause is False

    def test_negative_wait_seconds(self) -> None:
        with pytest.raises(ConfigValidationError, match="wait-seconds"):
            validate_config(_settings(wait_seconds=-5))
