"""Validation of raw plugin settings into a DeploymentConfig."""

from __future__ import annotations

import json
from typing import Any, TYPE_CHECKING

from gke_deploy.domain.errors import ConfigValidationError
from gke_deploy.domain.models.deployment import DeploymentConfig, RolloutTarget, check_location


if TYPE_CHECKING:
    from gke_deploy.config import PluginSettings


def validate_config(settings: PluginSettings) -> DeploymentConfig:
    """Check required params and build the immutable run configuration.

    Pure validation: nothing is executed and no file is read.
    """
    check_location(settings.zone, settings.region)

    if not settings.cluster_name:
        raise ConfigValidationError("Missing required param: cluster-name")

    extra_versions = settings.extra_kubectl_versions.split()
    validate_kubectl_version(settings.kubectl_version, extra_versions)

    if settings.wait_seconds < 0:
        raise ConfigValidationError(
            f"Invalid param wait-seconds: {settings.wait_seconds} must not be negative"
        )

    return DeploymentConfig(
        zone=settings.zone,
        region=settings.region,
        cluster_name=settings.cluster_name,
        namespace=settings.namespace,
        project=settings.project,
        credentials_path=settings.credentials_path,
        kubectl_version=settings.kubectl_version,
        extra_kubectl_versions=extra_versions,
        dry_run=settings.dry_run,
        verbose=settings.verbose,
        wait_deployments=parse_wait_deployments(settings.wait_deployments),
        wait_seconds=settings.wait_seconds,
        template_path=settings.kube_template,
        vars=parse_vars(settings.vars),
        expand_env_vars=settings.expand_env_vars,
        record_change_cause=settings.record,
        build_number=settings.drone_build_number,
        commit=settings.drone_commit,
        branch=settings.drone_branch,
        tag=settings.drone_tag,
    )


def validate_kubectl_version(requested: str, available: list[str]) -> None:
    """Ensure a requested kubectl version is installed in the plugin image."""
    if not requested:
        return

    if not available:
        raise ConfigValidationError(
            f"Invalid param: kubectl-version was set to {requested} "
            "but no extra kubectl versions are available"
        )

    if requested not in available:
        raise ConfigValidationError(
            f"Invalid param kubectl-version: {requested} must be one of {', '.join(available)}"
        )


def parse_vars(raw: str) -> dict[str, Any]:
    """Decode the JSON object of template variables."""
    if not raw:
        return {}

    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigValidationError(f"Error parsing vars: {exc}") from exc

    if not isinstance(decoded, dict):
        raise ConfigValidationError("Error parsing vars: expected a JSON object")
    return decoded


def parse_wait_deployments(raw: str) -> list[RolloutTarget]:
    """Parse rollout targets from a JSON array or a comma-separated list."""
    raw = raw.strip()
    if not raw:
        return []

    if raw.startswith("["):
        try:
            specs = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ConfigValidationError(f"Error parsing wait-deployments: {exc}") from exc
        if not all(isinstance(spec, str) for spec in specs):
            raise ConfigValidationError(
                "Error parsing wait-deployments: expected a JSON array of strings"
            )
    else:
        specs = raw.split(",")

    return [RolloutTarget.parse(spec.strip()) for spec in specs if spec.strip()]
