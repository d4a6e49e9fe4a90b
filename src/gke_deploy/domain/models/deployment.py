"""Deployment configuration and pipeline models."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field, model_validator

from gke_deploy.domain.errors import ConfigValidationError
from gke_deploy.domain.models.base import ValueObject


KUBECTL_CMD_NAME = "kubectl"
DEFAULT_ROLLOUT_KIND = "deployment"


class Stage(str, Enum):
    """Deployment pipeline stages, in execution order."""

    AUTHENTICATE = "authenticate"
    FETCH_CREDENTIALS = "fetch_credentials"
    RENDER_TEMPLATE = "render_template"
    CHECK_TOOL_VERSION = "check_tool_version"
    ENSURE_NAMESPACE = "ensure_namespace"
    VALIDATE = "validate"
    APPLY = "apply"
    WAIT_ROLLOUT = "wait_rollout"
    DONE = "done"
    FAILED = "failed"


class RolloutTarget(ValueObject):
    """A kind/name reference passed to `kubectl rollout status`."""

    kind: str = DEFAULT_ROLLOUT_KIND
    name: str

    @classmethod
    def parse(cls, spec: str) -> RolloutTarget:
        """Parse a user-supplied target, defaulting the kind to deployment."""
        if "/" not in spec:
            return cls(name=spec)
        kind, name = spec.split("/", 1)
        return cls(kind=kind, name=name)

    def __str__(self) -> str:
        return f"{self.kind}/{self.name}"


class DeploymentConfig(ValueObject):
    """Validated, immutable configuration for a single deployment run."""

    zone: str = ""
    region: str = ""
    cluster_name: str
    namespace: str = ""
    project: str = ""
    credentials_path: str = ""
    kubectl_version: str = ""
    extra_kubectl_versions: list[str] = Field(default_factory=list)
    dry_run: bool = False
    verbose: bool = False
    wait_deployments: list[RolloutTarget] = Field(default_factory=list)
    wait_seconds: int = Field(default=0, ge=0)
    template_path: str = ".kube.yml"
    vars: dict[str, Any] = Field(default_factory=dict)
    expand_env_vars: bool = False
    record_change_cause: bool = True

    # Drone metadata
    build_number: str = ""
    commit: str = ""
    branch: str = ""
    tag: str = ""

    @model_validator(mode="after")
    def exactly_one_location(self) -> DeploymentConfig:
        check_location(self.zone, self.region)
        return self

    @property
    def location(self) -> str:
        return self.zone or self.region

    @property
    def location_flag(self) -> str:
        return "--zone" if self.zone else "--region"

    @property
    def kubectl_cmd(self) -> str:
        """Name of the kubectl binary, honouring a requested version suffix."""
        if self.kubectl_version:
            return f"{KUBECTL_CMD_NAME}.{self.kubectl_version}"
        return KUBECTL_CMD_NAME


def check_location(zone: str, region: str) -> None:
    """A cluster is addressed by exactly one of zone or region."""
    if not zone and not region:
        raise ConfigValidationError(
            "Missing required param: at least one of region or zone must be specified"
        )
    if zone and region:
        raise ConfigValidationError(
            "Invalid params: at most one of region or zone may be specified"
        )
