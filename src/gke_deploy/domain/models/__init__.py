"""Domain models package."""

from gke_deploy.domain.models.base import ValueObject
from gke_deploy.domain.models.command import CommandResult, TIMEOUT_EXIT_CODE
from gke_deploy.domain.models.deployment import (
    DEFAULT_ROLLOUT_KIND,
    DeploymentConfig,
    KUBECTL_CMD_NAME,
    RolloutTarget,
    Stage,
)


__all__ = [
    "CommandResult",
    "DEFAULT_ROLLOUT_KIND",
    "DeploymentConfig",
    "KUBECTL_CMD_NAME",
    "RolloutTarget",
    "Stage",
    "TIMEOUT_EXIT_CODE",
    "ValueObject",
]
