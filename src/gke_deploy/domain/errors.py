"""Deployment error taxonomy.

Every failure the plugin can report derives from :class:`DeployError`. The
pipeline attaches the :class:`~gke_deploy.domain.models.deployment.Stage` in
which the error surfaced so the CLI can report it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from gke_deploy.domain.models.command import CommandResult
    from gke_deploy.domain.models.deployment import Stage


class DeployError(Exception):
    """Base class for all deployment failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.stage: Stage | None = None


class ConfigValidationError(DeployError):
    """Raised when configuration is missing, malformed or contradictory."""


class CredentialParseError(DeployError):
    """Raised when the service-account credentials file cannot be read."""


class TemplateRenderError(DeployError):
    """Raised on a missing template key, a shadowed built-in var or bad input."""


class ExternalCommandError(DeployError):
    """Raised when an external command exits non-zero or cannot be spawned."""

    def __init__(self, result: CommandResult, message: str | None = None) -> None:
        super().__init__(message or f"{result.command_line} failed: {result.describe_failure()}")
        self.result = result


class RolloutTimeoutError(ExternalCommandError):
    """Raised when the timeout wrapping a rollout status check elapses."""
