"""Deployment orchestration pipeline.

A run renders the manifest, then drives the command runner through an ordered
list of stages. Every stage function shares the same shape
``(config, project, manifest, runner) -> None`` and raises a
:class:`~gke_deploy.domain.errors.DeployError` on failure. The first failure
halts the run; nothing already done is compensated.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import TextIO

import structlog

from gke_deploy.domain.errors import DeployError, ExternalCommandError, RolloutTimeoutError
from gke_deploy.domain.models.command import CommandResult
from gke_deploy.domain.models.deployment import DeploymentConfig, Stage
from gke_deploy.domain.ports.services import CommandRunner
from gke_deploy.domain.services.namespace import namespace_manifest, sanitize
from gke_deploy.domain.services.template_renderer import build_template_data, dump_data, render


logger = structlog.get_logger(__name__)

GCLOUD_CMD = "gcloud"
TIMEOUT_CMD = "timeout"

StageFn = Callable[[DeploymentConfig, str, str, CommandRunner], None]


# ----------------------------------------------------------------------
# Command construction
# ----------------------------------------------------------------------


def apply_command(config: DeploymentConfig, dry_run: bool) -> tuple[str, list[str]]:
    """Build `kubectl apply`, reading the manifest from stdin."""
    args = ["apply"]
    if config.record_change_cause:
        args.append("--record")
    if dry_run:
        args.append("--dry-run=client")
    args.extend(["-f", "-"])
    return config.kubectl_cmd, args


def cluster_context(config: DeploymentConfig, project: str) -> str:
    """Name of the kubectl context written by `gcloud container clusters get-credentials`."""
    return "_".join(["gke", project, config.location, config.cluster_name])


def _check(result: CommandResult) -> CommandResult:
    if not result.success:
        raise ExternalCommandError(result)
    return result


def print_trimmed_error(stderr: str, dest: TextIO) -> None:
    """Write the last line of a command's stderr to `dest`."""
    lines = stderr.strip().splitlines()
    if lines:
        dest.write(lines[-1] + "\n")


# ----------------------------------------------------------------------
# Stages
# ----------------------------------------------------------------------


def authenticate(
    config: DeploymentConfig, project: str, manifest: str, runner: CommandRunner
) -> None:
    _check(runner.run(
        GCLOUD_CMD,
        ["auth", "activate-service-account", "--key-file", config.credentials_path],
    ))


def fetch_credentials(
    config: DeploymentConfig, project: str, manifest: str, runner: CommandRunner
) -> None:
    args = [
        "container", "clusters", "get-credentials", config.cluster_name,
        "--project", project,
        config.location_flag, config.location,
    ]
    _check(runner.run(GCLOUD_CMD, args))


def check_tool_version(
    config: DeploymentConfig, project: str, manifest: str, runner: CommandRunner
) -> None:
    _check(runner.run(config.kubectl_cmd, ["version"]))


def ensure_namespace(
    config: DeploymentConfig, project: str, manifest: str, runner: CommandRunner
) -> None:
    """Point the cluster context at the namespace and make sure it exists.

    The namespace is applied rather than created so an existing namespace is
    not an error.
    """
    if not config.namespace:
        return

    namespace = sanitize(config.namespace)
    logger.info("configuring_namespace", namespace=namespace)
    _check(runner.run(
        config.kubectl_cmd,
        ["config", "set-context", cluster_context(config, project), "--namespace", namespace],
    ))

    logger.info("ensuring_namespace", namespace=namespace)
    cmd, args = apply_command(config, config.dry_run)
    _check(runner.run_with_input(namespace_manifest(namespace), cmd, args))


def validate_manifest(
    config: DeploymentConfig, project: str, manifest: str, runner: CommandRunner
) -> None:
    """Apply with a forced dry-run to catch manifest errors before touching the cluster.

    Skipped for dry runs: the apply stage is then itself the only dry-run pass.
    """
    if config.dry_run:
        return

    logger.info("validating_manifest")
    cmd, args = apply_command(config, dry_run=True)
    result = runner.run_with_input(manifest, cmd, args)
    if not result.success:
        logger.error(
            "manifest_validation_failed",
            stdout=result.stdout,
            stderr=result.stderr,
        )
        print_trimmed_error(result.stderr, runner.stderr)
        raise ExternalCommandError(result)


def apply_manifest(
    config: DeploymentConfig, project: str, manifest: str, runner: CommandRunner
) -> None:
    logger.info("applying_manifest", dry_run=config.dry_run)
    cmd, args = apply_command(config, config.dry_run)
    result = runner.run_with_input(manifest, cmd, args)
    if not result.success:
        raise ExternalCommandError(
            result,
            f"Error (kubectl output redacted): {result.command_line} failed: "
            f"{result.describe_failure()}",
        )


def wait_for_rollout(
    config: DeploymentConfig, project: str, manifest: str, runner: CommandRunner
) -> None:
    """Block on `kubectl rollout status` for each target, strictly in order."""
    total = len(config.wait_deployments)
    namespace = sanitize(config.namespace) if config.namespace else ""

    for position, target in enumerate(config.wait_deployments, start=1):
        progress = f"{position}/{total}" if total > 1 else ""
        logger.info("waiting_for_rollout", target=str(target), progress=progress)

        name = config.kubectl_cmd
        args = ["rollout", "status", str(target)]
        if namespace:
            args.extend(["--namespace", namespace])

        if config.wait_seconds:
            args = [str(config.wait_seconds), name, *args]
            name = TIMEOUT_CMD

        result = runner.run(name, args)
        if result.success:
            continue

        if config.wait_seconds and result.timed_out:
            raise RolloutTimeoutError(
                result,
                f"Rollout of {target} did not complete within {config.wait_seconds}s",
            )
        raise ExternalCommandError(result)


PIPELINE: list[tuple[Stage, StageFn]] = [
    (Stage.AUTHENTICATE, authenticate),
    (Stage.FETCH_CREDENTIALS, fetch_credentials),
    (Stage.CHECK_TOOL_VERSION, check_tool_version),
    (Stage.ENSURE_NAMESPACE, ensure_namespace),
    (Stage.VALIDATE, validate_manifest),
    (Stage.APPLY, apply_manifest),
    (Stage.WAIT_ROLLOUT, wait_for_rollout),
]


class DeploymentOrchestrator:
    """Sequences the deployment pipeline against an injected command runner."""

    def __init__(
        self,
        config: DeploymentConfig,
        runner: CommandRunner,
        stages: Sequence[tuple[Stage, StageFn]] = PIPELINE,
    ) -> None:
        self._config = config
        self._runner = runner
        self._stages = list(stages)
        self._history: list[Stage] = []

    @property
    def history(self) -> list[Stage]:
        """Stages reached by the latest run, ending in DONE or FAILED."""
        return list(self._history)

    def deploy(
        self,
        project: str,
        template_text: str,
        environ: Mapping[str, str] | None = None,
    ) -> list[Stage]:
        """Render the manifest, then run every command stage.

        Rendering happens before any command so that a shadowed var or a
        missing template key never reaches the cluster.
        """
        self._history = []
        try:
            data = build_template_data(self._config, project, environ)
            if self._config.verbose:
                dump_data("variables_available_for_all_templates", data)
            manifest = render(template_text, data)
        except DeployError as exc:
            self._fail(Stage.RENDER_TEMPLATE, exc)
            raise

        if self._config.verbose:
            logger.info("rendered_manifest", manifest=manifest)

        self._history.append(Stage.RENDER_TEMPLATE)
        return self._run_stages(project, manifest)

    def run(self, project: str, manifest: str) -> list[Stage]:
        """Execute the command stages in order, halting on the first failure."""
        self._history = []
        return self._run_stages(project, manifest)

    def _run_stages(self, project: str, manifest: str) -> list[Stage]:
        for stage, stage_fn in self._stages:
            logger.debug("stage_started", stage=stage.value)
            try:
                stage_fn(self._config, project, manifest, self._runner)
            except DeployError as exc:
                self._fail(stage, exc)
                raise
            self._history.append(stage)

        self._history.append(Stage.DONE)
        logger.info("deployment_completed", cluster=self._config.cluster_name)
        return self.history

    def _fail(self, stage: Stage, exc: DeployError) -> None:
        exc.stage = stage
        self._history.append(Stage.FAILED)
        logger.error("stage_failed", stage=stage.value, error=str(exc))
