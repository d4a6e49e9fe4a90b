"""Plugin entrypoint.

Usage::

    cat .kube.yml | gke-deploy --zone us-central1-a --cluster-name demo

Every option falls back to the environment variable Drone sets for the
matching plugin setting (see :mod:`gke_deploy.config`).
"""

from __future__ import annotations

import os
import sys
from importlib.metadata import PackageNotFoundError, version as package_version
from typing import Any

import structlog
import typer
from pydantic import ValidationError

from gke_deploy.config import get_settings, PluginSettings
from gke_deploy.domain.errors import ConfigValidationError, DeployError
from gke_deploy.domain.services.config_resolver import validate_config
from gke_deploy.domain.services.deployment_service import DeploymentOrchestrator
from gke_deploy.domain.services.project_resolver import resolve_project
from gke_deploy.domain.services.template_renderer import read_template
from gke_deploy.infrastructure.observability.logging import setup_logging
from gke_deploy.infrastructure.process.runner import SubprocessCommandRunner


logger = structlog.get_logger(__name__)

app = typer.Typer(
    help="Deploy a templated Kubernetes manifest to a GKE cluster from a Drone step.",
    add_completion=False,
)


def get_version() -> str:
    try:
        return package_version("gke-deploy")
    except PackageNotFoundError:
        return "x.x.x"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"gke-deploy {get_version()}")
        raise typer.Exit()


@app.command()
def main(
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Do not apply the Kubernetes manifests to the API server"),
    verbose: bool = typer.Option(
        False, "--verbose", help="Dump available vars and the generated manifest, keeping secrets hidden"),
    project: str | None = typer.Option(
        None, "--project", help="GCP project name (default: interpreted from JSON credentials)"),
    zone: str | None = typer.Option(
        None, "--zone", help="Zone of the container cluster"),
    region: str | None = typer.Option(
        None, "--region", help="Region of the container cluster"),
    cluster_name: str | None = typer.Option(
        None, "--cluster-name", help="Name of the container cluster"),
    namespace: str | None = typer.Option(
        None, "--namespace", help="Kubernetes namespace to operate in"),
    kube_template: str | None = typer.Option(
        None, "--kube-template", help="Template for Kubernetes resources, e.g. Deployments"),
    vars_json: str | None = typer.Option(
        None, "--vars", help="Variables to use while templating manifests, in JSON format"),
    expand_env_vars: bool = typer.Option(
        False, "--expand-env-vars", help="Expand environment variables contents on vars"),
    drone_build_number: str | None = typer.Option(
        None, "--drone-build-number", help="Drone build number"),
    drone_commit: str | None = typer.Option(
        None, "--drone-commit", help="Git commit hash"),
    drone_branch: str | None = typer.Option(
        None, "--drone-branch", help="Git branch"),
    drone_tag: str | None = typer.Option(
        None, "--drone-tag", help="Git tag"),
    wait_deployments: list[str] | None = typer.Option(
        None, "--wait-deployments",
        help="Deployment to wait for with kubectl rollout status (repeatable, or a JSON array)"),
    wait_seconds: int | None = typer.Option(
        None, "--wait-seconds", help="Seconds to wait for each rollout before failing the build"),
    kubectl_version: str | None = typer.Option(
        None, "--kubectl-version", help="Version of the kubectl binary to use, e.g. 1.14"),
    no_record: bool = typer.Option(
        False, "--no-record", help="Do not pass --record to kubectl apply"),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Log level (default: INFO)"),
    show_version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit"),
) -> None:
    """Render the manifest piped on stdin and deploy it to a GKE cluster."""
    overrides = {
        "project": project,
        "zone": zone,
        "region": region,
        "cluster_name": cluster_name,
        "namespace": namespace,
        "kube_template": kube_template,
        "vars": vars_json,
        "drone_build_number": drone_build_number,
        "drone_commit": drone_commit,
        "drone_branch": drone_branch,
        "drone_tag": drone_tag,
        "wait_seconds": wait_seconds,
        "kubectl_version": kubectl_version,
    }
    update = {key: value for key, value in overrides.items() if value is not None}
    if dry_run:
        update["dry_run"] = True
    if verbose:
        update["verbose"] = True
    if expand_env_vars:
        update["expand_env_vars"] = True
    if no_record:
        update["record"] = False
    if wait_deployments:
        update["wait_deployments"] = _join_wait_deployments(wait_deployments)

    try:
        settings = load_settings(update)
        observability = settings.observability
        setup_logging(log_level or observability.log_level, observability.json_logs)
        logger.info("gke_deploy_starting", version=get_version(), template=settings.kube_template)

        config = validate_config(settings)
        resolved_project = resolve_project(config.project, config.credentials_path)
        template_text = read_template(sys.stdin)
        runner = SubprocessCommandRunner(env=os.environ)
        DeploymentOrchestrator(config, runner).deploy(resolved_project, template_text)
    except DeployError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc


def load_settings(update: dict[str, Any]) -> PluginSettings:
    """Read settings from the environment and apply the command-line overrides."""
    try:
        return get_settings().model_copy(update=update)
    except ValidationError as exc:
        raise ConfigValidationError(f"Invalid configuration: {exc}") from exc


def _join_wait_deployments(values: list[str]) -> str:
    # A single value may already be a JSON array or a comma-separated list
    if len(values) == 1:
        return values[0]
    return ",".join(values)


if __name__ == "__main__":
    app()
