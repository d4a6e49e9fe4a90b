"""Resolution of the GCP project a deployment targets."""

from __future__ import annotations

import json

import structlog

from gke_deploy.domain.errors import CredentialParseError


logger = structlog.get_logger(__name__)


def resolve_project(explicit_project: str, credentials_path: str) -> str:
    """Return the explicit project, or the one named in the service-account key."""
    if explicit_project:
        return explicit_project

    logger.info("project_from_credentials", credentials_path=credentials_path)
    return project_from_service_account(credentials_path)


def project_from_service_account(credentials_path: str) -> str:
    """Read `project_id` from a JSON service-account key file."""
    try:
        with open(credentials_path, "rb") as f:
            contents = f.read()
    except OSError as exc:
        raise CredentialParseError(
            f"Could not infer project from credentials: could not open file: {exc}"
        ) from exc

    try:
        account = json.loads(contents)
    except ValueError as exc:
        # JSONDecodeError and UnicodeDecodeError
        raise CredentialParseError(
            f"Could not infer project from credentials: could not decode credentials file: {exc}"
        ) from exc

    project_id = account.get("project_id") if isinstance(account, dict) else None
    if not isinstance(project_id, str) or not project_id:
        raise CredentialParseError(
            "Could not infer project from credentials: no project_id in credentials file"
        )
    return project_id
