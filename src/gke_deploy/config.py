"""Plugin configuration using pydantic-settings.

Values come from the environment Drone prepares for a plugin step
(``PLUGIN_*`` for step settings, ``DRONE_*`` for build metadata). Command
line options given to :mod:`gke_deploy.main` override them.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class ObservabilitySettings(BaseSettings):
    """Logging configuration."""

    log_level: str = Field(default="INFO", alias="PLUGIN_LOG_LEVEL")
    json_logs: bool = Field(default=False, alias="PLUGIN_JSON_LOGS")

    model_config = {"extra": "ignore", "populate_by_name": True}


class PluginSettings(BaseSettings):
    """Raw deployment settings, validated later by the config resolver."""

    dry_run: bool = Field(default=False, alias="PLUGIN_DRY_RUN")
    verbose: bool = Field(default=False, alias="PLUGIN_VERBOSE")
    project: str = Field(default="", alias="PLUGIN_PROJECT")
    zone: str = Field(default="", alias="PLUGIN_ZONE")
    region: str = Field(default="", alias="PLUGIN_REGION")
    cluster_name: str = Field(default="", alias="PLUGIN_CLUSTER_NAME")
    namespace: str = Field(default="", alias="PLUGIN_NAMESPACE")
    kube_template: str = Field(default=".kube.yml", alias="PLUGIN_TEMPLATE")
    vars: str = Field(default="", alias="PLUGIN_VARS")
    expand_env_vars: bool = Field(default=False, alias="PLUGIN_EXPAND_ENV_VARS")
    wait_deployments: str = Field(default="", alias="PLUGIN_WAIT_DEPLOYMENTS")
    wait_seconds: int = Field(default=0, alias="PLUGIN_WAIT_SECONDS")
    kubectl_version: str = Field(default="", alias="PLUGIN_KUBECTL_VERSION")
    record: bool = Field(default=True, alias="PLUGIN_RECORD")

    # Provided by the plugin image / CI runtime, never by step settings
    extra_kubectl_versions: str = Field(default="", alias="EXTRA_KUBECTL_VERSIONS")
    credentials_path: str = Field(default="", alias="GOOGLE_APPLICATION_CREDENTIALS")

    drone_build_number: str = Field(default="", alias="DRONE_BUILD_NUMBER")
    drone_commit: str = Field(default="", alias="DRONE_COMMIT")
    drone_branch: str = Field(default="", alias="DRONE_BRANCH")
    drone_tag: str = Field(default="", alias="DRONE_TAG")

    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    model_config = {"env_prefix": "", "extra": "ignore", "populate_by_name": True}


@lru_cache
def get_settings() -> PluginSettings:
    """Get cached plugin settings."""
    return PluginSettings()
