"""Unit tests for plugin configuration."""

from __future__ import annotations

import pytest

from gke_deploy.config import get_settings, ObservabilitySettings, PluginSettings


class TestPluginSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("PLUGIN_ZONE", "PLUGIN_TEMPLATE", "PLUGIN_RECORD", "PLUGIN_DRY_RUN"):
            monkeypatch.delenv(name, raising=False)
        settings = PluginSettings()
        assert settings.zone == ""
        assert settings.kube_template == ".kube.yml"
        assert settings.record is True
        assert settings.dry_run is False
        assert settings.wait_seconds == 0

    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PLUGIN_ZONE", "us-central1-a")
        monkeypatch.setenv("PLUGIN_CLUSTER_NAME", "demo")
        monkeypatch.setenv("PLUGIN_DRY_RUN", "true")
        monkeypatch.setenv("PLUGIN_WAIT_SECONDS", "120")
        monkeypatch.setenv("PLUGIN_VARS", '{"color": "blue"}')
        monkeypatch.setenv("DRONE_COMMIT", "abc123")
        monkeypatch.setenv("EXTRA_KUBECTL_VERSIONS", "1.13 1.14")
        monkeypatch.setenv("GOOGLE_APPLICATION_CREDENTIALS", "/tmp/key.json")

        settings = PluginSettings()
        assert settings.zone == "us-central1-a"
        assert settings.cluster_name == "demo"
        assert settings.dry_run is True
        assert settings.wait_seconds == 120
        assert settings.vars == '{"color": "blue"}'
        assert settings.drone_commit == "abc123"
        assert settings.extra_kubectl_versions == "1.13 1.14"
        assert settings.credentials_path == "/tmp/key.json"

    def test_nested_settings(self) -> None:
        assert isinstance(PluginSettings().observability, ObservabilitySettings)

    def test_get_settings_cached(self) -> None:
        assert get_settings() is get_settings()


class TestObservabilitySettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PLUGIN_LOG_LEVEL", raising=False)
        monkeypatch.delenv("PLUGIN_JSON_LOGS", raising=False)
        settings = ObservabilitySettings()
        assert settings.log_level == "INFO"
        assert settings.json_logs is False
