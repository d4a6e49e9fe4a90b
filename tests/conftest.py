"""Shared test fixtures."""

from __future__ import annotations

import io
from collections.abc import Callable, Sequence

import pytest

from gke_deploy.config import get_settings, PluginSettings
from gke_deploy.domain.models.command import CommandResult
from gke_deploy.domain.models.deployment import DeploymentConfig, RolloutTarget
from gke_deploy.domain.ports.services import CommandRunner


class FakeCommandRunner(CommandRunner):
    """Recording command runner for testing.

    `fail_on` decides, per invocation, the exit status to report; 0 means
    success.
    """

    def __init__(self, fail_on: Callable[[str, list[str]], int] | None = None) -> None:
        self.calls: list[tuple[str, list[str], str | None]] = []
        self._fail_on = fail_on or (lambda name, args: 0)
        self._stderr = io.StringIO()

    @property
    def stderr(self) -> io.StringIO:
        return self._stderr

    def run(self, name: str, args: Sequence[str]) -> CommandResult:
        return self._record(name, list(args), None)

    def run_with_input(self, input_text: str, name: str, args: Sequence[str]) -> CommandResult:
        return self._record(name, list(args), input_text)

    def _record(self, name: str, args: list[str], input_text: str | None) -> CommandResult:
        self.calls.append((name, args, input_text))
        returncode = self._fail_on(name, args)
        return CommandResult(
            name=name,
            args=args,
            returncode=returncode,
            stderr="error: boom" if returncode else "",
        )

    @property
    def commands(self) -> list[list[str]]:
        return [[name, *args] for name, args, _ in self.calls]


@pytest.fixture(autouse=True)
def clear_settings_cache() -> None:
    """Settings are cached per process; tests change the environment."""
    get_settings.cache_clear()


@pytest.fixture
def runner() -> FakeCommandRunner:
    return FakeCommandRunner()


@pytest.fixture
def plugin_settings() -> PluginSettings:
    return PluginSettings(
        zone="us-central1-a",
        cluster_name="demo",
        credentials_path="/tmp/key.json",
    )


@pytest.fixture
def config() -> DeploymentConfig:
    return DeploymentConfig(
        zone="us-central1-a",
        cluster_name="demo",
        credentials_path="/tmp/key.json",
        vars={"color": "blue"},
    )


@pytest.fixture
def full_config() -> DeploymentConfig:
    return DeploymentConfig(
        zone="us-central1-a",
        cluster_name="demo",
        namespace="My_NS!",
        credentials_path="/tmp/key.json",
        wait_deployments=[RolloutTarget.parse("foo"), RolloutTarget.parse("statefulset/bar")],
        wait_seconds=60,
        build_number="42",
        commit="abc123",
        branch="main",
    )
