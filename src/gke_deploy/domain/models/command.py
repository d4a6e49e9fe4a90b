"""External command result model."""

from __future__ import annotations

import shlex

from pydantic import Field

from gke_deploy.domain.models.base import ValueObject


# Exit status used by coreutils `timeout` when the wrapped command timed out.
TIMEOUT_EXIT_CODE = 124


class CommandResult(ValueObject):
    """Outcome of one external command invocation. Never persisted."""

    name: str
    args: list[str] = Field(default_factory=list)
    returncode: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str = ""  # set when the process could not be spawned

    @property
    def success(self) -> bool:
        return not self.error and self.returncode == 0

    @property
    def timed_out(self) -> bool:
        return self.returncode == TIMEOUT_EXIT_CODE

    @property
    def command_line(self) -> str:
        return shlex.join([self.name, *self.args])

    def describe_failure(self) -> str:
        if self.error:
            return self.error
        return f"exit status {self.returncode}"
