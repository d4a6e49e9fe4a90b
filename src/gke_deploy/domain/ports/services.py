"""Service port interfaces (hexagonal architecture)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TextIO

from gke_deploy.domain.models.command import CommandResult


class CommandRunner(ABC):
    """Port for running external programs (gcloud, kubectl, timeout)."""

    @abstractmethod
    def run(self, name: str, args: Sequence[str]) -> CommandResult:
        """Run a program and wait for it to exit."""

    @abstractmethod
    def run_with_input(self, input_text: str, name: str, args: Sequence[str]) -> CommandResult:
        """Run a program with `input_text` written to its stdin, then closed."""

    @property
    @abstractmethod
    def stderr(self) -> TextIO:
        """Stream that receives the programs' standard error and failure summaries."""
