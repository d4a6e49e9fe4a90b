"""Subprocess-backed command runner."""

from __future__ import annotations

import subprocess
import sys
import threading
from collections.abc import Mapping, Sequence
from typing import IO, TextIO

import structlog

from gke_deploy.domain.models.command import CommandResult
from gke_deploy.domain.ports.services import CommandRunner


logger = structlog.get_logger(__name__)


class SubprocessCommandRunner(CommandRunner):
    """Runs programs with :mod:`subprocess`, blocking until they exit.

    Output is streamed live to the configured streams, so long waits such as
    `kubectl rollout status` show progress in the CI log, and captured at the
    same time so failures can be diagnosed from the :class:`CommandResult`.
    """

    def __init__(
        self,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self._cwd = cwd
        self._env = dict(env) if env is not None else None
        self._stdout = stdout or sys.stdout
        self._stderr = stderr or sys.stderr

    @property
    def stdout(self) -> TextIO:
        return self._stdout

    @property
    def stderr(self) -> TextIO:
        return self._stderr

    def run(self, name: str, args: Sequence[str]) -> CommandResult:
        return self._execute(name, args)

    def run_with_input(self, input_text: str, name: str, args: Sequence[str]) -> CommandResult:
        return self._execute(name, args, input_text=input_text)

    def _execute(
        self, name: str, args: Sequence[str], input_text: str | None = None
    ) -> CommandResult:
        argv = [name, *args]
        logger.debug("command_started", command=name, args=list(args), piped_input=input_text is not None)

        try:
            process = subprocess.Popen(  # noqa: S603
                argv,
                cwd=self._cwd,
                env=self._env,
                stdin=subprocess.PIPE if input_text is not None else None,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except OSError as exc:
            logger.debug("command_spawn_failed", command=name, error=str(exc))
            return CommandResult(name=name, args=list(args), error=str(exc))

        stdout_lines: list[str] = []
        stderr_lines: list[str] = []
        readers = [
            threading.Thread(
                target=_tee, args=(process.stdout, self._stdout, stdout_lines), daemon=True
            ),
            threading.Thread(
                target=_tee, args=(process.stderr, self._stderr, stderr_lines), daemon=True
            ),
        ]
        for reader in readers:
            reader.start()

        if input_text is not None and process.stdin is not None:
            _feed(process.stdin, input_text, name)

        returncode = process.wait()
        for reader in readers:
            reader.join()

        logger.debug("command_finished", command=name, returncode=returncode)
        return CommandResult(
            name=name,
            args=list(args),
            returncode=returncode,
            stdout="".join(stdout_lines),
            stderr="".join(stderr_lines),
        )


def _tee(pipe: IO[str], stream: TextIO, captured: list[str]) -> None:
    """Copy a child's output to `stream` line by line while keeping a copy."""
    with pipe:
        for line in pipe:
            captured.append(line)
            stream.write(line)
            stream.flush()


def _feed(stdin: IO[str], input_text: str, name: str) -> None:
    try:
        with stdin:
            stdin.write(input_text)
    except BrokenPipeError:
        # The program exited before reading all of its input; its exit status reports why.
        logger.debug("command_input_not_consumed", command=name)
