"""Narrow interface for running external commands."""

from __future__ import annotations

import subprocess
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field

from operator_audit.utils.errors import CommandError
from operator_audit.utils.logging import get_logger

logger = get_logger(__name__)


class CommandResult(BaseModel):
    """Captured outcome of one external command."""

    model_config = {"frozen": True}

    command: list[str] = Field(description="Program followed by its arguments")
    returncode: int = Field(description="Exit status")
    stdout: str = Field(default="", description="Captured standard output")
    stderr: str = Field(default="", description="Captured standard error")

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def check(self) -> "CommandResult":
        """Return self, or raise CommandError if the command failed."""
        if not self.ok:
            raise CommandError(self.command, self.returncode, self.stderr or self.stdout)
        return self


@runtime_checkable
class CommandExecutor(Protocol):
    """Protocol for running external programs.

    Everything the audit needs from the container runtime, tar, opm and
    operator-sdk goes through this single method, so tests can substitute
    a fake that replays canned results.

    Example:
        class EchoExecutor:
            def run(self, name, args, timeout=None):
                return CommandResult(command=[name, *args], returncode=0, stdout=" ".join(args))
    """

    def run(self, name: str, args: list[str], timeout: float | None = None) -> CommandResult:
        """Run a named command and capture its output.

        Args:
            name: Program to run
            args: Arguments passed to the program
            timeout: Seconds to wait before giving up (None waits forever)

        Returns:
            The captured result. Failures are reported through the exit
            status, never raised.
        """
        ...


class SubprocessExecutor:
    """Runs commands with subprocess.

    A program that cannot be found yields exit status 127 and a command
    that exceeds its timeout yields 124, mirroring what a shell reports.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._timeout = timeout

    def run(self, name: str, args: list[str], timeout: float | None = None) -> CommandResult:
        command = [name, *args]
        effective_timeout = timeout if timeout is not None else self._timeout
        logger.debug("running command: %s", " ".join(command))

        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=effective_timeout,
            )
        except FileNotFoundError:
            return CommandResult(
                command=command,
                returncode=127,
                stderr=f"{name}: command not found",
            )
        except subprocess.TimeoutExpired:
            return CommandResult(
                command=command,
                returncode=124,
                stderr=f"{name}: timed out after {effective_timeout}s",
            )

        result = CommandResult(
            command=command,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
        if not result.ok:
            logger.debug("command %s exited with %d: %s", name, result.returncode, result.stderr.strip())
        return result
