"""Shared utilities for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from operator_audit.utils.config import AuditConfig, load_config
from operator_audit.utils.errors import OperatorAuditError

# Shared console instance
console = Console()


def load_cli_config(config_file: Path | None) -> AuditConfig:
    """Load the configuration file, exiting with status 1 if it is invalid."""
    try:
        return load_config(config_file)
    except OperatorAuditError as e:
        fail(e)


def with_overrides(config: AuditConfig, **overrides: Any) -> AuditConfig:
    """Apply the options given on the command line over the run section.

    Options left unset (None or False) keep the value from the file.
    """
    update = {key: value for key, value in overrides.items() if value is not None and value is not False}
    return config.model_copy(update={"run": config.run.model_copy(update=update)})


def fail(error: OperatorAuditError) -> NoReturn:
    """Print an error and exit with status 1."""
    console.print(f"[red]Error:[/red] {escape(error.message)}")
    for key, value in error.details.items():
        console.print(f"  {key}: {escape(str(value))}")
    raise typer.Exit(1)


def status_icon(success: bool) -> str:
    return "[green]OK[/green]" if success else "[red]FAIL[/red]"
