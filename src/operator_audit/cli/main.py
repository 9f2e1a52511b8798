"""Main CLI entry point for operator-audit."""

import typer
from rich.console import Console

from operator_audit.cli import dashboard, index

app = typer.Typer(
    name="operator-audit",
    help="Audit the operator bundles published in an OLM index image.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

# Register subcommands
app.add_typer(index.app, name="index")
app.command(name="dashboard-index")(dashboard.dashboard_index_cmd)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output"),
) -> None:
    """
    operator-audit: audit the operator bundles of an OLM index image.

    - [bold]index bundles[/bold]: One row per bundle
    - [bold]index packages[/bold]: One row per package, from the channel heads
    - [bold]index channels[/bold]: One row per channel
    - [bold]dashboard-index[/bold]: Generate the index page of published dashboards
    """
    from operator_audit.utils.logging import configure_logging

    if verbose:
        configure_logging(level="DEBUG")
    elif quiet:
        configure_logging(level="WARNING")
    else:
        configure_logging(level="INFO")


@app.command()
def version() -> None:
    """Show the operator-audit version."""
    from operator_audit import __version__

    console.print(f"operator-audit version {__version__}")


if __name__ == "__main__":
    app()
