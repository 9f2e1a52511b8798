"""CLI commands auditing an index image."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from operator_audit.cli.utils import console, fail, load_cli_config, status_icon, with_overrides
from operator_audit.reports.base import BaseReport, OutputFormat
from operator_audit.utils.errors import OperatorAuditError

app = typer.Typer(help="Audit the bundles of an index image.", no_args_is_help=True)

INDEX_IMAGE = typer.Option(..., "--index-image", "-i", help="Index image to audit")
OUTPUT_PATH = typer.Option(None, "--output-path", help="Directory where reports are written")
OUTPUT = typer.Option(OutputFormat.ALL, "--output", "-o", help="Report format (json, xlsx, all)")
DISABLE_SCORECARD = typer.Option(False, "--disable-scorecard", help="Skip the scorecard checks")
DISABLE_VALIDATORS = typer.Option(False, "--disable-validators", help="Skip the bundle validators")
SERVER_MODE = typer.Option(False, "--server-mode", help="Keep pulled images in the local cache")
LABEL = typer.Option(None, "--label", help="Image label to look for")
LABEL_VALUE = typer.Option(None, "--label-value", help="Expected value of --label")
FILTER = typer.Option(None, "--filter", help="Only audit packages whose name contains this text")
LIMIT = typer.Option(None, "--limit", min=0, help="Maximum number of rows to audit")
HEAD_ONLY = typer.Option(False, "--head-only", help="Audit only the heads of the channels")
CONFIG_FILE = typer.Option(None, "--config", "-c", help="Configuration file")


@app.command(name="bundles")
def bundles_cmd(
    index_image: str = INDEX_IMAGE,
    output_path: Optional[str] = OUTPUT_PATH,
    output: OutputFormat = OUTPUT,
    disable_scorecard: bool = DISABLE_SCORECARD,
    disable_validators: bool = DISABLE_VALIDATORS,
    server_mode: bool = SERVER_MODE,
    label: Optional[str] = LABEL,
    label_value: Optional[str] = LABEL_VALUE,
    filter: Optional[str] = FILTER,
    limit: Optional[int] = LIMIT,
    head_only: bool = HEAD_ONLY,
    config_file: Optional[Path] = CONFIG_FILE,
) -> None:
    """
    Audit every bundle of an index image.

    Example:
        operator-audit index bundles --index-image quay.io/operatorhubio/catalog:latest --limit 10
    """
    run_audit("bundles", index_image, output, config_file, locals())


@app.command(name="packages")
def packages_cmd(
    index_image: str = INDEX_IMAGE,
    output_path: Optional[str] = OUTPUT_PATH,
    output: OutputFormat = OUTPUT,
    disable_scorecard: bool = DISABLE_SCORECARD,
    disable_validators: bool = DISABLE_VALIDATORS,
    server_mode: bool = SERVER_MODE,
    label: Optional[str] = LABEL,
    label_value: Optional[str] = LABEL_VALUE,
    filter: Optional[str] = FILTER,
    limit: Optional[int] = LIMIT,
    config_file: Optional[Path] = CONFIG_FILE,
) -> None:
    """
    Audit the packages of an index image from their channel heads.

    Example:
        operator-audit index packages --index-image quay.io/operatorhubio/catalog:latest --output xlsx
    """
    run_audit("packages", index_image, output, config_file, locals())


@app.command(name="channels")
def channels_cmd(
    index_image: str = INDEX_IMAGE,
    output_path: Optional[str] = OUTPUT_PATH,
    output: OutputFormat = OUTPUT,
    filter: Optional[str] = FILTER,
    limit: Optional[int] = LIMIT,
    config_file: Optional[Path] = CONFIG_FILE,
) -> None:
    """
    Audit the upgrade graph of every channel, without pulling bundles.

    Example:
        operator-audit index channels --index-image quay.io/operatorhubio/catalog:latest
    """
    run_audit("channels", index_image, output, config_file, locals())


def run_audit(
    report_type: str,
    index_image: str,
    output: OutputFormat,
    config_file: Optional[Path],
    options: dict,
) -> None:
    """Run an audit with the file configuration overridden by the CLI options."""
    from operator_audit.core.audit import Auditor

    overrides = {
        key: value
        for key, value in options.items()
        if key not in ("index_image", "output", "config_file")
    }
    config = with_overrides(load_cli_config(config_file), **overrides)

    try:
        with console.status(f"Auditing {index_image}..."):
            report = Auditor(config.run).run(report_type, index_image, output)
            written = report.write()
    except OperatorAuditError as e:
        fail(e)

    _print_summary(report)
    for path in written:
        console.print(f"Report written to {path}")


def _print_summary(report: BaseReport) -> None:
    with_issues = sum(1 for column in report.columns if column.audit_errors)

    table = Table(title=f"{report.REPORT_TYPE.capitalize()} report")
    table.add_column("Rows", justify="right")
    table.add_column("Rows with issues", justify="right")
    table.add_column("Status")
    table.add_row(str(len(report.columns)), str(with_issues), status_icon(with_issues == 0))
    console.print(table)
