"""CLI command generating the dashboards index page."""

from pathlib import Path
from typing import Optional

import typer

from operator_audit.cli.utils import console, fail, load_cli_config
from operator_audit.utils.errors import OperatorAuditError


def dashboard_index_cmd(
    root: Path = typer.Option(Path("."), "--root", "-r", help="Directory the page is written to"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file"),
) -> None:
    """
    Generate index.html linking to the published dashboards.

    Example:
        operator-audit dashboard-index --root .
    """
    from operator_audit.reports.index_page import generate_index_page

    config = load_cli_config(config_file)
    try:
        path = generate_index_page(root, config.reports_path, config.catalogs)
    except OperatorAuditError as e:
        fail(e)

    console.print(f"Index page written to {path}")
