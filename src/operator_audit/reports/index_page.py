"""Static HTML page linking to the published dashboards of every catalog."""

from __future__ import annotations

from pathlib import Path

import jinja2
from pydantic import BaseModel, Field

from operator_audit.utils.errors import ReportError
from operator_audit.utils.logging import get_logger

logger = get_logger(__name__)

TEMPLATE_NAME = "index.html.j2"
PAGE_TITLE = "Operator Catalog Audit Dashboards"
UNKNOWN_KIND = "UNKNOWN"
DEPRECATED_KIND = "Deprecated API(s) in 1.22/OCP 4.9"
GRADE_KIND = "Grade - Experimental"


class ReportLink(BaseModel):
    """A dashboard file of a catalog."""

    model_config = {"frozen": True}

    path: str = Field(description="Link target, relative to the page")
    name: str = Field(description="Display name")
    kind: str = Field(default=UNKNOWN_KIND, description="Dashboard kind")


class DashboardPerCatalog(BaseModel):
    """The dashboards published for one catalog image."""

    model_config = {"frozen": True}

    name: str = Field(description="Catalog image path")
    reports: list[ReportLink] = Field(default_factory=list)


def dashboard_kind(file_name: str) -> str:
    if "deprecate" in file_name:
        return DEPRECATED_KIND
    if "grade" in file_name:
        return GRADE_KIND
    return UNKNOWN_KIND


def dashboard_tag(file_name: str) -> str:
    """Tag encoded in a dashboard file name (`..._v4.9_...`), else latest."""
    if "v" not in file_name:
        return "latest"
    return file_name.split("v")[1].split("_")[0]


def collect_dashboards(
    root: Path | str,
    reports_path: str,
    catalogs: dict[str, str],
) -> list[DashboardPerCatalog]:
    """Find the dashboards of every configured catalog.

    Args:
        root: Directory the page is generated in
        reports_path: Reports tree, relative to root
        catalogs: Report directory name -> catalog image path

    Returns:
        One entry per catalog whose dashboards directory exists, sorted by
        catalog image path
    """
    root = Path(root)
    dashboards = []
    for directory, image in catalogs.items():
        walk_root = root / reports_path / directory / "dashboards"
        if not walk_root.is_dir():
            continue

        reports = []
        for path in walk_root.rglob("*"):
            if not path.is_file() or not path.name.endswith("html"):
                continue
            kind = dashboard_kind(path.name)
            reports.append(
                ReportLink(
                    path=(Path(reports_path) / directory / "dashboards" / path.relative_to(walk_root)).as_posix(),
                    name=f"[{kind}] - Tag: {dashboard_tag(path.name)}",
                    kind=kind,
                )
            )
        reports.sort(key=lambda r: r.name)
        dashboards.append(DashboardPerCatalog(name=image, reports=reports))

    dashboards.sort(key=lambda d: d.name)
    return dashboards


def render_index_page(
    dashboards: list[DashboardPerCatalog],
    template_dir: Path | str | None = None,
) -> str:
    """Render the page.

    Raises:
        ReportError: If the template cannot be loaded or rendered
    """
    loader = (
        jinja2.FileSystemLoader(str(template_dir))
        if template_dir is not None
        else jinja2.PackageLoader("operator_audit.reports", "templates")
    )
    env = jinja2.Environment(
        loader=loader,
        autoescape=jinja2.select_autoescape(enabled_extensions=("html", "html.j2")),
        trim_blocks=True,
    )
    try:
        template = env.get_template(TEMPLATE_NAME)
        return template.render(title=PAGE_TITLE, dashboards=dashboards)
    except jinja2.TemplateError as e:
        raise ReportError(f"unable to render {TEMPLATE_NAME}: {e}")


def generate_index_page(
    root: Path | str,
    reports_path: str,
    catalogs: dict[str, str],
    template_dir: Path | str | None = None,
) -> Path:
    """Write `<root>/index.html`, replacing any previous page.

    Raises:
        ReportError: If the page cannot be rendered or written
    """
    root = Path(root)
    dashboards = collect_dashboards(root, reports_path, catalogs)
    content = render_index_page(dashboards, template_dir)

    index_path = root / "index.html"
    try:
        index_path.unlink(missing_ok=True)
        index_path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ReportError(f"unable to write {index_path}: {e}", path=str(index_path))

    logger.info("index page written to %s with %d catalogs", index_path, len(dashboards))
    return index_path
