"""Base report model and shared report helpers."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar

from pydantic import BaseModel, Field

from operator_audit.models.image import DockerInspectManifest
from operator_audit.reports.xlsx import SheetColumn, SheetWriter
from operator_audit.utils.errors import ReportError
from operator_audit.utils.logging import get_logger

logger = get_logger(__name__)


class OutputFormat(str, Enum):
    """Supported output formats."""

    JSON = "json"
    XLSX = "xlsx"
    ALL = "all"


class ReportFlags(BaseModel):
    """Options an audit run was started with."""

    model_config = {"frozen": True}

    index_image: str = Field(description="Index image audited")
    output_path: str = Field(default=".", description="Directory where reports are written")
    output_format: OutputFormat = Field(default=OutputFormat.ALL)
    disable_scorecard: bool = Field(default=False)
    disable_validators: bool = Field(default=False)
    server_mode: bool = Field(default=False)
    label: str | None = Field(default=None)
    label_value: str | None = Field(default=None)
    filter: str | None = Field(default=None)
    limit: int | None = Field(default=None)
    head_only: bool = Field(default=False)


def get_report_name(
    image: str,
    report_type: str,
    extension: str,
    on: date | None = None,
) -> str:
    """Build the file name of a report.

    Args:
        image: Index image reference the report is about
        report_type: Report type tag (bundles, packages, channels)
        extension: File extension without the dot
        on: Date stamped into the name (defaults to today)

    Returns:
        `<report_type>_<image name>_<YYYY-MM-DD>.<extension>`
    """
    on = on or date.today()
    name = image
    for char in "/:@":
        name = name.replace(char, "_")
    return f"{report_type}_{name}_{on.isoformat()}.{extension}"


class BaseReport(BaseModel):
    """A report of one type for one index image.

    Subclasses declare `columns` with their row model and the sheet
    layout in `SHEET_COLUMNS`.
    """

    REPORT_TYPE: ClassVar[str] = ""
    TITLE: ClassVar[str] = ""
    SHEET_COLUMNS: ClassVar[list[SheetColumn]] = []

    columns: list[Any] = Field(default_factory=list)
    flags: ReportFlags
    index_image_inspect: DockerInspectManifest = Field(default_factory=DockerInspectManifest)
    generate_at: datetime = Field(default_factory=datetime.now)

    def report_path(self, extension: str) -> Path:
        return Path(self.flags.output_path) / get_report_name(
            self.flags.index_image,
            self.REPORT_TYPE,
            extension,
            on=self.generate_at.date(),
        )

    def hidden_groups(self) -> set[str]:
        groups = set()
        if self.flags.disable_scorecard:
            groups.add("scorecard")
        if self.flags.disable_validators:
            groups.add("validator")
        return groups

    def write(self) -> list[Path]:
        """Write the report in the formats selected by the flags."""
        written = []
        if self.flags.output_format in (OutputFormat.JSON, OutputFormat.ALL):
            written.append(self.write_json())
        if self.flags.output_format in (OutputFormat.XLSX, OutputFormat.ALL):
            written.append(self.write_xlsx())
        return written

    def write_json(self, path: Path | None = None) -> Path:
        """Serialize the whole report as JSON.

        Raises:
            ReportError: If the file cannot be written
        """
        path = path or self.report_path("json")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        except OSError as e:
            raise ReportError(f"unable to write {path}: {e}", path=str(path))
        logger.info("report written to %s", path)
        return path

    def write_xlsx(self, path: Path | None = None) -> Path:
        """Write the report as a spreadsheet.

        Raises:
            ReportError: If the file cannot be saved
        """
        path = path or self.report_path("xlsx")
        writer = self.build_sheet()
        writer.save(path)
        logger.info("report written to %s", path)
        return path

    def build_sheet(self) -> SheetWriter:
        """Lay the report out in a workbook without saving it."""
        writer = SheetWriter(self.SHEET_COLUMNS)
        writer.write_header(
            title=self.TITLE.format(date=self.generate_at.strftime("%Y-%m-%d")),
            image=self.flags.index_image,
            created=self.index_image_inspect.created,
            image_id=self.index_image_inspect.id,
        )
        for column in self.columns:
            writer.write_row(column)
        writer.hide_groups(self.hidden_groups())
        writer.add_table()
        return writer
