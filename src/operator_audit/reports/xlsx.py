"""Spreadsheet layout shared by every report type."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Callable, NamedTuple

from openpyxl import Workbook
from openpyxl.cell import Cell
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.comments import Comment
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import IllegalCharacterError
from openpyxl.worksheet.table import Table, TableStyleInfo

from operator_audit.utils.errors import ReportError
from operator_audit.utils.logging import get_logger

logger = get_logger(__name__)

SHEET_NAME = "Sheet1"
HEADER_ROW = 5
FIRST_DATA_ROW = 6
TABLE_STYLE = "TableStyleMedium2"
COMMENT_AUTHOR = "Audit"


class CellStyle(str, Enum):
    """Conditional styles a finding cell can take."""

    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


STYLE_COLORS: dict[CellStyle, str] = {
    CellStyle.OK: "3FA91E",
    CellStyle.WARNING: "EC8F1C",
    CellStyle.ERROR: "EC1C1C",
}


class SheetColumn(NamedTuple):
    """How one field of a report row is laid out in the sheet.

    `style` and `comment` receive the whole row so a cell can be styled
    from a sibling field. `group` names the check the column belongs to
    so it can be hidden when that check was disabled.
    """

    header: str
    attr: str
    style: Callable[[Any], CellStyle | None] | None = None
    group: str | None = None
    comment: Callable[[Any], str | None] | None = None
    width: float = 20


def warn_when(attr: str, good: CellStyle | None = None) -> Callable[[Any], CellStyle | None]:
    """Warning style when the field is truthy, `good` otherwise."""

    def rule(row: Any) -> CellStyle | None:
        return CellStyle.WARNING if getattr(row, attr) else good

    return rule


def fail_when(attr: str, good: CellStyle | None = CellStyle.OK) -> Callable[[Any], CellStyle | None]:
    """Error style when the field is truthy, `good` otherwise."""

    def rule(row: Any) -> CellStyle | None:
        return CellStyle.ERROR if getattr(row, attr) else good

    return rule


def ok_when(attr: str) -> Callable[[Any], CellStyle | None]:
    def rule(row: Any) -> CellStyle | None:
        return CellStyle.OK if getattr(row, attr) else None

    return rule


def join_comment(attr: str) -> Callable[[Any], str | None]:
    """Comment listing the values of a list field, if any."""

    def comment(row: Any) -> str | None:
        return ", ".join(getattr(row, attr)) or None

    return comment


def strip_illegal(text: str) -> str:
    """Drop the characters worksheets cannot hold."""
    return ILLEGAL_CHARACTERS_RE.sub("", text)


def yes_or_no(value: bool) -> str:
    return "YES" if value else "NO"


def to_cell_value(value: Any) -> Any:
    """Render a row field the way the sheet shows it."""
    if isinstance(value, bool):
        return yes_or_no(value)
    if isinstance(value, (list, tuple)):
        return "\n".join(str(v) for v in value)
    if value is None:
        return ""
    return value


class SheetWriter:
    """Writes report rows into a single-sheet workbook.

    Rows 1-4 hold the header block, row 5 the column titles formatted as
    a table, and rows from 6 on one report row each. Failing to write a
    single cell is logged and skipped.
    """

    def __init__(self, columns: list[SheetColumn]) -> None:
        self.workbook = Workbook()
        self.sheet = self.workbook.active
        self.sheet.title = SHEET_NAME
        self._columns = columns
        self._next_row = FIRST_DATA_ROW
        self._fonts = {style: Font(color=color) for style, color in STYLE_COLORS.items()}

    @staticmethod
    def letter(index: int) -> str:
        """Column letter of the zero-based column index."""
        return get_column_letter(index + 1)

    def letters(self, group: str) -> list[str]:
        """Letters of the columns that belong to a check group."""
        return [self.letter(i) for i, c in enumerate(self._columns) if c.group == group]

    @property
    def rows_written(self) -> int:
        return self._next_row - FIRST_DATA_ROW

    def write_header(self, title: str, image: str, created: str, image_id: str) -> None:
        self.set_value("A1", title)
        self.set_value("A2", "Image used")
        self.set_value("B2", image)
        self.set_value("A3", "Image Index Create Date:")
        self.set_value("B3", created)
        self.set_value("A4", "Image Index ID:")
        self.set_value("B4", image_id)

        for index, column in enumerate(self._columns):
            letter = self.letter(index)
            self.set_value(f"{letter}{HEADER_ROW}", column.header)
            self.sheet.column_dimensions[letter].width = column.width

    def write_row(self, row: Any) -> None:
        line = self._next_row
        self._next_row += 1

        for index, column in enumerate(self._columns):
            ref = f"{self.letter(index)}{line}"
            if not self.set_value(ref, to_cell_value(getattr(row, column.attr, None))):
                continue

            cell: Cell = self.sheet[ref]
            cell.alignment = Alignment(wrap_text=True, vertical="top")
            if column.style is not None:
                style = column.style(row)
                if style is not None:
                    cell.font = self._fonts[style]
            if column.comment is not None:
                text = column.comment(row)
                if text:
                    cell.comment = Comment(strip_illegal(text), COMMENT_AUTHOR)

    def set_value(self, ref: str, value: Any) -> bool:
        """Set a cell, logging instead of raising when the value is rejected.

        Control characters, such as the ANSI colors of captured command
        output, are dropped from strings.
        """
        if isinstance(value, str):
            value = strip_illegal(value)
        try:
            self.sheet[ref] = value
        except (IllegalCharacterError, ValueError, TypeError) as e:
            logger.error("unable to set %s cell value: %s", ref, e)
            return False
        return True

    def hide_groups(self, groups: set[str]) -> None:
        for group in sorted(groups):
            for letter in self.letters(group):
                self.sheet.column_dimensions[letter].hidden = True

    def add_table(self) -> None:
        last_row = max(self._next_row - 1, FIRST_DATA_ROW)
        last_letter = self.letter(len(self._columns) - 1)
        table = Table(displayName="AuditReport", ref=f"A{HEADER_ROW}:{last_letter}{last_row}")
        table.tableStyleInfo = TableStyleInfo(name=TABLE_STYLE, showRowStripes=True)
        try:
            self.sheet.add_table(table)
        except ValueError as e:
            logger.error("unable to set table format: %s", e)

    def save(self, path: Path) -> None:
        """Save the workbook.

        Raises:
            ReportError: If the file cannot be created
        """
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self.workbook.save(path)
        except OSError as e:
            raise ReportError(f"unable to save {path}: {e}", path=str(path))
