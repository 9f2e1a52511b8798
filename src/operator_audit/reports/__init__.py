"""Report models and writers."""

from operator_audit.reports import bundles, channels, packages
from operator_audit.reports.base import BaseReport, OutputFormat, ReportFlags, get_report_name
from operator_audit.reports.xlsx import CellStyle, SheetColumn, SheetWriter

__all__ = [
    "bundles",
    "channels",
    "packages",
    "BaseReport",
    "OutputFormat",
    "ReportFlags",
    "get_report_name",
    "CellStyle",
    "SheetColumn",
    "SheetWriter",
    "REPORT_TYPES",
]

REPORT_TYPES = {
    "bundles": bundles.Report,
    "packages": packages.Report,
    "channels": channels.Report,
}
