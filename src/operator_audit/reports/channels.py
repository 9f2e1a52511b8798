"""Channels report: one row per package channel."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, Field

from operator_audit.core import findings
from operator_audit.models.catalog import BundleInfo, ChannelInfo
from operator_audit.models.common import AuditError
from operator_audit.reports.base import BaseReport
from operator_audit.reports.xlsx import CellStyle, SheetColumn, warn_when
from operator_audit.utils.errors import ManifestError


class Column(BaseModel):
    """Upgrade-graph findings for one channel."""

    model_config = {"frozen": True}

    package_name: str
    channel_name: str
    is_using_skips: bool = False
    is_using_skip_range: bool = False
    is_following_name_convention: bool = False
    has_invalid_versioning: bool = False
    has_invalid_skip_range: bool = False
    audit_errors: list[AuditError] = Field(default_factory=list)

    @classmethod
    def from_channel(cls, channel: ChannelInfo, bundles: dict[str, BundleInfo]) -> "Column":
        """Compute a channel row from the index alone.

        Args:
            channel: The channel and its entries
            bundles: Every bundle of the index, by name
        """
        errors: list[AuditError] = []
        invalid_versioning = False
        invalid_skip_range = False

        for entry in channel.entries:
            info = bundles.get(entry.name)
            if info is None:
                errors.append(
                    ManifestError(
                        f"bundle {entry.name} of channel {channel.name} not found in the index"
                    ).to_audit_error()
                )
                continue

            replaced = bundles.get(entry.replaces) if entry.replaces else None
            if findings.has_invalid_versioning(info.version, replaced.version if replaced else None):
                invalid_versioning = True
            if findings.has_invalid_skip_range(entry.skip_range, info.version):
                invalid_skip_range = True

        return cls(
            package_name=channel.package,
            channel_name=channel.name,
            is_using_skips=channel.is_using_skips,
            is_using_skip_range=channel.is_using_skip_range,
            is_following_name_convention=findings.follows_channel_naming(channel.name),
            has_invalid_versioning=invalid_versioning,
            has_invalid_skip_range=invalid_skip_range,
            audit_errors=errors,
        )


def _name_convention_style(row: Column) -> CellStyle | None:
    return None if row.is_following_name_convention else CellStyle.WARNING


class Report(BaseReport):
    """Report with one row per channel of every package."""

    REPORT_TYPE: ClassVar[str] = "channels"
    TITLE: ClassVar[str] = "Audit Channels Report (Generated at {date})"
    SHEET_COLUMNS: ClassVar[list[SheetColumn]] = [
        SheetColumn("Package Name", "package_name", width=30),
        SheetColumn("Channel Name", "channel_name"),
        SheetColumn("Is using skips", "is_using_skips"),
        SheetColumn("Is using skipRange", "is_using_skip_range"),
        SheetColumn(
            "Is Following Name Convention",
            "is_following_name_convention",
            style=_name_convention_style,
        ),
        SheetColumn(
            "Has Invalid Versioning",
            "has_invalid_versioning",
            style=warn_when("has_invalid_versioning"),
        ),
        SheetColumn(
            "Has Invalid SkipRange",
            "has_invalid_skip_range",
            style=warn_when("has_invalid_skip_range"),
        ),
        SheetColumn("Issues (To process this report)", "audit_errors", width=60),
    ]

    columns: list[Column] = Field(default_factory=list)
