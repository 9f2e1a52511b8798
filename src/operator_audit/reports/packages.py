"""Packages report: one row per package, built from its channel heads."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, Field

from operator_audit.models.catalog import PackageInfo
from operator_audit.models.common import AuditError
from operator_audit.reports import bundles
from operator_audit.reports.base import BaseReport
from operator_audit.reports.xlsx import (
    CellStyle,
    SheetColumn,
    fail_when,
    join_comment,
    ok_when,
    warn_when,
)


def _union(values: list[list[str]]) -> list[str]:
    merged: list[str] = []
    for group in values:
        for value in group:
            if value not in merged:
                merged.append(value)
    return merged


class Column(BaseModel):
    """Findings for a package, merged across the heads of its channels."""

    model_config = {"frozen": True}

    package_name: str
    kinds_deprecate_apis: list[str] = Field(default_factory=list)
    has_webhooks: bool = False
    multiple_architectures: list[str] = Field(default_factory=list)
    has_scorecard_suggestions: bool = False
    has_scorecard_failing_tests: bool = False
    scorecard_failing_tests: list[str] = Field(default_factory=list)
    has_validator_errors: bool = False
    has_validator_warnings: bool = False
    has_invalid_versioning: bool = False
    has_invalid_skip_range: bool = False
    is_multi_channel: bool = False
    has_support_for_all_namespaces: bool = False
    has_support_for_single_namespace: bool = False
    has_support_for_own_namespaces: bool = False
    has_support_for_multi_namespaces: bool = False
    has_infra_annotation: bool = False
    has_possible_perform_issues: bool = False
    has_custom_scorecard_tests: bool = False
    audit_errors: list[AuditError] = Field(default_factory=list)

    @classmethod
    def from_bundle_columns(cls, package: PackageInfo, heads: list[bundles.Column]) -> "Column":
        """Merge the rows of a package's head bundles into one package row."""
        return cls(
            package_name=package.name,
            kinds_deprecate_apis=_union([h.kinds_deprecate_apis for h in heads]),
            has_webhooks=any(h.has_webhooks for h in heads),
            multiple_architectures=_union([h.multiple_architectures for h in heads]),
            has_scorecard_suggestions=any(h.has_scorecard_suggestions for h in heads),
            has_scorecard_failing_tests=any(h.has_scorecard_failing_tests for h in heads),
            scorecard_failing_tests=_union([h.scorecard_failing_tests for h in heads]),
            has_validator_errors=any(h.has_validator_errors for h in heads),
            has_validator_warnings=any(h.has_validator_warnings for h in heads),
            has_invalid_versioning=any(h.has_invalid_versioning for h in heads),
            has_invalid_skip_range=any(h.has_invalid_skip_range for h in heads),
            is_multi_channel=package.is_multi_channel,
            has_support_for_all_namespaces=any(h.has_support_for_all_namespaces for h in heads),
            has_support_for_single_namespace=any(h.has_support_for_single_namespace for h in heads),
            has_support_for_own_namespaces=any(h.has_support_for_own_namespaces for h in heads),
            has_support_for_multi_namespaces=any(h.has_support_for_multi_namespaces for h in heads),
            has_infra_annotation=any(h.has_infra_annotation for h in heads),
            has_possible_perform_issues=any(h.has_possible_perform_issues for h in heads),
            has_custom_scorecard_tests=any(h.has_custom_scorecard_tests for h in heads),
            audit_errors=[e for h in heads for e in h.audit_errors],
        )


class Report(BaseReport):
    """Report with one row per package of the index."""

    REPORT_TYPE: ClassVar[str] = "packages"
    TITLE: ClassVar[str] = (
        "Audit Packages Report (Generated at {date}). IMPORTANT: This report only checks the head "
        "operators of the channels. Use the bundles report to check all bundles"
    )
    SHEET_COLUMNS: ClassVar[list[SheetColumn]] = [
        SheetColumn("Package Name", "package_name", width=30),
        SheetColumn(
            "Kinds \n (Deprecated API(s) usage)",
            "kinds_deprecate_apis",
            style=warn_when("kinds_deprecate_apis"),
        ),
        SheetColumn("Is using Webhooks", "has_webhooks"),
        SheetColumn("Multiple Architectures used", "multiple_architectures"),
        SheetColumn(
            "Has Scorecard Suggestions",
            "has_scorecard_suggestions",
            style=warn_when("has_scorecard_suggestions"),
            group="scorecard",
        ),
        SheetColumn(
            "Has Scorecard Failing Tests",
            "has_scorecard_failing_tests",
            style=fail_when("scorecard_failing_tests"),
            group="scorecard",
            comment=join_comment("scorecard_failing_tests"),
        ),
        SheetColumn(
            "Has Validator Errors",
            "has_validator_errors",
            style=fail_when("has_validator_errors"),
            group="validator",
        ),
        SheetColumn(
            "Has Validator Warnings",
            "has_validator_warnings",
            style=warn_when("has_validator_warnings", good=CellStyle.OK),
            group="validator",
        ),
        SheetColumn(
            "Has Invalid Versioning",
            "has_invalid_versioning",
            style=warn_when("has_invalid_versioning", good=CellStyle.OK),
        ),
        SheetColumn(
            "Has Invalid SkipRange",
            "has_invalid_skip_range",
            style=warn_when("has_invalid_skip_range"),
        ),
        SheetColumn("Is multi-channel", "is_multi_channel"),
        SheetColumn("Has Support for All Namespaces", "has_support_for_all_namespaces"),
        SheetColumn("Has Support for Single Namespaces", "has_support_for_single_namespace"),
        SheetColumn("Has Support for Own Namespaces", "has_support_for_own_namespaces"),
        SheetColumn("Has Support for Multi Namespaces", "has_support_for_multi_namespaces"),
        SheetColumn("Has Infrastructure Support", "has_infra_annotation"),
        SheetColumn(
            "Has possible performance issues",
            "has_possible_perform_issues",
            style=warn_when("has_possible_perform_issues"),
        ),
        SheetColumn(
            "Has custom Scorecards",
            "has_custom_scorecard_tests",
            style=ok_when("has_custom_scorecard_tests"),
        ),
        SheetColumn("Issues (To process this report)", "audit_errors", width=60),
    ]

    columns: list[Column] = Field(default_factory=list)
