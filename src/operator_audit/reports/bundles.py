"""Bundles report: one row per audited bundle."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, Field

from operator_audit.core import findings
from operator_audit.models.bundle import AuditBundle
from operator_audit.models.common import AuditError
from operator_audit.reports.base import BaseReport
from operator_audit.reports.xlsx import (
    CellStyle,
    SheetColumn,
    fail_when,
    join_comment,
    warn_when,
)


class Column(BaseModel):
    """Findings for a single bundle."""

    model_config = {"frozen": True}

    package_name: str = ""
    bundle_name: str
    bundle_image_path: str = ""
    default_channel: str = ""
    channels: list[str] = Field(default_factory=list)
    version: str | None = None
    build_at: str = ""
    ocp_label: str = ""
    is_head_of_channel: bool = False
    kinds_deprecate_apis: list[str] = Field(default_factory=list)
    has_webhooks: bool = False
    multiple_architectures: list[str] = Field(default_factory=list)
    has_scorecard_suggestions: bool = False
    scorecard_suggestions: list[str] = Field(default_factory=list)
    has_scorecard_failing_tests: bool = False
    scorecard_failing_tests: list[str] = Field(default_factory=list)
    has_custom_scorecard_tests: bool = False
    has_validator_errors: bool = False
    validator_errors: list[str] = Field(default_factory=list)
    has_validator_warnings: bool = False
    validator_warnings: list[str] = Field(default_factory=list)
    has_invalid_versioning: bool = False
    has_invalid_skip_range: bool = False
    has_support_for_all_namespaces: bool = False
    has_support_for_single_namespace: bool = False
    has_support_for_own_namespaces: bool = False
    has_support_for_multi_namespaces: bool = False
    has_infra_annotation: bool = False
    has_possible_perform_issues: bool = False
    found_label: bool = False
    audit_errors: list[AuditError] = Field(default_factory=list)

    @classmethod
    def from_audit_bundle(
        cls,
        audit_bundle: AuditBundle,
        replaced_version: str | None = None,
    ) -> "Column":
        """Compute the row of a bundle once every pipeline stage has run.

        Args:
            audit_bundle: The processed bundle, extracted or not
            replaced_version: Version of the bundle this one replaces, if known
        """
        bundle = audit_bundle.bundle
        version = (bundle.version if bundle else None) or audit_bundle.version
        skip_range = (bundle.skip_range if bundle else None) or audit_bundle.skip_range

        invalid_versioning = False
        if bundle is not None or version:
            invalid_versioning = findings.has_invalid_versioning(version, replaced_version)

        values: dict = {}
        if bundle is not None:
            values = dict(
                kinds_deprecate_apis=findings.deprecated_api_kinds(bundle),
                has_webhooks=bundle.has_webhooks,
                multiple_architectures=bundle.architectures,
                has_support_for_all_namespaces=bundle.supports("AllNamespaces"),
                has_support_for_single_namespace=bundle.supports("SingleNamespace"),
                has_support_for_own_namespaces=bundle.supports("OwnNamespace"),
                has_support_for_multi_namespaces=bundle.supports("MultiNamespace"),
                has_infra_annotation=bool(bundle.infrastructure_features),
                has_possible_perform_issues=findings.has_possible_performance_issues(bundle),
            )

        return cls(
            package_name=audit_bundle.package_name,
            bundle_name=audit_bundle.operator_bundle_name,
            bundle_image_path=audit_bundle.operator_bundle_image_path,
            default_channel=audit_bundle.default_channel,
            channels=audit_bundle.channels,
            version=version,
            build_at=audit_bundle.build_at,
            ocp_label=audit_bundle.ocp_label,
            is_head_of_channel=audit_bundle.is_head_of_channel,
            has_scorecard_suggestions=bool(audit_bundle.scorecard_suggestions),
            scorecard_suggestions=audit_bundle.scorecard_suggestions,
            has_scorecard_failing_tests=bool(audit_bundle.scorecard_failing_tests),
            scorecard_failing_tests=audit_bundle.scorecard_failing_tests,
            has_custom_scorecard_tests=audit_bundle.has_custom_scorecard_tests,
            has_validator_errors=bool(audit_bundle.validator_errors),
            validator_errors=audit_bundle.validator_errors,
            has_validator_warnings=bool(audit_bundle.validator_warnings),
            validator_warnings=audit_bundle.validator_warnings,
            has_invalid_versioning=invalid_versioning,
            has_invalid_skip_range=findings.has_invalid_skip_range(skip_range, version),
            found_label=audit_bundle.found_label,
            audit_errors=audit_bundle.errors,
            **values,
        )


class Report(BaseReport):
    """Report with every bundle of the index."""

    REPORT_TYPE: ClassVar[str] = "bundles"
    TITLE: ClassVar[str] = "Audit Bundles Report (Generated at {date})"
    SHEET_COLUMNS: ClassVar[list[SheetColumn]] = [
        SheetColumn("Package Name", "package_name"),
        SheetColumn("Bundle Name", "bundle_name", width=35),
        SheetColumn("Bundle Image Path", "bundle_image_path", width=50),
        SheetColumn("Default Channel", "default_channel"),
        SheetColumn("Channels", "channels"),
        SheetColumn("Build At", "build_at"),
        SheetColumn("OCP Label", "ocp_label"),
        SheetColumn("Is Head of Channel", "is_head_of_channel"),
        SheetColumn(
            "Kinds \n (Deprecated API(s) usage)",
            "kinds_deprecate_apis",
            style=warn_when("kinds_deprecate_apis"),
        ),
        SheetColumn("Is using Webhooks", "has_webhooks"),
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
        SheetColumn("Found Label", "found_label"),
        SheetColumn("Issues (To process this report)", "audit_errors", width=60),
    ]

    columns: list[Column] = Field(default_factory=list)
