"""Audit of an index image, from enumeration to report rows."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Callable, Iterator

from operator_audit.core.checks import ScorecardRunner, ValidatorRunner
from operator_audit.core.executor import CommandExecutor, SubprocessExecutor
from operator_audit.core.extract import BundleExtractor
from operator_audit.core.index import IndexReader
from operator_audit.core.inspect import ImageInspector
from operator_audit.core.manifests import load_bundle_from_dir
from operator_audit.models.bundle import AuditBundle
from operator_audit.models.catalog import BundleInfo, IndexCatalog, PackageInfo
from operator_audit.models.image import DockerInspectManifest
from operator_audit.reports import bundles, channels, packages
from operator_audit.reports.base import BaseReport, OutputFormat, ReportFlags
from operator_audit.utils.config import RunConfig
from operator_audit.utils.errors import (
    CommandError,
    ManifestError,
    ValidationError,
    validate_image_reference,
)
from operator_audit.utils.logging import get_logger

logger = get_logger(__name__)


class BundleProcessor:
    """Runs every pipeline stage for one bundle.

    Each stage records its failures on the AuditBundle and the bundle is
    always returned, extracted or not.
    """

    def __init__(
        self,
        extractor: BundleExtractor,
        inspector: ImageInspector,
        validator: ValidatorRunner | None = None,
        scorecard: ScorecardRunner | None = None,
        label: str | None = None,
        label_value: str | None = None,
    ) -> None:
        self._extractor = extractor
        self._inspector = inspector
        self._validator = validator
        self._scorecard = scorecard
        self._label = label
        self._label_value = label_value

    def process(self, audit_bundle: AuditBundle) -> AuditBundle:
        with self._extractor.unpacked(audit_bundle) as bundle_dir:
            if bundle_dir is None:
                return audit_bundle

            self._inspect(audit_bundle)

            try:
                audit_bundle.bundle = load_bundle_from_dir(bundle_dir)
            except ManifestError as e:
                audit_bundle.add_error(
                    ManifestError(f"unable to get the bundle: {e.message}", path=str(bundle_dir))
                )
                return audit_bundle

            if self._scorecard is not None:
                self._scorecard.run(bundle_dir, audit_bundle)
            if self._validator is not None:
                self._validator.run(bundle_dir, audit_bundle)

        return audit_bundle

    def _inspect(self, audit_bundle: AuditBundle) -> None:
        try:
            manifest = self._inspector.inspect(audit_bundle.operator_bundle_image_path)
        except (CommandError, ManifestError) as e:
            audit_bundle.add_error(e)
            return

        if self._label:
            audit_bundle.found_label = manifest.labels.get(self._label) == self._label_value
        audit_bundle.build_at = manifest.build_date
        audit_bundle.ocp_label = manifest.ocp_versions


class Auditor:
    """Audits an index image and builds one of the reports.

    Example:
        auditor = Auditor(RunConfig(output_path="reports", disable_scorecard=True))
        report = auditor.run("bundles", "quay.io/operatorhubio/catalog:latest")
        report.write()
    """

    def __init__(
        self,
        config: RunConfig | None = None,
        executor: CommandExecutor | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config or RunConfig()
        self._executor = executor or SubprocessExecutor(timeout=self.config.command_timeout)
        self._clock = clock
        self._inspector = ImageInspector(self._executor, engine=self.config.container_engine)
        self._index_reader = IndexReader(self._executor)
        self._processor = BundleProcessor(
            extractor=BundleExtractor(
                self._executor,
                work_dir=self.config.work_dir,
                engine=self.config.container_engine,
                server_mode=self.config.server_mode,
            ),
            inspector=self._inspector,
            validator=None if self.config.disable_validators else ValidatorRunner(self._executor),
            scorecard=(
                None
                if self.config.disable_scorecard
                else ScorecardRunner(self._executor, wait_time=self.config.scorecard_wait_time)
            ),
            label=self.config.label,
            label_value=self.config.label_value,
        )

    def run(
        self,
        report_type: str,
        index_image: str,
        output_format: OutputFormat = OutputFormat.ALL,
    ) -> BaseReport:
        """Audit an index image.

        Args:
            report_type: bundles, packages or channels
            index_image: Index image reference
            output_format: Formats the report will be written in

        Returns:
            The report, ready to be written

        Raises:
            ValidationError: If the image reference or report type is invalid
            CommandError: If the index cannot be rendered
            ManifestError: If the rendered index cannot be parsed
        """
        validate_image_reference(index_image)
        builders = {
            "bundles": self.build_bundles_report,
            "packages": self.build_packages_report,
            "channels": self.build_channels_report,
        }
        if report_type not in builders:
            raise ValidationError(f"unknown report type: {report_type}", field="report_type")

        flags = self._flags(index_image, output_format)
        inspect = self.inspect_index(index_image)
        catalog = self._index_reader.read(index_image)
        return builders[report_type](catalog, flags, inspect)

    def inspect_index(self, index_image: str) -> DockerInspectManifest:
        """Pull and inspect the index image for the report header.

        Failure only costs the header fields, so it is logged and an empty
        inspection is returned.
        """
        try:
            self._inspector.pull(index_image)
            return self._inspector.inspect(index_image)
        except (CommandError, ManifestError) as e:
            logger.warning("unable to inspect index image %s: %s", index_image, e.message)
            return DockerInspectManifest()

    def build_bundles_report(
        self,
        catalog: IndexCatalog,
        flags: ReportFlags,
        inspect: DockerInspectManifest,
    ) -> bundles.Report:
        selected = self._limit(self.select_bundles(catalog, head_only=self.config.head_only))
        columns = [self.audit_bundle(catalog, b) for b in self._progress(selected)]
        return bundles.Report(
            columns=columns,
            flags=flags,
            index_image_inspect=inspect,
            generate_at=self._clock(),
        )

    def build_packages_report(
        self,
        catalog: IndexCatalog,
        flags: ReportFlags,
        inspect: DockerInspectManifest,
    ) -> packages.Report:
        heads_by_package: dict[str, list[AuditBundle]] = defaultdict(list)
        for head in self.select_bundles(catalog, head_only=True):
            heads_by_package[head.package_name].append(head)

        rows = []
        for package in self._limit(self._packages(catalog)):
            heads = heads_by_package.get(package.name, [])
            head_columns = [self.audit_bundle(catalog, b) for b in self._progress(heads)]
            rows.append(packages.Column.from_bundle_columns(package, head_columns))
        return packages.Report(
            columns=rows,
            flags=flags,
            index_image_inspect=inspect,
            generate_at=self._clock(),
        )

    def build_channels_report(
        self,
        catalog: IndexCatalog,
        flags: ReportFlags,
        inspect: DockerInspectManifest,
    ) -> channels.Report:
        by_name = {b.name: b for b in catalog.bundles}
        rows = [
            channels.Column.from_channel(channel, by_name)
            for package in self._packages(catalog)
            for channel in package.channels
        ]
        return channels.Report(
            columns=self._limit(rows),
            flags=flags,
            index_image_inspect=inspect,
            generate_at=self._clock(),
        )

    def select_bundles(self, catalog: IndexCatalog, head_only: bool = False) -> list[AuditBundle]:
        """Create the AuditBundles to process, honoring the package filter."""
        by_package: dict[str, list[BundleInfo]] = defaultdict(list)
        for info in catalog.bundles:
            by_package[info.package].append(info)

        selected = []
        for package in self._packages(catalog):
            heads = set(package.heads)
            for info in by_package.get(package.name, []):
                if head_only and info.name not in heads:
                    continue
                selected.append(new_audit_bundle(package, info, heads))
        return selected

    def audit_bundle(self, catalog: IndexCatalog, audit_bundle: AuditBundle) -> bundles.Column:
        """Process one bundle and compute its report row."""
        self._processor.process(audit_bundle)

        replaces = audit_bundle.replaces
        if audit_bundle.bundle is not None and audit_bundle.bundle.replaces:
            replaces = audit_bundle.bundle.replaces
        replaced = catalog.bundle(replaces) if replaces else None
        return bundles.Column.from_audit_bundle(
            audit_bundle,
            replaced_version=replaced.version if replaced else None,
        )

    def _packages(self, catalog: IndexCatalog) -> list[PackageInfo]:
        packages_ = catalog.packages
        known = {p.name for p in packages_}
        # Bundles whose package declares no channel still get audited
        orphans = sorted({b.package for b in catalog.bundles if b.package not in known})
        packages_ = [*packages_, *(PackageInfo(name=name) for name in orphans)]
        if self.config.filter:
            packages_ = [p for p in packages_ if self.config.filter in p.name]
        return packages_

    def _limit(self, items: list) -> list:
        if self.config.limit is not None and self.config.limit >= 0:
            return items[: self.config.limit]
        return items

    def _progress(self, items: list[AuditBundle]) -> Iterator[AuditBundle]:
        for position, item in enumerate(items, start=1):
            logger.info(
                "auditing bundle %d/%d: %s", position, len(items), item.operator_bundle_name
            )
            yield item

    def _flags(self, index_image: str, output_format: OutputFormat) -> ReportFlags:
        return ReportFlags(
            index_image=index_image,
            output_path=self.config.output_path,
            output_format=output_format,
            disable_scorecard=self.config.disable_scorecard,
            disable_validators=self.config.disable_validators,
            server_mode=self.config.server_mode,
            label=self.config.label,
            label_value=self.config.label_value,
            filter=self.config.filter,
            limit=self.config.limit,
            head_only=self.config.head_only,
        )


def new_audit_bundle(package: PackageInfo, info: BundleInfo, heads: set[str] | None = None) -> AuditBundle:
    """Create the AuditBundle of a bundle declared by the index."""
    heads = heads if heads is not None else set(package.heads)
    entry = None
    member_of = []
    for channel in package.channels:
        channel_entry = channel.entry(info.name)
        if channel_entry is not None:
            member_of.append(channel.name)
            entry = entry or channel_entry

    return AuditBundle(
        operator_bundle_name=info.name,
        operator_bundle_image_path=info.image,
        package_name=package.name,
        default_channel=package.default_channel,
        channels=member_of,
        is_head_of_channel=info.name in heads,
        version=info.version,
        replaces=entry.replaces if entry else None,
        skips=list(entry.skips) if entry else [],
        skip_range=entry.skip_range if entry else None,
    )
