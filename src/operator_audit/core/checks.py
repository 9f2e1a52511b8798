"""Runners for the external bundle check suites."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from operator_audit.core.executor import CommandExecutor
from operator_audit.models.bundle import AuditBundle
from operator_audit.utils.errors import CommandError, ManifestError
from operator_audit.utils.logging import get_logger

logger = get_logger(__name__)

STOCK_SCORECARD_IMAGE = "quay.io/operator-framework/scorecard-test"
SCORECARD_CONFIG = Path("tests") / "scorecard" / "config.yaml"
FAILING_STATES = {"fail", "error"}


class ValidatorRunner:
    """Runs `operator-sdk bundle validate` against an unpacked bundle.

    Example:
        runner = ValidatorRunner(SubprocessExecutor())
        runner.run(bundle_dir, audit_bundle)
        print(audit_bundle.validator_errors)
    """

    def __init__(
        self,
        executor: CommandExecutor,
        operator_sdk: str = "operator-sdk",
        optional_suite: str = "suite=operatorframework",
    ) -> None:
        self._executor = executor
        self._operator_sdk = operator_sdk
        self._optional_suite = optional_suite

    def run(self, bundle_dir: Path, audit_bundle: AuditBundle) -> AuditBundle:
        """Validate a bundle and record its errors and warnings."""
        result = self._executor.run(
            self._operator_sdk,
            [
                "bundle",
                "validate",
                str(bundle_dir),
                "--select-optional",
                self._optional_suite,
                "--output",
                "json-alpha1",
            ],
        )

        # A failed validation still prints a report and exits non-zero
        try:
            report = _parse_json(result.stdout, "validator")
        except ManifestError as e:
            if not result.ok:
                audit_bundle.add_error(CommandError(result.command, result.returncode, result.stderr))
            else:
                audit_bundle.add_error(e)
            return audit_bundle

        audit_bundle.validators_ran = True
        for output in _records(report.get("outputs")):
            kind = str(output.get("type", "")).lower()
            message = str(output.get("message", ""))
            if kind == "error":
                audit_bundle.validator_errors.append(message)
            elif kind == "warning":
                audit_bundle.validator_warnings.append(message)
        return audit_bundle


class ScorecardRunner:
    """Runs `operator-sdk scorecard` against an unpacked bundle."""

    def __init__(
        self,
        executor: CommandExecutor,
        operator_sdk: str = "operator-sdk",
        wait_time: str = "120s",
    ) -> None:
        self._executor = executor
        self._operator_sdk = operator_sdk
        self._wait_time = wait_time

    def run(self, bundle_dir: Path, audit_bundle: AuditBundle) -> AuditBundle:
        """Run the scorecard and record failing tests and suggestions."""
        try:
            audit_bundle.has_custom_scorecard_tests = has_custom_scorecard_tests(bundle_dir)
        except ManifestError as e:
            logger.warning("%s: %s", audit_bundle.operator_bundle_name, e.message)
            audit_bundle.add_error(e)

        result = self._executor.run(
            self._operator_sdk,
            [
                "scorecard",
                str(bundle_dir),
                "--output",
                "json",
                "--wait-time",
                self._wait_time,
            ],
        )

        try:
            report = _parse_json(result.stdout, "scorecard")
        except ManifestError as e:
            if not result.ok:
                audit_bundle.add_error(CommandError(result.command, result.returncode, result.stderr))
            else:
                audit_bundle.add_error(e)
            return audit_bundle

        audit_bundle.scorecard_ran = True
        for item in _records(report.get("items")):
            status = item.get("status")
            for test in _records(status.get("results") if isinstance(status, dict) else None):
                name = str(test.get("name", ""))
                if str(test.get("state", "")).lower() in FAILING_STATES:
                    audit_bundle.scorecard_failing_tests.append(name)
                suggestions = test.get("suggestions")
                if isinstance(suggestions, list):
                    audit_bundle.scorecard_suggestions.extend(str(s) for s in suggestions)
        return audit_bundle


def has_custom_scorecard_tests(bundle_dir: Path) -> bool:
    """Whether the bundle ships scorecard tests beyond the stock image.

    Raises:
        ManifestError: If the scorecard config cannot be read or is not a
            scorecard Configuration
    """
    config_path = bundle_dir / SCORECARD_CONFIG
    if not config_path.is_file():
        return False
    try:
        config = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, UnicodeDecodeError, OSError) as e:
        raise ManifestError(f"unable to read the scorecard config: {e}", path=str(config_path)) from e

    if config is None:
        return False
    if not isinstance(config, dict):
        raise ManifestError("scorecard config is not a mapping", path=str(config_path))

    for stage in _records(config.get("stages")):
        for test in _records(stage.get("tests")):
            image = str(test.get("image") or "")
            if image and not image.startswith(STOCK_SCORECARD_IMAGE):
                return True
    return False


def _records(value: Any) -> list[dict[str, Any]]:
    """The mappings of a list, ignoring anything else."""
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, dict)]


def _parse_json(output: str, what: str) -> dict[str, Any]:
    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        raise ManifestError(f"unable to parse {what} output: {e}")
    if not isinstance(data, dict):
        raise ManifestError(f"unexpected {what} output")
    return data
