"""Unit tests for the validator and scorecard runners."""

import json

import pytest

from operator_audit.core.checks import ScorecardRunner, ValidatorRunner, has_custom_scorecard_tests
from operator_audit.models.common import ErrorCategory
from operator_audit.utils.errors import ManifestError

SCORECARD_CONFIG = """\
apiVersion: scorecard.operatorframework.io/v1alpha3
kind: Configuration
stages:
  - parallel: true
    tests:
      - entrypoint: [scorecard-test, basic-check-spec]
        image: {image}
"""


class TestValidatorRunner:
    def test_records_errors_and_warnings(self, fake_executor, bundle_dir, audit_bundle, validator_output):
        # A failing validation exits non-zero and still prints its report
        fake_executor.on("operator-sdk", "bundle", "validate", returncode=1, stdout=validator_output)

        ValidatorRunner(fake_executor).run(bundle_dir, audit_bundle)

        assert audit_bundle.validators_ran is True
        assert audit_bundle.validator_errors == ["CSV has no description"]
        assert audit_bundle.validator_warnings == ["CSV has no icon", "CSV has no links"]
        assert audit_bundle.errors == []

    def test_command_line(self, fake_executor, bundle_dir, audit_bundle):
        fake_executor.on("operator-sdk", stdout='{"passed": true, "outputs": null}')

        ValidatorRunner(fake_executor).run(bundle_dir, audit_bundle)

        assert fake_executor.calls == [
            [
                "operator-sdk",
                "bundle",
                "validate",
                str(bundle_dir),
                "--select-optional",
                "suite=operatorframework",
                "--output",
                "json-alpha1",
            ]
        ]
        assert audit_bundle.validators_ran is True
        assert audit_bundle.validator_errors == []

    def test_command_failure_without_report(self, fake_executor, bundle_dir, audit_bundle):
        fake_executor.on("operator-sdk", returncode=127, stderr="operator-sdk: command not found")

        ValidatorRunner(fake_executor).run(bundle_dir, audit_bundle)

        assert audit_bundle.validators_ran is False
        assert [e.code for e in audit_bundle.errors] == ["COMMAND_FAILED"]

    def test_unparseable_output(self, fake_executor, bundle_dir, audit_bundle):
        fake_executor.on("operator-sdk", stdout="time=... level=info msg=validating")

        ValidatorRunner(fake_executor).run(bundle_dir, audit_bundle)

        assert [e.code for e in audit_bundle.errors] == ["INVALID_MANIFEST"]


class TestScorecardRunner:
    def test_records_failing_tests_and_suggestions(self, fake_executor, bundle_dir, audit_bundle, scorecard_output):
        fake_executor.on("operator-sdk", "scorecard", returncode=1, stdout=scorecard_output)

        ScorecardRunner(fake_executor).run(bundle_dir, audit_bundle)

        assert audit_bundle.scorecard_ran is True
        assert audit_bundle.scorecard_failing_tests == ["basic-check-spec"]
        assert audit_bundle.scorecard_suggestions == ["Add a spec to your CR"]
        assert audit_bundle.errors == []

    def test_wait_time(self, fake_executor, bundle_dir, audit_bundle, scorecard_output):
        fake_executor.on("operator-sdk", "scorecard", stdout=scorecard_output)

        ScorecardRunner(fake_executor, wait_time="30s").run(bundle_dir, audit_bundle)

        assert fake_executor.calls[0][-2:] == ["--wait-time", "30s"]

    def test_command_failure(self, fake_executor, bundle_dir, audit_bundle):
        fake_executor.on("operator-sdk", "scorecard", returncode=1, stderr="no cluster")

        ScorecardRunner(fake_executor).run(bundle_dir, audit_bundle)

        assert audit_bundle.scorecard_ran is False
        assert "no cluster" in audit_bundle.errors[0].message

    def test_detects_custom_tests(self, fake_executor, bundle_dir, make_files, audit_bundle, scorecard_output):
        make_files(
            bundle_dir,
            {"tests/scorecard/config.yaml": SCORECARD_CONFIG.format(image="quay.io/me/custom-test:v1")},
        )
        fake_executor.on("operator-sdk", "scorecard", stdout=scorecard_output)

        ScorecardRunner(fake_executor).run(bundle_dir, audit_bundle)

        assert audit_bundle.has_custom_scorecard_tests is True


class TestHasCustomScorecardTests:
    def test_no_config(self, bundle_dir):
        assert has_custom_scorecard_tests(bundle_dir) is False

    def test_stock_image_only(self, bundle_dir, make_files):
        make_files(
            bundle_dir,
            {"tests/scorecard/config.yaml": SCORECARD_CONFIG.format(image="quay.io/operator-framework/scorecard-test:v1.8.0")},
        )
        assert has_custom_scorecard_tests(bundle_dir) is False

    def test_custom_image(self, bundle_dir, make_files):
        make_files(
            bundle_dir,
            {"tests/scorecard/config.yaml": SCORECARD_CONFIG.format(image="quay.io/me/custom-test:v1")},
        )
        assert has_custom_scorecard_tests(bundle_dir) is True

    def test_invalid_config(self, bundle_dir, make_files):
        make_files(bundle_dir, {"tests/scorecard/config.yaml": "stages: [unclosed"})
        with pytest.raises(ManifestError, match="unable to read the scorecard config"):
            has_custom_scorecard_tests(bundle_dir)

    def test_list_config(self, bundle_dir, make_files):
        make_files(bundle_dir, {"tests/scorecard/config.yaml": "- just\n- a list\n"})
        with pytest.raises(ManifestError, match="not a mapping"):
            has_custom_scorecard_tests(bundle_dir)

    def test_undecodable_config(self, bundle_dir):
        path = bundle_dir / "tests" / "scorecard" / "config.yaml"
        path.parent.mkdir(parents=True)
        path.write_bytes(b"stages: \xff\xfe")
        with pytest.raises(ManifestError):
            has_custom_scorecard_tests(bundle_dir)

    def test_misshapen_stages_are_ignored(self, bundle_dir, make_files):
        make_files(bundle_dir, {"tests/scorecard/config.yaml": "stages:\n  - oops\n  - tests: [basic]\n"})
        assert has_custom_scorecard_tests(bundle_dir) is False

    def test_empty_config(self, bundle_dir, make_files):
        make_files(bundle_dir, {"tests/scorecard/config.yaml": ""})
        assert has_custom_scorecard_tests(bundle_dir) is False


class TestScorecardConfigErrors:
    def test_list_config_is_recorded_and_scorecard_still_runs(
        self, fake_executor, bundle_dir, make_files, audit_bundle, scorecard_output
    ):
        make_files(bundle_dir, {"tests/scorecard/config.yaml": "- just\n- a list\n"})
        fake_executor.on("operator-sdk", "scorecard", stdout=scorecard_output)

        ScorecardRunner(fake_executor).run(bundle_dir, audit_bundle)

        assert audit_bundle.has_custom_scorecard_tests is False
        assert [e.code for e in audit_bundle.errors] == ["INVALID_MANIFEST"]
        assert audit_bundle.errors[0].category == ErrorCategory.DATA
        assert audit_bundle.scorecard_ran is True
        assert audit_bundle.scorecard_failing_tests == ["basic-check-spec"]

    def test_misshapen_scorecard_output(self, fake_executor, bundle_dir, audit_bundle):
        output = json.dumps({"items": ["oops", {"status": "done"}, {"status": {"results": ["x"]}}]})
        fake_executor.on("operator-sdk", "scorecard", stdout=output)

        ScorecardRunner(fake_executor).run(bundle_dir, audit_bundle)

        assert audit_bundle.scorecard_ran is True
        assert audit_bundle.scorecard_failing_tests == []

    def test_misshapen_validator_output(self, fake_executor, bundle_dir, audit_bundle):
        output = json.dumps({"passed": False, "outputs": ["oops", {"type": "error", "message": "bad"}]})
        fake_executor.on("operator-sdk", "bundle", returncode=1, stdout=output)

        ValidatorRunner(fake_executor).run(bundle_dir, audit_bundle)

        assert audit_bundle.validator_errors == ["bad"]
