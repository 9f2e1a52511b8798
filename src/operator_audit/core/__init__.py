"""Core audit logic for operator-audit.

The Auditor lives in operator_audit.core.audit and is not re-exported
here, since the report modules depend on operator_audit.core.findings.
"""

from operator_audit.core.executor import CommandExecutor, CommandResult, SubprocessExecutor
from operator_audit.core.inspect import ImageInspector
from operator_audit.core.index import IndexReader
from operator_audit.core.manifests import load_bundle_from_dir
from operator_audit.core.extract import BundleExtractor, apply_whiteouts
from operator_audit.core.checks import ScorecardRunner, ValidatorRunner, has_custom_scorecard_tests

__all__ = [
    # Commands
    "CommandExecutor",
    "CommandResult",
    "SubprocessExecutor",
    # Index and images
    "ImageInspector",
    "IndexReader",
    "BundleExtractor",
    "apply_whiteouts",
    "load_bundle_from_dir",
    # Checks
    "ScorecardRunner",
    "ValidatorRunner",
    "has_custom_scorecard_tests",
]
