"""operator-audit: audit the operator bundles published in an OLM index image.

For every bundle of an index image the tool pulls the bundle image,
rebuilds its files, runs the operator-sdk validators and scorecard, and
derives findings such as deprecated API usage, invalid versioning or
missing resource limits. Results are written as JSON and as styled
spreadsheets, per bundle, per package or per channel.

Usage:
    # Library API
    from operator_audit import Auditor, RunConfig

    auditor = Auditor(RunConfig(output_path="reports", disable_scorecard=True))
    report = auditor.run("bundles", "registry.redhat.io/redhat/redhat-operator-index:v4.9")
    report.write()

CLI:
    operator-audit index bundles --index-image <image>
    operator-audit index packages --index-image <image> --output xlsx
    operator-audit index channels --index-image <image>
    operator-audit dashboard-index --root <dir>
"""

__version__ = "0.1.0"

# Core classes
from operator_audit.core.audit import Auditor, BundleProcessor
from operator_audit.core.executor import CommandExecutor, CommandResult, SubprocessExecutor

# Models (commonly used)
from operator_audit.models.bundle import AuditBundle, OperatorBundle
from operator_audit.models.catalog import IndexCatalog
from operator_audit.models.common import AuditError

# Reports
from operator_audit.reports.base import BaseReport, OutputFormat, ReportFlags
from operator_audit.reports.index_page import generate_index_page

# Configuration
from operator_audit.utils.config import AuditConfig, RunConfig

__all__ = [
    # Version
    "__version__",
    # Core
    "Auditor",
    "BundleProcessor",
    "CommandExecutor",
    "CommandResult",
    "SubprocessExecutor",
    # Models
    "AuditBundle",
    "OperatorBundle",
    "IndexCatalog",
    "AuditError",
    # Reports
    "BaseReport",
    "OutputFormat",
    "ReportFlags",
    "generate_index_page",
    # Config
    "AuditConfig",
    "RunConfig",
]
