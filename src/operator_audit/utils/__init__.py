"""Utility functions for operator-audit."""

from operator_audit.utils.logging import configure_logging, get_logger, get_logger_with_context
from operator_audit.utils.errors import (
    OperatorAuditError,
    CommandError,
    ImageDownloadError,
    ExtractionError,
    ManifestError,
    ReportError,
    ValidationError,
    ConfigurationError,
    validate_image_reference,
)
from operator_audit.utils.config import (
    AuditConfig,
    RunConfig,
    DEFAULT_CATALOGS,
    load_config,
    save_config,
    get_config,
    set_config,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "get_logger_with_context",
    # Errors
    "OperatorAuditError",
    "CommandError",
    "ImageDownloadError",
    "ExtractionError",
    "ManifestError",
    "ReportError",
    "ValidationError",
    "ConfigurationError",
    "validate_image_reference",
    # Config
    "AuditConfig",
    "RunConfig",
    "DEFAULT_CATALOGS",
    "load_config",
    "save_config",
    "get_config",
    "set_config",
]
