"""Error handling utilities for operator-audit."""

from __future__ import annotations

from typing import Any

from operator_audit.models.common import AuditError, ErrorCategory


class OperatorAuditError(Exception):
    """Base exception for operator-audit."""

    category = ErrorCategory.ENVIRONMENT

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_audit_error(self) -> AuditError:
        """Convert to AuditError model."""
        return AuditError(
            code=self.code,
            category=self.category,
            message=self.message,
            details=self.details,
        )


class CommandError(OperatorAuditError):
    """An external command exited with a failure status."""

    def __init__(self, command: list[str], returncode: int, stderr: str = ""):
        output = stderr.strip()
        message = f"command '{' '.join(command)}' failed with exit status {returncode}"
        if output:
            message = f"{message}: {output}"
        super().__init__(
            message,
            code="COMMAND_FAILED",
            details={"command": command, "returncode": returncode},
        )
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class ImageDownloadError(OperatorAuditError):
    """A container image could not be pulled."""

    def __init__(self, reference: str, reason: str):
        super().__init__(
            f"unable to download container image ({reference}): {reason}",
            code="IMAGE_DOWNLOAD_FAILED",
            details={"reference": reference},
        )


class ExtractionError(OperatorAuditError):
    """Saving or unpacking an image failed."""

    def __init__(self, message: str, path: str | None = None):
        details = {"path": path} if path else {}
        super().__init__(message, code="EXTRACTION_FAILED", details=details)


class ManifestError(OperatorAuditError):
    """Image or bundle metadata could not be parsed."""

    category = ErrorCategory.DATA

    def __init__(self, message: str, path: str | None = None):
        details = {"path": path} if path else {}
        super().__init__(message, code="INVALID_MANIFEST", details=details)


class ReportError(OperatorAuditError):
    """A report could not be written."""

    category = ErrorCategory.REPORT

    def __init__(self, message: str, path: str | None = None):
        details = {"path": path} if path else {}
        super().__init__(message, code="REPORT_FAILED", details=details)


class ValidationError(OperatorAuditError):
    """User input failed validation."""

    category = ErrorCategory.DATA

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class ConfigurationError(OperatorAuditError):
    """Configuration error."""

    category = ErrorCategory.DATA

    def __init__(self, message: str, config_key: str | None = None):
        details = {"config_key": config_key} if config_key else {}
        super().__init__(message, code="CONFIG_ERROR", details=details)


def validate_image_reference(reference: str) -> None:
    """Validate an image reference string before it reaches a command line.

    Args:
        reference: Image reference to validate

    Raises:
        ValidationError: If reference is invalid
    """
    if not reference:
        raise ValidationError("Image reference cannot be empty", field="reference")

    if reference.startswith("-"):
        raise ValidationError("Image reference cannot start with '-'", field="reference")

    invalid_chars = set("<>|\"'\\;& \t\n")
    for char in sorted(invalid_chars):
        if char in reference:
            raise ValidationError(
                f"Image reference contains invalid character: {char!r}",
                field="reference",
            )

    parts = reference.split("/")
    if len(parts) > 10:
        raise ValidationError("Image reference has too many path components", field="reference")
