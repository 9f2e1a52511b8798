"""Error records attached to audited bundles."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCategory(str, Enum):
    """Broad class of an audit failure."""

    ENVIRONMENT = "environment"
    DATA = "data"
    REPORT = "report"


class AuditError(BaseModel):
    """One failure recorded while auditing a bundle, kept instead of a bare string."""

    model_config = {"frozen": True}

    code: str = Field(description="Stable code, e.g. IMAGE_DOWNLOAD_FAILED")
    category: ErrorCategory = Field(
        default=ErrorCategory.ENVIRONMENT,
        description="Which stage of the audit the error belongs to",
    )
    message: str = Field(description="Message shown in the Issues column")
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Command, path or reference involved",
    )

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"
