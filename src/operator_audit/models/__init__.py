"""Data models for operator-audit.

Models describing inputs are frozen. AuditBundle is the one mutable
model: each pipeline stage fills it in.
"""

from operator_audit.models.common import AuditError, ErrorCategory
from operator_audit.models.image import DockerInspectManifest, LayerManifest
from operator_audit.models.catalog import (
    BundleInfo,
    ChannelEntry,
    ChannelInfo,
    IndexCatalog,
    PackageInfo,
)
from operator_audit.models.bundle import (
    INSTALL_MODES,
    AuditBundle,
    ContainerInfo,
    ManifestObject,
    OperatorBundle,
)

__all__ = [
    # Common
    "AuditError",
    "ErrorCategory",
    # Image
    "DockerInspectManifest",
    "LayerManifest",
    # Catalog
    "BundleInfo",
    "ChannelEntry",
    "ChannelInfo",
    "IndexCatalog",
    "PackageInfo",
    # Bundle
    "INSTALL_MODES",
    "AuditBundle",
    "ContainerInfo",
    "ManifestObject",
    "OperatorBundle",
]
