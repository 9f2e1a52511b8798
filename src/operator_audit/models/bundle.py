"""Operator bundle data models."""

from typing import Any

from pydantic import BaseModel, Field

from operator_audit.models.common import AuditError

INSTALL_MODES = ("OwnNamespace", "SingleNamespace", "MultiNamespace", "AllNamespaces")


class ManifestObject(BaseModel):
    """A Kubernetes object shipped in the bundle's manifests directory."""

    model_config = {"frozen": True}

    api_version: str = Field(default="", description="apiVersion of the object")
    kind: str = Field(default="", description="kind of the object")
    name: str = Field(default="", description="metadata.name of the object")
    file: str = Field(default="", description="File the object was read from")


class ContainerInfo(BaseModel):
    """A container declared by one of the CSV's deployments."""

    model_config = {"frozen": True}

    deployment: str = Field(description="Deployment name")
    name: str = Field(description="Container name")
    image: str = Field(default="", description="Container image")
    has_requests: bool = Field(default=False, description="resources.requests is set")
    has_limits: bool = Field(default=False, description="resources.limits is set")


class OperatorBundle(BaseModel):
    """The on-disk bundle after extraction, parsed."""

    model_config = {"frozen": True}

    csv_name: str = Field(description="ClusterServiceVersion name")
    version: str = Field(default="", description="spec.version of the CSV")
    replaces: str | None = Field(default=None, description="spec.replaces of the CSV")
    skips: list[str] = Field(default_factory=list, description="spec.skips of the CSV")
    skip_range: str | None = Field(default=None, description="olm.skipRange annotation")
    install_modes: dict[str, bool] = Field(
        default_factory=dict,
        description="Supported install mode types",
    )
    webhook_definitions: int = Field(default=0, description="Number of webhook definitions")
    infrastructure_features: list[str] = Field(
        default_factory=list,
        description="operators.openshift.io/infrastructure-features values",
    )
    architectures: list[str] = Field(default_factory=list, description="Supported architectures")
    containers: list[ContainerInfo] = Field(default_factory=list)
    objects: list[ManifestObject] = Field(
        default_factory=list,
        description="Every object found in the manifests directory, CSV included",
    )
    annotations: dict[str, str] = Field(
        default_factory=dict,
        description="metadata/annotations.yaml entries",
    )
    csv_annotations: dict[str, str] = Field(default_factory=dict)

    @property
    def has_webhooks(self) -> bool:
        return self.webhook_definitions > 0

    def supports(self, install_mode: str) -> bool:
        return self.install_modes.get(install_mode, False)


class AuditBundle(BaseModel):
    """One bundle under audit, filled in stage by stage."""

    operator_bundle_name: str = Field(description="Bundle name")
    operator_bundle_image_path: str = Field(default="", description="Bundle image reference")
    package_name: str = Field(default="", description="Owning package")
    default_channel: str = Field(default="", description="Package default channel")
    channels: list[str] = Field(default_factory=list, description="Channels with this bundle")
    is_head_of_channel: bool = Field(default=False)
    version: str | None = Field(default=None, description="Version declared by the index")
    replaces: str | None = Field(default=None)
    skips: list[str] = Field(default_factory=list)
    skip_range: str | None = Field(default=None)

    bundle: OperatorBundle | None = Field(default=None, description="Parsed bundle manifests")
    errors: list[AuditError] = Field(default_factory=list)

    build_at: str = Field(default="", description="Image build timestamp")
    ocp_label: str = Field(default="", description="com.redhat.openshift.versions label")
    found_label: bool = Field(default=False, description="The requested label/value was found")

    scorecard_ran: bool = Field(default=False)
    scorecard_failing_tests: list[str] = Field(default_factory=list)
    scorecard_suggestions: list[str] = Field(default_factory=list)
    has_custom_scorecard_tests: bool = Field(default=False)

    validators_ran: bool = Field(default=False)
    validator_errors: list[str] = Field(default_factory=list)
    validator_warnings: list[str] = Field(default_factory=list)

    def add_error(self, error: Any) -> None:
        """Record an error; accepts an AuditError or an exception with to_audit_error()."""
        if not isinstance(error, AuditError):
            error = error.to_audit_error()
        self.errors.append(error)

    @property
    def error_messages(self) -> list[str]:
        return [e.message for e in self.errors]
