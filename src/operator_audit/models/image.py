"""Image-related data models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class DockerInspectManifest(BaseModel):
    """The parts of `docker inspect` output the audit cares about."""

    model_config = {"frozen": True}

    id: str = Field(default="", description="Image ID")
    created: str = Field(default="", description="Image creation timestamp as reported")
    architecture: str | None = Field(default=None, description="Target architecture")
    os: str | None = Field(default=None, description="Target operating system")
    labels: dict[str, str] = Field(default_factory=dict, description="Container labels")

    @classmethod
    def from_inspect(cls, data: dict[str, Any]) -> "DockerInspectManifest":
        """Build from one element of the `docker inspect` JSON list."""
        config = data.get("Config") or {}
        return cls(
            id=data.get("Id") or "",
            created=data.get("Created") or "",
            architecture=data.get("Architecture"),
            os=data.get("Os"),
            labels=config.get("Labels") or {},
        )

    @property
    def build_date(self) -> str:
        """Creation time, falling back to the `build-date` label."""
        if self.created:
            return self.created
        return self.labels.get("build-date", "")

    @property
    def ocp_versions(self) -> str:
        """OpenShift versions the image declares support for."""
        return self.labels.get("com.redhat.openshift.versions", "")


class LayerManifest(BaseModel):
    """One entry of the `manifest.json` written by `docker save`."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    config: str = Field(default="", alias="Config", description="Config blob file")
    repo_tags: list[str] | None = Field(default=None, alias="RepoTags")
    layers: list[str] = Field(default_factory=list, alias="Layers", description="Layer archives")


LayerManifestList = TypeAdapter(list[LayerManifest])
