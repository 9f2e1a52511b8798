"""Models describing the contents of an index image."""

from pydantic import BaseModel, Field


class ChannelEntry(BaseModel):
    """One bundle's position in a channel's upgrade graph."""

    model_config = {"frozen": True}

    name: str = Field(description="Bundle name")
    replaces: str | None = Field(default=None, description="Bundle this entry replaces")
    skips: list[str] = Field(default_factory=list, description="Bundles this entry skips")
    skip_range: str | None = Field(default=None, description="olm.skipRange expression")


class ChannelInfo(BaseModel):
    """A channel of a package."""

    model_config = {"frozen": True}

    name: str = Field(description="Channel name")
    package: str = Field(description="Owning package name")
    entries: list[ChannelEntry] = Field(default_factory=list, description="Channel entries")

    @property
    def heads(self) -> list[str]:
        """Entries that no other entry replaces or skips."""
        superseded: set[str] = set()
        for entry in self.entries:
            if entry.replaces:
                superseded.add(entry.replaces)
            superseded.update(entry.skips)
        return [e.name for e in self.entries if e.name not in superseded]

    @property
    def is_using_skips(self) -> bool:
        return any(e.skips for e in self.entries)

    @property
    def is_using_skip_range(self) -> bool:
        return any(e.skip_range for e in self.entries)

    def entry(self, bundle_name: str) -> ChannelEntry | None:
        """Get the entry for a bundle, if it is in this channel."""
        for entry in self.entries:
            if entry.name == bundle_name:
                return entry
        return None


class BundleInfo(BaseModel):
    """A bundle as declared by the index."""

    model_config = {"frozen": True}

    name: str = Field(description="Bundle name")
    package: str = Field(description="Owning package name")
    image: str = Field(default="", description="Bundle image reference")
    version: str | None = Field(default=None, description="Version from olm.package property")


class PackageInfo(BaseModel):
    """A package of the index with its channels."""

    model_config = {"frozen": True}

    name: str = Field(description="Package name")
    default_channel: str = Field(default="", description="Default channel name")
    channels: list[ChannelInfo] = Field(default_factory=list, description="Package channels")

    @property
    def is_multi_channel(self) -> bool:
        return len(self.channels) > 1

    @property
    def heads(self) -> list[str]:
        """Head bundles of every channel, without duplicates."""
        seen: list[str] = []
        for channel in self.channels:
            for head in channel.heads:
                if head not in seen:
                    seen.append(head)
        return seen

    def channels_of(self, bundle_name: str) -> list[str]:
        """Names of the channels that contain a bundle."""
        return [c.name for c in self.channels if c.entry(bundle_name) is not None]


class IndexCatalog(BaseModel):
    """Everything the index declares."""

    model_config = {"frozen": True}

    image: str = Field(description="Index image reference")
    packages: list[PackageInfo] = Field(default_factory=list)
    bundles: list[BundleInfo] = Field(default_factory=list)

    def package(self, name: str) -> PackageInfo | None:
        for package in self.packages:
            if package.name == name:
                return package
        return None

    def bundle(self, name: str) -> BundleInfo | None:
        for bundle in self.bundles:
            if bundle.name == name:
                return bundle
        return None
