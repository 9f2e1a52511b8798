"""Enumeration of the packages, channels and bundles of an index image."""

from __future__ import annotations

import json
from typing import Any, Iterator

from operator_audit.core.executor import CommandExecutor
from operator_audit.models.catalog import (
    BundleInfo,
    ChannelEntry,
    ChannelInfo,
    IndexCatalog,
    PackageInfo,
)
from operator_audit.utils.errors import ManifestError
from operator_audit.utils.logging import get_logger

logger = get_logger(__name__)

SCHEMA_PACKAGE = "olm.package"
SCHEMA_CHANNEL = "olm.channel"
SCHEMA_BUNDLE = "olm.bundle"


class IndexReader:
    """Reads the declarative config of an index image with `opm render`.

    Example:
        reader = IndexReader(SubprocessExecutor())
        catalog = reader.read("quay.io/operatorhubio/catalog:latest")
        for package in catalog.packages:
            print(package.name, package.heads)
    """

    def __init__(self, executor: CommandExecutor, opm: str = "opm") -> None:
        self._executor = executor
        self._opm = opm

    def read(self, image: str) -> IndexCatalog:
        """Render the index and build its catalog.

        Raises:
            CommandError: If opm fails
            ManifestError: If the rendered output is not valid JSON
        """
        logger.info("rendering index image %s", image)
        result = self._executor.run(self._opm, ["render", image, "--output", "json"]).check()
        return self.parse(result.stdout, image)

    @staticmethod
    def parse(output: str, image: str = "") -> IndexCatalog:
        """Build a catalog from a stream of concatenated JSON objects."""
        packages: dict[str, dict[str, Any]] = {}
        channels: list[ChannelInfo] = []
        bundles: list[BundleInfo] = []

        for blob in _iter_json_objects(output):
            schema = blob.get("schema")
            try:
                if schema == SCHEMA_PACKAGE:
                    packages[blob["name"]] = {"default_channel": blob.get("defaultChannel") or ""}
                elif schema == SCHEMA_CHANNEL:
                    channels.append(_parse_channel(blob))
                elif schema == SCHEMA_BUNDLE:
                    bundles.append(_parse_bundle(blob))
            except KeyError as e:
                raise ManifestError(f"{schema} blob in rendered index is missing {e}")

        for channel in channels:
            packages.setdefault(channel.package, {"default_channel": ""})

        package_infos = [
            PackageInfo(
                name=name,
                default_channel=info["default_channel"],
                channels=sorted(
                    (c for c in channels if c.package == name),
                    key=lambda c: c.name,
                ),
            )
            for name, info in sorted(packages.items())
        ]
        logger.debug(
            "index %s has %d packages and %d bundles", image, len(package_infos), len(bundles)
        )
        return IndexCatalog(image=image, packages=package_infos, bundles=bundles)


def _iter_json_objects(output: str) -> Iterator[dict[str, Any]]:
    decoder = json.JSONDecoder()
    position = 0
    length = len(output)
    while True:
        while position < length and output[position].isspace():
            position += 1
        if position >= length:
            return
        try:
            blob, position = decoder.raw_decode(output, position)
        except json.JSONDecodeError as e:
            raise ManifestError(f"unable to parse rendered index: {e}")
        if isinstance(blob, dict):
            yield blob


def _parse_channel(blob: dict[str, Any]) -> ChannelInfo:
    entries = [
        ChannelEntry(
            name=entry["name"],
            replaces=entry.get("replaces") or None,
            skips=entry.get("skips") or [],
            skip_range=entry.get("skipRange") or None,
        )
        for entry in blob.get("entries") or []
    ]
    return ChannelInfo(name=blob["name"], package=blob.get("package", ""), entries=entries)


def _parse_bundle(blob: dict[str, Any]) -> BundleInfo:
    version = None
    for prop in blob.get("properties") or []:
        if prop.get("type") == SCHEMA_PACKAGE:
            version = (prop.get("value") or {}).get("version")
            break
    return BundleInfo(
        name=blob["name"],
        package=blob.get("package", ""),
        image=blob.get("image") or "",
        version=version,
    )
