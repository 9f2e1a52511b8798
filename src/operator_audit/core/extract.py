"""Reconstruction of a bundle's files from its container image."""

from __future__ import annotations

import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from pydantic import ValidationError as PydanticValidationError

from operator_audit.core.executor import CommandExecutor
from operator_audit.models.bundle import AuditBundle
from operator_audit.models.image import LayerManifest, LayerManifestList
from operator_audit.utils.errors import (
    CommandError,
    ExtractionError,
    ImageDownloadError,
    ManifestError,
)
from operator_audit.utils.logging import get_logger, get_logger_with_context

logger = get_logger(__name__)

WHITEOUT_PREFIX = ".wh."
OPAQUE_WHITEOUT = ".wh..wh..opq"
LAYER_MANIFEST = "manifest.json"
IMPLICIT_LAYER = "layer.tar"
BUNDLE_SUBDIR = "bundle"
ROOT_OWNED_SUBDIR = "root"


class BundleExtractor:
    """Pulls a bundle image and unpacks its layers into a directory.

    All steps are best-effort: failures are recorded on the AuditBundle
    and the next step still runs, so that one broken image never stops
    the audit of an index.

    Example:
        extractor = BundleExtractor(SubprocessExecutor(), work_dir="./tmp")
        with extractor.unpacked(audit_bundle) as bundle_dir:
            if bundle_dir is not None:
                bundle = load_bundle_from_dir(bundle_dir)
    """

    def __init__(
        self,
        executor: CommandExecutor,
        work_dir: Path | str = "./tmp",
        engine: str = "docker",
        server_mode: bool = False,
    ) -> None:
        """Initialize the extractor.

        Args:
            executor: Runs the container runtime and tar
            work_dir: Parent of the per-bundle scratch directories
            engine: Container runtime binary
            server_mode: Keep pulled images cached after extraction
        """
        self._executor = executor
        self._work_dir = Path(work_dir)
        self._engine = engine
        self._server_mode = server_mode

    @contextmanager
    def unpacked(self, audit_bundle: AuditBundle) -> Iterator[Path | None]:
        """Download and unpack a bundle, cleaning up on exit.

        Yields the reconstructed bundle directory, or None when the image
        could not be downloaded. The scratch directory is removed however
        the block exits.
        """
        if not audit_bundle.operator_bundle_image_path:
            audit_bundle.add_error(
                ManifestError("not found bundle path stored in the index")
            )
            yield None
            return

        try:
            self.download_image(audit_bundle.operator_bundle_image_path)
        except ImageDownloadError as e:
            logger.error(e.message)
            audit_bundle.add_error(e)
            yield None
            return

        bundle_dir = self.create_bundle_dir(audit_bundle)
        try:
            yield self.extract_bundle_from_image(audit_bundle, bundle_dir)
        finally:
            self.cleanup_bundle_dir(audit_bundle, bundle_dir)

    def download_image(self, reference: str) -> None:
        """Pull an image.

        Raises:
            ImageDownloadError: If the pull fails
        """
        result = self._executor.run(self._engine, ["pull", reference])
        if not result.ok:
            raise ImageDownloadError(reference, (result.stderr or result.stdout).strip())

    def create_bundle_dir(self, audit_bundle: AuditBundle) -> Path:
        """Create an empty scratch directory for a bundle."""
        bundle_dir = self._work_dir / audit_bundle.operator_bundle_name
        try:
            if bundle_dir.exists():
                shutil.rmtree(bundle_dir)
            bundle_dir.mkdir(parents=True)
        except OSError as e:
            audit_bundle.add_error(
                ExtractionError(f"unable to create the dir for the bundle: {e}", path=str(bundle_dir))
            )
        return bundle_dir

    def extract_bundle_from_image(self, audit_bundle: AuditBundle, bundle_dir: Path) -> Path:
        """Save the image and unpack its layers into `<bundle_dir>/bundle`.

        Layers are applied in manifest order, so a path present in several
        layers ends up with the content of the last one.

        Returns:
            The reconstructed bundle directory
        """
        log = get_logger_with_context(__name__, bundle=audit_bundle.operator_bundle_name)
        image_name = audit_bundle.operator_bundle_image_path.split("@")[0]
        tar_path = bundle_dir / f"{audit_bundle.operator_bundle_name}.tar"
        target = bundle_dir / BUNDLE_SUBDIR

        self._record(
            audit_bundle,
            log,
            "unable to save the bundle image",
            self._engine,
            ["save", image_name, "-o", str(tar_path)],
        )
        self._record(
            audit_bundle,
            log,
            "unable to untar the bundle image",
            "tar",
            ["-xvf", str(tar_path), "-C", str(bundle_dir)],
        )

        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            log.error("error to create the bundle dir: %s", e)
            audit_bundle.add_error(
                ExtractionError(f"error to create the bundle dir: {e}", path=str(target))
            )

        for layer in self._layers(audit_bundle, bundle_dir, log):
            self._record(
                audit_bundle,
                log,
                "error to untar layers",
                "tar",
                ["-xvf", str(bundle_dir / layer), "-C", str(target)],
            )
            apply_whiteouts(target)

        shutil.rmtree(target / ROOT_OWNED_SUBDIR, ignore_errors=True)
        return target

    def cleanup_bundle_dir(self, audit_bundle: AuditBundle, bundle_dir: Path) -> None:
        """Remove the scratch directory and, outside server mode, the image."""
        shutil.rmtree(bundle_dir, ignore_errors=True)

        if not self._server_mode:
            result = self._executor.run(self._engine, ["rmi", audit_bundle.operator_bundle_image_path])
            if not result.ok:
                logger.debug(
                    "unable to remove image %s: %s",
                    audit_bundle.operator_bundle_image_path,
                    result.stderr.strip(),
                )

    def _layers(self, audit_bundle: AuditBundle, bundle_dir: Path, log) -> list[str]:
        manifest_path = bundle_dir / LAYER_MANIFEST
        if not manifest_path.is_file():
            # No manifest: the archive holds a single layer
            return [IMPLICIT_LAYER]

        try:
            entries: list[LayerManifest] = LayerManifestList.validate_json(manifest_path.read_text())
        except (OSError, PydanticValidationError) as e:
            log.error("unable to parse %s: %s", LAYER_MANIFEST, e)
            audit_bundle.add_error(
                ManifestError(f"unable to parse {LAYER_MANIFEST}: {e}", path=str(manifest_path))
            )
            return []

        if not entries:
            log.error("error to untar layers: %s lists no image", LAYER_MANIFEST)
            audit_bundle.add_error(
                ManifestError(
                    f"error to untar layers: {LAYER_MANIFEST} lists no image",
                    path=str(manifest_path),
                )
            )
            return []

        return list(entries[0].layers)

    def _record(self, audit_bundle: AuditBundle, log, message: str, name: str, args: list[str]) -> bool:
        result = self._executor.run(name, args)
        if result.ok:
            return True
        error = CommandError(result.command, result.returncode, result.stderr)
        log.error("%s: %s", message, error.message)
        audit_bundle.add_error(ExtractionError(f"{message}: {error.message}"))
        return False


def apply_whiteouts(root: Path) -> int:
    """Apply and delete the whiteout markers found under a directory.

    A `.wh.<name>` marker deletes `<name>` next to it; an opaque marker
    is simply dropped.

    Returns:
        The number of markers removed
    """
    markers = sorted(
        (p for p in root.rglob(f"{WHITEOUT_PREFIX}*") if p.name.startswith(WHITEOUT_PREFIX)),
        key=lambda p: len(p.parts),
    )
    removed = 0
    for marker in markers:
        if not marker.exists() and not marker.is_symlink():
            continue
        if marker.name != OPAQUE_WHITEOUT:
            _remove(marker.with_name(marker.name[len(WHITEOUT_PREFIX):]))
        _remove(marker)
        removed += 1
    return removed


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path, ignore_errors=True)
    else:
        path.unlink(missing_ok=True)
