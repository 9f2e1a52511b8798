"""Container image inspection."""

from __future__ import annotations

import json

from operator_audit.core.executor import CommandExecutor
from operator_audit.models.image import DockerInspectManifest
from operator_audit.utils.errors import ManifestError


class ImageInspector:
    """Reads image metadata through the container runtime.

    Example:
        inspector = ImageInspector(SubprocessExecutor())
        manifest = inspector.inspect("quay.io/operatorhubio/catalog:latest")
        print(manifest.build_date, manifest.ocp_versions)
    """

    def __init__(self, executor: CommandExecutor, engine: str = "docker") -> None:
        self._executor = executor
        self._engine = engine

    def inspect(self, reference: str) -> DockerInspectManifest:
        """Inspect an image that is present in the local cache.

        Args:
            reference: Image reference or ID

        Returns:
            Parsed inspection data

        Raises:
            CommandError: If the runtime fails to inspect the image
            ManifestError: If the output cannot be parsed
        """
        result = self._executor.run(self._engine, ["inspect", reference]).check()
        return self.parse(result.stdout, reference)

    def pull(self, reference: str) -> None:
        """Pull an image into the local cache.

        Raises:
            CommandError: If the pull fails
        """
        self._executor.run(self._engine, ["pull", reference]).check()

    @staticmethod
    def parse(output: str, reference: str = "") -> DockerInspectManifest:
        """Parse the JSON list printed by `docker inspect`."""
        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            raise ManifestError(f"unable to parse inspect output for {reference}: {e}")

        if isinstance(data, list):
            if not data:
                raise ManifestError(f"inspect returned no data for {reference}")
            data = data[0]
        if not isinstance(data, dict):
            raise ManifestError(f"unexpected inspect output for {reference}")

        return DockerInspectManifest.from_inspect(data)
