"""Loading of an extracted bundle directory."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from operator_audit.models.bundle import ContainerInfo, ManifestObject, OperatorBundle
from operator_audit.utils.errors import ManifestError

CSV_KIND = "ClusterServiceVersion"
MANIFEST_SUFFIXES = {".yaml", ".yml", ".json"}
ARCH_LABEL_PREFIX = "operatorframework.io/arch."
INFRA_ANNOTATION = "operators.openshift.io/infrastructure-features"
SKIP_RANGE_ANNOTATION = "olm.skipRange"


def load_bundle_from_dir(bundle_dir: Path | str) -> OperatorBundle:
    """Read the manifests and metadata of an unpacked bundle.

    Values of an unexpected shape (a string where a mapping belongs, and so
    on) are read as empty rather than failing the bundle.

    Args:
        bundle_dir: Directory holding `manifests/` and optionally `metadata/`

    Returns:
        The parsed bundle

    Raises:
        ManifestError: If the directory has no manifests or no CSV, or a
            file cannot be read or parsed
    """
    bundle_dir = Path(bundle_dir)
    manifests_dir = bundle_dir / "manifests"
    if not manifests_dir.is_dir():
        raise ManifestError(f"no manifests directory in {bundle_dir}", path=str(bundle_dir))

    csv: dict[str, Any] | None = None
    objects: list[ManifestObject] = []
    for path in sorted(manifests_dir.iterdir()):
        if not path.is_file() or path.suffix not in MANIFEST_SUFFIXES:
            continue
        for doc in _load_documents(path):
            metadata = _mapping(doc.get("metadata"))
            objects.append(
                ManifestObject(
                    api_version=str(doc.get("apiVersion", "")),
                    kind=str(doc.get("kind", "")),
                    name=str(metadata.get("name", "")),
                    file=path.name,
                )
            )
            if doc.get("kind") == CSV_KIND and csv is None:
                csv = doc

    if csv is None:
        raise ManifestError(f"no {CSV_KIND} found in {manifests_dir}", path=str(manifests_dir))

    return _build_bundle(csv, objects, _load_annotations(bundle_dir / "metadata"))


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _sequence(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (UnicodeDecodeError, OSError) as e:
        raise ManifestError(f"unable to read {path.name}: {e}", path=str(path)) from e


def _load_documents(path: Path) -> list[dict[str, Any]]:
    text = _read_text(path)
    try:
        docs = list(yaml.safe_load_all(text))
    except yaml.YAMLError as e:
        raise ManifestError(f"unable to parse {path.name}: {e}", path=str(path)) from e
    return [d for d in docs if isinstance(d, dict)]


def _load_annotations(metadata_dir: Path) -> dict[str, str]:
    path = metadata_dir / "annotations.yaml"
    if not path.is_file():
        return {}
    text = _read_text(path)
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ManifestError(f"unable to parse annotations.yaml: {e}", path=str(path)) from e
    annotations = _mapping(_mapping(data).get("annotations"))
    return {str(k): str(v) for k, v in annotations.items()}


def _build_bundle(
    csv: dict[str, Any],
    objects: list[ManifestObject],
    annotations: dict[str, str],
) -> OperatorBundle:
    metadata = _mapping(csv.get("metadata"))
    spec = _mapping(csv.get("spec"))
    csv_annotations = {str(k): str(v) for k, v in _mapping(metadata.get("annotations")).items()}
    labels = _mapping(metadata.get("labels"))

    install_modes = {
        str(mode.get("type")): bool(mode.get("supported"))
        for mode in _sequence(spec.get("installModes"))
        if isinstance(mode, dict)
    }

    architectures = sorted(
        str(key)[len(ARCH_LABEL_PREFIX):]
        for key, value in labels.items()
        if str(key).startswith(ARCH_LABEL_PREFIX) and str(value) == "supported"
    )

    replaces = spec.get("replaces")
    return OperatorBundle(
        csv_name=str(metadata.get("name", "")),
        version=str(spec.get("version") or ""),
        replaces=str(replaces) if replaces else None,
        skips=[str(s) for s in _sequence(spec.get("skips"))],
        skip_range=csv_annotations.get(SKIP_RANGE_ANNOTATION) or None,
        install_modes=install_modes,
        webhook_definitions=len(_sequence(spec.get("webhookdefinitions"))),
        infrastructure_features=_parse_infra_features(csv_annotations.get(INFRA_ANNOTATION)),
        architectures=architectures,
        containers=_parse_containers(spec),
        objects=objects,
        annotations=annotations,
        csv_annotations=csv_annotations,
    )


def _parse_infra_features(value: str | None) -> list[str]:
    if not value:
        return []
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        return [v.strip() for v in value.split(",") if v.strip()]
    if isinstance(parsed, list):
        return [str(v) for v in parsed]
    return [str(parsed)]


def _parse_containers(spec: dict[str, Any]) -> list[ContainerInfo]:
    install = _mapping(_mapping(spec.get("install")).get("spec"))
    containers = []
    for deployment in _sequence(install.get("deployments")):
        deployment = _mapping(deployment)
        pod_spec = _mapping(_mapping(_mapping(deployment.get("spec")).get("template")).get("spec"))
        for container in _sequence(pod_spec.get("containers")):
            container = _mapping(container)
            resources = _mapping(container.get("resources"))
            containers.append(
                ContainerInfo(
                    deployment=str(deployment.get("name", "")),
                    name=str(container.get("name", "")),
                    image=str(container.get("image", "")),
                    has_requests=bool(resources.get("requests")),
                    has_limits=bool(resources.get("limits")),
                )
            )
    return containers
