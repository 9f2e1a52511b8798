"""Shared test fixtures for operator-audit tests."""

import json
from pathlib import Path
from typing import Callable

import pytest

from operator_audit.core.executor import CommandResult
from operator_audit.models.bundle import AuditBundle

CSV_YAML = """\
apiVersion: operators.coreos.com/v1alpha1
kind: ClusterServiceVersion
metadata:
  name: etcdoperator.v0.9.4
  annotations:
    olm.skipRange: ">=0.9.0 <0.9.4"
    operators.openshift.io/infrastructure-features: '["disconnected", "proxy-aware"]'
  labels:
    operatorframework.io/arch.amd64: supported
    operatorframework.io/arch.arm64: supported
    operatorframework.io/arch.s390x: unsupported
spec:
  version: "0.9.4"
  replaces: etcdoperator.v0.9.2
  installModes:
    - type: OwnNamespace
      supported: true
    - type: SingleNamespace
      supported: true
    - type: MultiNamespace
      supported: false
    - type: AllNamespaces
      supported: false
  webhookdefinitions:
    - type: ValidatingAdmissionWebhook
      generateName: vetcd.example.com
  install:
    strategy: deployment
    spec:
      deployments:
        - name: etcd-operator
          spec:
            template:
              spec:
                containers:
                  - name: etcd-operator
                    image: quay.io/coreos/etcd-operator:v0.9.4
                    resources:
                      requests:
                        cpu: 100m
                  - name: etcd-backup-operator
                    image: quay.io/coreos/etcd-operator:v0.9.4
                    resources:
                      requests:
                        cpu: 100m
                      limits:
                        cpu: 200m
"""

CRD_YAML = """\
apiVersion: apiextensions.k8s.io/v1beta1
kind: CustomResourceDefinition
metadata:
  name: etcdclusters.etcd.database.coreos.com
"""

ANNOTATIONS_YAML = """\
annotations:
  operators.operatorframework.io.bundle.package.v1: etcd
  operators.operatorframework.io.bundle.channels.v1: alpha,stable
"""

INSPECT_JSON = json.dumps(
    [
        {
            "Id": "sha256:1234abcd",
            "Created": "2021-09-01T10:00:00Z",
            "Architecture": "amd64",
            "Os": "linux",
            "Config": {
                "Labels": {
                    "com.redhat.openshift.versions": "v4.6-v4.8",
                    "build-date": "2021-08-30",
                    "maintainer": "etcd",
                }
            },
        }
    ]
)

VALIDATOR_JSON = json.dumps(
    {
        "passed": False,
        "outputs": [
            {"type": "error", "message": "CSV has no description"},
            {"type": "warning", "message": "CSV has no icon"},
            {"type": "warning", "message": "CSV has no links"},
        ],
    }
)

SCORECARD_JSON = json.dumps(
    {
        "apiVersion": "scorecard.operatorframework.io/v1alpha3",
        "kind": "TestList",
        "items": [
            {
                "kind": "Test",
                "status": {
                    "results": [
                        {"name": "olm-bundle-validation", "state": "pass"},
                        {
                            "name": "basic-check-spec",
                            "state": "fail",
                            "suggestions": ["Add a spec to your CR"],
                        },
                    ]
                },
            }
        ],
    }
)

RENDER_BLOBS = [
    {"schema": "olm.package", "name": "etcd", "defaultChannel": "alpha"},
    {
        "schema": "olm.channel",
        "name": "alpha",
        "package": "etcd",
        "entries": [
            {"name": "etcdoperator.v0.9.2"},
            {
                "name": "etcdoperator.v0.9.4",
                "replaces": "etcdoperator.v0.9.2",
                "skipRange": ">=0.9.0 <0.9.4",
            },
        ],
    },
    {
        "schema": "olm.channel",
        "name": "stable",
        "package": "etcd",
        "entries": [{"name": "etcdoperator.v0.9.4"}],
    },
    {
        "schema": "olm.bundle",
        "name": "etcdoperator.v0.9.2",
        "package": "etcd",
        "image": "quay.io/test/etcd-bundle:0.9.2",
        "properties": [
            {"type": "olm.package", "value": {"packageName": "etcd", "version": "0.9.2"}},
        ],
    },
    {
        "schema": "olm.bundle",
        "name": "etcdoperator.v0.9.4",
        "package": "etcd",
        "image": "quay.io/test/etcd-bundle:0.9.4@sha256:abc123",
        "properties": [
            {"type": "olm.gvk", "value": {"group": "etcd.database.coreos.com", "kind": "EtcdCluster"}},
            {"type": "olm.package", "value": {"packageName": "etcd", "version": "0.9.4"}},
        ],
    },
    {"schema": "olm.package", "name": "prometheus", "defaultChannel": "beta"},
    {
        "schema": "olm.channel",
        "name": "beta",
        "package": "prometheus",
        "entries": [{"name": "prometheusoperator.0.47.0"}],
    },
    {
        "schema": "olm.bundle",
        "name": "prometheusoperator.0.47.0",
        "package": "prometheus",
        "image": "quay.io/test/prometheus-bundle:0.47.0",
        "properties": [
            {"type": "olm.package", "value": {"packageName": "prometheus", "version": "0.47.0"}},
        ],
    },
]


class FakeExecutor:
    """CommandExecutor replaying canned results.

    Commands are matched by prefix, the latest registration winning.
    Unmatched commands succeed with no output. A handler may carry an
    effect called with the full command before the result is returned,
    to simulate files written by the command.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self._handlers: list[tuple[list[str], CommandResult, Callable | None]] = []

    def on(
        self,
        *prefix: str,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        effect: Callable[[list[str]], None] | None = None,
    ) -> "FakeExecutor":
        result = CommandResult(
            command=list(prefix),
            returncode=returncode,
            stdout=stdout,
            stderr=stderr,
        )
        self._handlers.append((list(prefix), result, effect))
        return self

    def run(self, name: str, args: list[str], timeout: float | None = None) -> CommandResult:
        command = [name, *args]
        self.calls.append(command)
        for prefix, result, effect in reversed(self._handlers):
            if command[: len(prefix)] == prefix:
                if effect is not None:
                    effect(command)
                return result.model_copy(update={"command": command})
        return CommandResult(command=command, returncode=0)

    def called(self, *prefix: str) -> list[list[str]]:
        """Calls starting with the given prefix."""
        return [c for c in self.calls if c[: len(prefix)] == list(prefix)]


def write_files(root: Path, files: dict[str, str]) -> None:
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


class FakeImage:
    """Simulates `tar -xvf <archive> -C <dir>` over a saved image.

    The outer archive yields manifest.json (unless `with_manifest` is
    False, in which case the single layer is named layer.tar) and each
    layer archive yields its files.
    """

    def __init__(self, layers: list[dict[str, str]], with_manifest: bool = True) -> None:
        self.layers = layers
        self.with_manifest = with_manifest
        if with_manifest:
            self.layer_names = [f"layer{i}/layer.tar" for i in range(len(layers))]
        else:
            self.layer_names = ["layer.tar"]

    def __call__(self, command: list[str]) -> None:
        archive, target = command[2], Path(command[4])
        for name, files in zip(self.layer_names, self.layers):
            if archive.endswith(f"/{name}"):
                write_files(target, files)
                return

        if self.with_manifest:
            manifest = [{"Config": "config.json", "RepoTags": None, "Layers": self.layer_names}]
            (target / "manifest.json").write_text(json.dumps(manifest))


@pytest.fixture
def fake_executor() -> FakeExecutor:
    """Executor on which every command succeeds with no output."""
    return FakeExecutor()


@pytest.fixture
def bundle_files() -> dict[str, str]:
    """Files of the etcd operator bundle, by path relative to the bundle root."""
    return {
        "manifests/etcdoperator.clusterserviceversion.yaml": CSV_YAML,
        "manifests/etcdclusters.crd.yaml": CRD_YAML,
        "metadata/annotations.yaml": ANNOTATIONS_YAML,
    }


@pytest.fixture
def bundle_dir(tmp_path, bundle_files) -> Path:
    """An unpacked etcd operator bundle."""
    root = tmp_path / "bundle"
    write_files(root, bundle_files)
    return root


@pytest.fixture
def render_output() -> str:
    """`opm render` output of an index with the etcd and prometheus packages."""
    return "\n".join(json.dumps(blob, indent=4) for blob in RENDER_BLOBS)


@pytest.fixture
def inspect_output() -> str:
    return INSPECT_JSON


@pytest.fixture
def validator_output() -> str:
    return VALIDATOR_JSON


@pytest.fixture
def scorecard_output() -> str:
    return SCORECARD_JSON


@pytest.fixture
def audit_bundle() -> AuditBundle:
    """The etcd 0.9.4 bundle as declared by the index."""
    return AuditBundle(
        operator_bundle_name="etcdoperator.v0.9.4",
        operator_bundle_image_path="quay.io/test/etcd-bundle:0.9.4@sha256:abc123",
        package_name="etcd",
        default_channel="alpha",
        channels=["alpha", "stable"],
        is_head_of_channel=True,
        version="0.9.4",
        replaces="etcdoperator.v0.9.2",
        skip_range=">=0.9.0 <0.9.4",
    )


@pytest.fixture
def make_image() -> type[FakeImage]:
    """Factory of saved-image layouts to use as a `tar` effect."""
    return FakeImage


@pytest.fixture
def make_files() -> Callable[[Path, dict[str, str]], None]:
    return write_files
