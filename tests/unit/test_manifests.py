"""Unit tests for loading an unpacked bundle."""

import pytest

from operator_audit.core.manifests import load_bundle_from_dir
from operator_audit.utils.errors import ManifestError


class TestLoadBundleFromDir:
    def test_csv_fields(self, bundle_dir):
        bundle = load_bundle_from_dir(bundle_dir)

        assert bundle.csv_name == "etcdoperator.v0.9.4"
        assert bundle.version == "0.9.4"
        assert bundle.replaces == "etcdoperator.v0.9.2"
        assert bundle.skip_range == ">=0.9.0 <0.9.4"
        assert bundle.has_webhooks is True
        assert bundle.webhook_definitions == 1

    def test_install_modes(self, bundle_dir):
        bundle = load_bundle_from_dir(bundle_dir)

        assert bundle.supports("OwnNamespace") is True
        assert bundle.supports("SingleNamespace") is True
        assert bundle.supports("AllNamespaces") is False
        assert bundle.supports("Unknown") is False

    def test_architectures_and_infrastructure(self, bundle_dir):
        bundle = load_bundle_from_dir(bundle_dir)

        assert bundle.architectures == ["amd64", "arm64"]
        assert bundle.infrastructure_features == ["disconnected", "proxy-aware"]

    def test_containers(self, bundle_dir):
        containers = load_bundle_from_dir(bundle_dir).containers

        assert [c.name for c in containers] == ["etcd-operator", "etcd-backup-operator"]
        assert containers[0].has_requests is True
        assert containers[0].has_limits is False
        assert containers[1].has_limits is True

    def test_objects_and_annotations(self, bundle_dir):
        bundle = load_bundle_from_dir(bundle_dir)

        kinds = {(o.api_version, o.kind) for o in bundle.objects}
        assert ("apiextensions.k8s.io/v1beta1", "CustomResourceDefinition") in kinds
        assert ("operators.coreos.com/v1alpha1", "ClusterServiceVersion") in kinds
        assert bundle.annotations["operators.operatorframework.io.bundle.package.v1"] == "etcd"

    def test_comma_separated_infrastructure_features(self, tmp_path, make_files, bundle_files):
        csv_path = "manifests/etcdoperator.clusterserviceversion.yaml"
        bundle_files[csv_path] = bundle_files[csv_path].replace(
            """'["disconnected", "proxy-aware"]'""", "disconnected, fips"
        )
        make_files(tmp_path, bundle_files)

        assert load_bundle_from_dir(tmp_path).infrastructure_features == ["disconnected", "fips"]

    def test_multi_document_files(self, tmp_path, make_files, bundle_files):
        crd = bundle_files.pop("manifests/etcdclusters.crd.yaml")
        csv_path = "manifests/etcdoperator.clusterserviceversion.yaml"
        bundle_files[csv_path] = crd + "---\n" + bundle_files[csv_path]
        make_files(tmp_path, bundle_files)

        bundle = load_bundle_from_dir(tmp_path)
        assert bundle.csv_name == "etcdoperator.v0.9.4"
        assert len(bundle.objects) == 2

    def test_missing_manifests_dir(self, tmp_path):
        with pytest.raises(ManifestError, match="no manifests directory"):
            load_bundle_from_dir(tmp_path)

    def test_missing_csv(self, tmp_path, make_files):
        make_files(tmp_path, {"manifests/crd.yaml": "kind: CustomResourceDefinition\n"})

        with pytest.raises(ManifestError, match="no ClusterServiceVersion"):
            load_bundle_from_dir(tmp_path)

    def test_invalid_yaml(self, tmp_path, make_files):
        make_files(tmp_path, {"manifests/csv.yaml": "kind: [unclosed\n"})

        with pytest.raises(ManifestError, match="unable to parse csv.yaml"):
            load_bundle_from_dir(tmp_path)

    def test_no_metadata_dir(self, tmp_path, make_files, bundle_files):
        del bundle_files["metadata/annotations.yaml"]
        make_files(tmp_path, bundle_files)

        bundle = load_bundle_from_dir(tmp_path)
        assert bundle.annotations == {}

    def test_scalar_metadata_reads_as_empty(self, tmp_path, make_files, bundle_files):
        bundle_files["manifests/etcdoperator.clusterserviceversion.yaml"] = (
            "apiVersion: operators.coreos.com/v1alpha1\n"
            "kind: ClusterServiceVersion\n"
            "metadata: oops\n"
            "spec:\n"
            "  version: 0.9.4\n"
        )
        make_files(tmp_path, bundle_files)

        bundle = load_bundle_from_dir(tmp_path)
        assert bundle.csv_name == ""
        assert bundle.csv_annotations == {}
        assert bundle.architectures == []
        assert bundle.version == "0.9.4"

    def test_misshapen_spec_values(self, tmp_path, make_files, bundle_files):
        bundle_files["manifests/etcdoperator.clusterserviceversion.yaml"] = (
            "kind: ClusterServiceVersion\n"
            "metadata:\n"
            "  name: etcdoperator.v0.9.4\n"
            "  labels: [amd64]\n"
            "  annotations: none\n"
            "spec:\n"
            "  replaces: 42\n"
            "  skips: etcdoperator.v0.9.0\n"
            "  installModes: AllNamespaces\n"
            "  webhookdefinitions: 3\n"
            "  install:\n"
            "    spec:\n"
            "      deployments:\n"
            "        - just-a-name\n"
            "        - name: etcd-operator\n"
            "          spec:\n"
            "            template:\n"
            "              spec:\n"
            "                containers: [sidecar]\n"
        )
        make_files(tmp_path, bundle_files)

        bundle = load_bundle_from_dir(tmp_path)
        assert bundle.replaces == "42"
        assert bundle.skips == []
        assert bundle.install_modes == {}
        assert bundle.webhook_definitions == 0
        assert [(c.deployment, c.name) for c in bundle.containers] == [("etcd-operator", "")]

    def test_scalar_annotations_file(self, tmp_path, make_files, bundle_files):
        bundle_files["metadata/annotations.yaml"] = "annotations: etcd\n"
        make_files(tmp_path, bundle_files)

        assert load_bundle_from_dir(tmp_path).annotations == {}

    def test_undecodable_manifest(self, tmp_path, make_files, bundle_files):
        make_files(tmp_path, bundle_files)
        (tmp_path / "manifests" / "bad.yaml").write_bytes(b"kind: \xff\xfe")

        with pytest.raises(ManifestError, match="unable to read bad.yaml"):
            load_bundle_from_dir(tmp_path)

    def test_undecodable_annotations(self, tmp_path, make_files, bundle_files):
        make_files(tmp_path, bundle_files)
        (tmp_path / "metadata" / "annotations.yaml").write_bytes(b"\xff\xfe")

        with pytest.raises(ManifestError, match="unable to read annotations.yaml"):
            load_bundle_from_dir(tmp_path)
