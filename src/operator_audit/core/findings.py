"""Findings derived from a parsed bundle and its place in the index."""

from __future__ import annotations

import re

import semver

from operator_audit.models.bundle import OperatorBundle

# APIs removed in Kubernetes 1.22 / OpenShift 4.9
DEPRECATED_APIS: dict[str, frozenset[str]] = {
    "apiextensions.k8s.io/v1beta1": frozenset({"CustomResourceDefinition"}),
    "admissionregistration.k8s.io/v1beta1": frozenset(
        {"MutatingWebhookConfiguration", "ValidatingWebhookConfiguration"}
    ),
    "rbac.authorization.k8s.io/v1beta1": frozenset(
        {"ClusterRole", "ClusterRoleBinding", "Role", "RoleBinding"}
    ),
    "scheduling.k8s.io/v1beta1": frozenset({"PriorityClass"}),
    "storage.k8s.io/v1beta1": frozenset(
        {"CSIDriver", "CSINode", "StorageClass", "VolumeAttachment"}
    ),
    "networking.k8s.io/v1beta1": frozenset({"Ingress", "IngressClass"}),
    "extensions/v1beta1": frozenset({"Ingress"}),
    "apiregistration.k8s.io/v1beta1": frozenset({"APIService"}),
    "certificates.k8s.io/v1beta1": frozenset({"CertificateSigningRequest"}),
    "coordination.k8s.io/v1beta1": frozenset({"Lease"}),
    "authentication.k8s.io/v1beta1": frozenset({"TokenReview"}),
    "authorization.k8s.io/v1beta1": frozenset(
        {"LocalSubjectAccessReview", "SelfSubjectAccessReview", "SubjectAccessReview"}
    ),
}

CHANNEL_NAME_CONVENTION = re.compile(
    r"^(alpha|beta|stable|candidate|fast|preview)(-v?\d+(\.\d+)*)?$|^v?\d+\.\d+$"
)

_COMPARATOR = re.compile(r"\s*(>=|<=|>|<|=)\s*([0-9A-Za-z.+-]+)")

Comparator = tuple[str, semver.Version]


def deprecated_api_kinds(bundle: OperatorBundle) -> list[str]:
    """Kinds shipped in the bundle with an API version that has been removed."""
    kinds = {
        obj.kind
        for obj in bundle.objects
        if obj.kind in DEPRECATED_APIS.get(obj.api_version, frozenset())
    }
    return sorted(kinds)


def is_valid_version(version: str | None) -> bool:
    return bool(version) and semver.Version.is_valid(version)


def has_invalid_versioning(version: str | None, replaced_version: str | None = None) -> bool:
    """The version is not semver, or does not move past the one it replaces."""
    if not is_valid_version(version):
        return True
    if replaced_version and is_valid_version(replaced_version):
        return semver.Version.parse(version) <= semver.Version.parse(replaced_version)
    return False


def parse_skip_range(expression: str) -> list[list[Comparator]] | None:
    """Parse an olm.skipRange expression.

    Returns:
        Alternatives (split on `||`) of comparator lists, or None if the
        expression is not valid
    """
    alternatives: list[list[Comparator]] = []
    for part in expression.split("||"):
        comparators: list[Comparator] = []
        position = 0
        part = part.strip()
        while position < len(part):
            match = _COMPARATOR.match(part, position)
            if match is None:
                return None
            op, version = match.groups()
            if not semver.Version.is_valid(version):
                return None
            comparators.append((op, semver.Version.parse(version)))
            position = match.end()
        if not comparators:
            return None
        alternatives.append(comparators)
    return alternatives


def satisfies(version: str, alternatives: list[list[Comparator]]) -> bool:
    """Whether a version is inside a parsed skipRange."""
    parsed = semver.Version.parse(version)
    return any(all(_compare(parsed, op, bound) for op, bound in group) for group in alternatives)


def _compare(version: semver.Version, op: str, bound: semver.Version) -> bool:
    result = version.compare(bound)
    return {
        ">=": result >= 0,
        "<=": result <= 0,
        ">": result > 0,
        "<": result < 0,
        "=": result == 0,
    }[op]


def has_invalid_skip_range(skip_range: str | None, version: str | None) -> bool:
    """The skipRange does not parse, or it covers the bundle's own version."""
    if not skip_range:
        return False
    alternatives = parse_skip_range(skip_range)
    if alternatives is None:
        return True
    if version and is_valid_version(version):
        return satisfies(version, alternatives)
    return False


def has_possible_performance_issues(bundle: OperatorBundle) -> bool:
    """Some operator container runs without resource requests or limits."""
    return any(not (c.has_requests and c.has_limits) for c in bundle.containers)


def follows_channel_naming(channel: str) -> bool:
    return CHANNEL_NAME_CONVENTION.match(channel) is not None
