"""REST addressing for Kubernetes-style resources.

This module turns a document's apiVersion, kind, name and resolved namespace
into the collection and item URLs of the resource API:

- Core group (``apiVersion: v1``): ``{api}/api/v1/...``
- Named groups (``apiVersion: apps/v1``): ``{api}/apis/apps/v1/...``
- Namespaced resources insert ``/namespaces/{ns}`` before the plural.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import quote

from kubeapply.core.errors import MissingFieldError
from kubeapply.core.schema.document import Document

# Collection segment per kind, keyed by lower-cased kind.
# Kinds absent here use the default rule: kind.lower() + "s".
PLURALS = {
    "configmap": "configmaps",
    "cronjob": "cronjobs",
    "daemonset": "daemonsets",
    "deployment": "deployments",
    "endpoints": "endpoints",
    "endpointslice": "endpointslices",
    "horizontalpodautoscaler": "horizontalpodautoscalers",
    "ingress": "ingresses",
    "ingressclass": "ingressclasses",
    "job": "jobs",
    "namespace": "namespaces",
    "networkpolicy": "networkpolicies",
    "pod": "pods",
    "poddisruptionbudget": "poddisruptionbudgets",
    "podsecuritypolicy": "podsecuritypolicies",
    "priorityclass": "priorityclasses",
    "runtimeclass": "runtimeclasses",
    "secret": "secrets",
    "service": "services",
    "statefulset": "statefulsets",
    "storageclass": "storageclasses",
}


def to_plural(kind: str) -> str:
    """Return the REST collection segment for ``kind``.

    Example:
        >>> to_plural("Ingress")
        'ingresses'
        >>> to_plural("Widget")
        'widgets'
    """
    lowered = kind.lower()
    return PLURALS.get(lowered, lowered + "s")


def group_version(api_version: str) -> Tuple[str, str]:
    """Split ``apiVersion`` into ``(group, version)``.

    The core group has no ``/`` and yields an empty group.

    Raises:
        MissingFieldError: If the version part is empty
    """
    if "/" in api_version:
        group, version = api_version.split("/", 1)
    else:
        group, version = "", api_version
    group, version = group.strip(), version.strip()
    if not version:
        raise MissingFieldError(
            f"apiVersion {api_version!r} has no version", field="apiVersion"
        )
    return group, version


@dataclass(frozen=True)
class ResourceIdentity:
    """Address of one resource instance.

    Attributes:
        group: API group, "" for the core group
        version: API version, never empty
        kind: Resource kind as written in the document
        namespace: Owning namespace, None for cluster-scoped resources
        name: ``metadata.name``
    """
    group: str
    version: str
    kind: str
    namespace: Optional[str]
    name: str

    @classmethod
    def from_document(cls, document: Document, namespace: Optional[str]) -> "ResourceIdentity":
        """Derive the identity of ``document`` in the resolved ``namespace``.

        Raises:
            MissingFieldError: If apiVersion, kind or metadata.name is absent or blank
            FieldTypeError: If one of those fields is not a string
        """
        kind = document.kind
        group, version = group_version(document.api_version)
        name = document.name
        return cls(group=group, version=version, kind=kind, namespace=namespace, name=name)

    @property
    def plural(self) -> str:
        return to_plural(self.kind)

    @property
    def label(self) -> str:
        return f"{self.kind}/{self.name}"


def collection_url(api_server: str, identity: ResourceIdentity) -> str:
    """Build the URL addressing all resources of the identity's kind."""
    if identity.group:
        url = f"{api_server}/apis/{identity.group}/{identity.version}"
    else:
        url = f"{api_server}/api/{identity.version}"
    if identity.namespace:
        url += f"/namespaces/{quote(identity.namespace, safe='')}"
    return f"{url}/{identity.plural}"


def item_url(api_server: str, identity: ResourceIdentity) -> str:
    """Build the URL addressing the single resource named by the identity."""
    return f"{collection_url(api_server, identity)}/{quote(identity.name, safe='')}"
