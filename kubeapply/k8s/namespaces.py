"""Namespace policy: force namespaced documents into the target namespace."""

import logging
from typing import AbstractSet, Optional

from kubeapply.core.config import DEFAULT_CLUSTER_SCOPED_KINDS
from kubeapply.core.schema.document import Document

logger = logging.getLogger(__name__)


def is_cluster_scoped(
    kind: str,
    cluster_scoped_kinds: AbstractSet[str] = DEFAULT_CLUSTER_SCOPED_KINDS,
) -> bool:
    """Return True if ``kind`` case-insensitively matches a cluster-scoped kind."""
    lowered = kind.lower()
    return any(lowered == candidate.lower() for candidate in cluster_scoped_kinds)


def resolve_namespace(
    kind: str,
    default_namespace: Optional[str],
    cluster_scoped_kinds: AbstractSet[str] = DEFAULT_CLUSTER_SCOPED_KINDS,
    declared_namespace: Optional[str] = None,
) -> Optional[str]:
    """Decide which namespace a document of ``kind`` is addressed in.

    Documents are never trusted to choose their own namespace: every
    namespaced kind lands in ``default_namespace``. Cluster-scoped kinds
    (``Namespace`` by default) get no namespace at all.

    Args:
        kind: Resource kind, compared case-insensitively
        default_namespace: Caller-supplied target namespace
        cluster_scoped_kinds: Kinds that are never namespaced
        declared_namespace: The document's own ``metadata.namespace``, used
            only when no default namespace is configured

    Returns:
        The namespace to use, or None for cluster-scoped kinds
    """
    if is_cluster_scoped(kind, cluster_scoped_kinds):
        return None
    if default_namespace is None:
        return declared_namespace
    return default_namespace


def apply_override(document: Document, namespace: Optional[str]) -> bool:
    """Set ``metadata.namespace`` to ``namespace`` when one was resolved.

    Returns:
        True if the document was changed
    """
    if namespace is None:
        return False
    previous = document.find("metadata", "namespace")
    if previous == namespace:
        return False
    if previous is not None:
        logger.debug(f"Overriding namespace {previous!r} with {namespace!r}")
    document.set_namespace(namespace)
    return True
