"""
kubeapply: declarative manifest reconciliation against a Kubernetes-style REST API.

Applies a sequence of YAML/JSON resource documents with create, replace or
delete actions, resolving addressing, namespace scoping, create/exists
conflicts and kinds that cannot be replaced in place.
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
