"""Kubernetes (K8s) resource API adapter for kubeapply.

This module provides the K8s-specific pieces of the apply engine:
- Document source: local paths, file:// URIs and http(s) URLs
- Addressing: collection/item URLs and kind pluralization
- Namespace policy: forcing namespaced documents into the target namespace
- Reconciler: create/replace/delete protocols with per-kind replace strategies
- Transport: bearer-token signed httpx requests
"""
