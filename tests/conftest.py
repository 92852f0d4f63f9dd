"""Shared fixtures: an in-memory resource API behind httpx.MockTransport."""

import json
from typing import Dict, List, Optional, Set, Tuple

import httpx
import pytest

from kubeapply.core.config import ApplyConfig
from kubeapply.k8s.transport import KubeTransport

API_SERVER = "https://k8s.test:6443"
TOKEN = "test-token-0123456789"


class FakeApiServer:
    """Minimal stand-in for a Kubernetes API server.

    Stores objects by item path. POST to a collection creates (409 when the
    name exists), PUT replaces (404 when absent), DELETE removes (404 when
    absent) and GET reads. Every request is recorded in ``requests``.
    """

    def __init__(self) -> None:
        self.objects: Dict[str, dict] = {}
        self.requests: List[Tuple[str, str, Optional[dict]]] = []
        self.headers: List[httpx.Headers] = []
        # Plurals whose PUT is rejected like the pod API does
        self.immutable_plurals: Set[str] = {"pods"}
        # (method, path) -> (status, body) forced responses
        self.forced: Dict[Tuple[str, str], Tuple[int, dict]] = {}
        # Number of GETs that still see a deleted object as terminating
        self.terminating_gets = 0

    @property
    def calls(self) -> List[Tuple[str, str]]:
        return [(method, url) for method, url, _ in self.requests]

    def methods(self) -> List[str]:
        return [method for method, _, _ in self.requests]

    def handle(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, str(request.url), body))
        self.headers.append(request.headers)
        path = request.url.path

        forced = self.forced.get((request.method, path))
        if forced is not None:
            status, payload = forced
            return httpx.Response(status, json=payload)

        if request.method == "POST":
            key = f"{path}/{body['metadata']['name']}"
            if key in self.objects:
                return httpx.Response(409, json={"reason": "AlreadyExists"})
            self.objects[key] = body
            return httpx.Response(201, json=body)

        if request.method == "PUT":
            if path not in self.objects:
                return httpx.Response(404, json={"reason": "NotFound"})
            plural = path.rsplit("/", 2)[-2]
            if plural in self.immutable_plurals:
                return httpx.Response(422, json={"reason": "Invalid"})
            self.objects[path] = body
            return httpx.Response(200, json=body)

        if request.method == "DELETE":
            if path not in self.objects:
                return httpx.Response(404, json={"reason": "NotFound"})
            return httpx.Response(200, json=self.objects.pop(path))

        if request.method == "GET":
            if self.terminating_gets > 0:
                self.terminating_gets -= 1
                return httpx.Response(200, json={"status": {"phase": "Terminating"}})
            if path not in self.objects:
                return httpx.Response(404, json={"reason": "NotFound"})
            return httpx.Response(200, json=self.objects[path])

        return httpx.Response(405)


@pytest.fixture
def api_server() -> FakeApiServer:
    return FakeApiServer()


@pytest.fixture
def http_client(api_server):
    client = httpx.Client(transport=httpx.MockTransport(api_server.handle))
    yield client
    client.close()


@pytest.fixture
def transport(http_client) -> KubeTransport:
    return KubeTransport(http_client, TOKEN)


@pytest.fixture
def config() -> ApplyConfig:
    return ApplyConfig(
        api_server=API_SERVER,
        token=TOKEN,
        default_namespace="demo",
        delete_wait_timeout=0,
    )
