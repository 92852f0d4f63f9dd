"""Reconciler: apply one document with one action against the resource API.

Protocols per document:

- create: POST to the collection URL; a 409 conflict falls back to replace.
- replace: PUT to the item URL, unless the kind forbids in-place updates,
  in which case the resource is deleted and then created again.
- delete: DELETE the item URL; 404 counts as success.

Nothing is kept between documents. Each call to ``reconcile`` runs its
protocol to completion and returns an ``ApplyResult``; remote failures are
recorded on the result, never raised.
"""

import logging
import time
from enum import Enum
from typing import Callable, Dict, Optional

import httpx

from kubeapply.core.config import ApplyConfig
from kubeapply.core.errors import (
    FieldTypeError,
    MissingFieldError,
    RemoteError,
    TransportError,
)
from kubeapply.core.reporter import Reporter
from kubeapply.core.schema.document import Document
from kubeapply.core.schema.instruction import Action
from kubeapply.core.schema.result import ApplyResult, Exchange
from kubeapply.k8s.addressing import ResourceIdentity, collection_url, item_url
from kubeapply.k8s.namespaces import apply_override, resolve_namespace
from kubeapply.k8s.transport import HttpResponse, KubeTransport

logger = logging.getLogger(__name__)


class ReplaceStrategy(str, Enum):
    """How ``replace`` is carried out for a kind."""

    DIRECT_PUT = "direct_put"
    DELETE_THEN_CREATE = "delete_then_create"


# Kinds whose API rejects in-place replacement, keyed by lower-cased kind.
# Every other kind is replaced with a direct PUT.
REPLACE_STRATEGIES: Dict[str, ReplaceStrategy] = {
    "pod": ReplaceStrategy.DELETE_THEN_CREATE,
}


class Reconciler:
    """Executes create/replace/delete protocols for single documents.

    Args:
        transport: Signed HTTP transport
        config: Immutable run configuration (API server, default namespace,
            delete wait settings)
        replace_strategies: Override of ``REPLACE_STRATEGIES``
        reporter: Receives one record per exchange and per document
        sleep: Sleep function used between absence checks
        clock: Monotonic clock used for the absence deadline

    Example:
        >>> reconciler = Reconciler(KubeTransport(client, token), config)
        >>> result = reconciler.reconcile(document, Action.CREATE)
        >>> result.outcome
        'created'
    """

    def __init__(
        self,
        transport: KubeTransport,
        config: ApplyConfig,
        replace_strategies: Optional[Dict[str, ReplaceStrategy]] = None,
        reporter: Optional[Reporter] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.transport = transport
        self.config = config
        strategies = REPLACE_STRATEGIES if replace_strategies is None else replace_strategies
        self.replace_strategies = {kind.lower(): s for kind, s in strategies.items()}
        self.reporter = reporter or Reporter()
        self._sleep = sleep
        self._clock = clock

    def replace_strategy(self, kind: str) -> ReplaceStrategy:
        return self.replace_strategies.get(kind.lower(), ReplaceStrategy.DIRECT_PUT)

    def resolve(self, document: Document) -> ResourceIdentity:
        """Apply the namespace policy to ``document`` and derive its identity.

        Raises:
            MissingFieldError: If kind, apiVersion or metadata.name is missing
            FieldTypeError: If one of those fields has the wrong type
        """
        kind = document.kind
        declared = None
        if self.config.default_namespace is None:
            declared = document.namespace
        namespace = resolve_namespace(
            kind,
            self.config.default_namespace,
            self.config.cluster_scoped_kinds,
            declared_namespace=declared,
        )
        apply_override(document, namespace)
        return ResourceIdentity.from_document(document, namespace)

    def reconcile(
        self, document: Document, action: Action, locator: Optional[str] = None
    ) -> ApplyResult:
        """Run the protocol for ``action`` on ``document``.

        Args:
            document: Decoded manifest; its namespace may be overridden
            action: Requested action
            locator: Instruction locator, recorded on the result

        Returns:
            ApplyResult describing every exchange and the final outcome
        """
        result = ApplyResult(locator=locator, action=action.value)
        try:
            identity = self.resolve(document)
            if action is not Action.DELETE:
                # Unsendable bodies fail before any request is made
                document.to_json()
        except (MissingFieldError, FieldTypeError) as e:
            result.kind = _optional_str(document, "kind")
            result.name = _optional_str(document, "metadata", "name")
            return self._finish(result.fail(e))

        result.kind = identity.kind
        result.name = identity.name
        result.namespace = identity.namespace

        try:
            if action is Action.CREATE:
                self.create(document, identity, result)
            elif action is Action.REPLACE:
                self.replace(document, identity, result)
            else:
                self.delete(identity, result)
        except httpx.HTTPError as e:
            url = str(e.request.url) if _has_request(e) else None
            result.fail(TransportError(f"{identity.label}: {e}", url=url))

        return self._finish(result)

    def create(self, document: Document, identity: ResourceIdentity, result: ApplyResult) -> ApplyResult:
        """POST the document; fall back to replace on 409 Conflict."""
        url = collection_url(self.config.api_server, identity)
        response = self.transport.post(url, document.to_json())
        exchange = self._record(result, identity, "create", "POST", url, response,
                                expected=response.status_code == 409)
        if exchange.ok:
            result.outcome = "created"
            return result
        if response.status_code == 409:
            logger.info(f"{identity.label} already exists, replacing")
            return self._put(document, identity, result)
        return result.fail(self._remote_error(exchange))

    def replace(self, document: Document, identity: ResourceIdentity, result: ApplyResult) -> ApplyResult:
        """Replace the resource using the strategy registered for its kind."""
        if self.replace_strategy(identity.kind) is ReplaceStrategy.DELETE_THEN_CREATE:
            return self._delete_then_create(document, identity, result)
        return self._put(document, identity, result)

    def delete(self, identity: ResourceIdentity, result: ApplyResult) -> ApplyResult:
        """DELETE the resource; a resource that is already gone is a success."""
        exchange = self._send_delete(identity, result)
        if exchange.ok:
            result.outcome = "deleted"
        elif exchange.status_code == 404:
            result.outcome = "absent"
        else:
            result.fail(self._remote_error(exchange))
        return result

    def _put(self, document: Document, identity: ResourceIdentity, result: ApplyResult) -> ApplyResult:
        url = item_url(self.config.api_server, identity)
        response = self.transport.put(url, document.to_json())
        exchange = self._record(result, identity, "replace", "PUT", url, response)
        if exchange.ok:
            result.outcome = "replaced"
            return result
        return result.fail(self._remote_error(exchange))

    def _delete_then_create(
        self, document: Document, identity: ResourceIdentity, result: ApplyResult
    ) -> ApplyResult:
        exchange = self._send_delete(identity, result)
        if exchange.ok:
            self._wait_until_absent(identity, result)
        elif exchange.status_code != 404:
            result.notes.append(
                f"delete before recreate returned {exchange.status_code}; creating anyway"
            )
        return self.create(document, identity, result)

    def _send_delete(self, identity: ResourceIdentity, result: ApplyResult) -> Exchange:
        url = item_url(self.config.api_server, identity)
        response = self.transport.delete(url)
        return self._record(result, identity, "delete", "DELETE", url, response,
                            expected=response.status_code == 404)

    def _wait_until_absent(self, identity: ResourceIdentity, result: ApplyResult) -> bool:
        """Poll the item URL until it returns 404 or the wait times out.

        Deletion is asynchronous on the server side, so an immediate create
        can still collide with the terminating resource.
        """
        timeout = self.config.delete_wait_timeout
        if timeout <= 0:
            return True

        url = item_url(self.config.api_server, identity)
        deadline = self._clock() + timeout
        while True:
            response = self.transport.get(url)
            if response.status_code == 404:
                logger.debug(f"{identity.label} is gone")
                return True
            if not response.ok:
                result.notes.append(
                    f"could not confirm deletion (GET → {response.status_code})"
                )
                return False
            if self._clock() >= deadline:
                result.notes.append(f"still present {timeout:g}s after delete")
                return False
            logger.debug(f"{identity.label} still terminating")
            self._sleep(self.config.delete_poll_interval)

    def _record(
        self,
        result: ApplyResult,
        identity: ResourceIdentity,
        operation: str,
        method: str,
        url: str,
        response: HttpResponse,
        expected: bool = False,
    ) -> Exchange:
        exchange = Exchange(
            operation=operation,
            method=method,
            url=url,
            status_code=response.status_code,
            body=response.body,
        )
        result.exchanges.append(exchange)
        self.reporter.exchange(identity.label, exchange, expected=expected)
        return exchange

    @staticmethod
    def _remote_error(exchange: Exchange) -> RemoteError:
        return RemoteError(
            f"{exchange.operation} failed with HTTP {exchange.status_code}",
            operation=exchange.operation,
            status_code=exchange.status_code,
            body=exchange.body,
            url=exchange.url,
        )

    def _finish(self, result: ApplyResult) -> ApplyResult:
        self.reporter.finish(result)
        return result


def _optional_str(document: Document, *path: str) -> Optional[str]:
    try:
        value = document.find(*path)
    except FieldTypeError:
        return None
    return value if isinstance(value, str) else None


def _has_request(error: httpx.HTTPError) -> bool:
    # HTTPError.request raises RuntimeError when no request is attached
    try:
        error.request
    except RuntimeError:
        return False
    return True
