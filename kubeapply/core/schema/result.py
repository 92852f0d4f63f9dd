"""Per-document result model for apply runs."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from kubeapply.core.errors import KubeApplyError

# Outcomes that count as success
SUCCESS_OUTCOMES = frozenset({"created", "replaced", "deleted", "absent"})


@dataclass
class Exchange:
    """One HTTP exchange performed on behalf of a document.

    Attributes:
        operation: Logical operation (create, replace, delete)
        method: HTTP method sent
        url: Request URL
        status_code: HTTP status returned
        body: Response body as text
    """
    operation: str
    method: str
    url: str
    status_code: int
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "method": self.method,
            "url": self.url,
            "status_code": self.status_code,
            "body": self.body,
        }


@dataclass
class ApplyResult:
    """Outcome of applying one document (or of one unreadable instruction).

    The reconciler never raises for remote failures; it records them here and
    lets the caller decide whether to continue or abort.

    Attributes:
        locator: Instruction locator the document came from
        action: Action requested by the instruction, as written
        kind: Resource kind (None when the document could not be read)
        name: ``metadata.name`` (None when unavailable)
        namespace: Namespace the resource was addressed in
        outcome: created | replaced | deleted | absent | failed | skipped
        exchanges: HTTP exchanges performed, in order
        error: The failure, if any
        notes: Non-fatal remarks (e.g. a delete that did not settle in time)
    """
    locator: Optional[str]
    action: Optional[str]
    kind: Optional[str] = None
    name: Optional[str] = None
    namespace: Optional[str] = None
    outcome: str = "failed"
    exchanges: List[Exchange] = field(default_factory=list)
    error: Optional[KubeApplyError] = None
    notes: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None and self.outcome in SUCCESS_OUTCOMES

    @property
    def label(self) -> str:
        """``kind/name`` as shown in logs, with placeholders when unknown."""
        return f"{self.kind or '<unknown>'}/{self.name or '<unnamed>'}"

    def fail(self, error: KubeApplyError, outcome: str = "failed") -> "ApplyResult":
        """Record ``error`` and mark the result as unsuccessful."""
        self.error = error
        self.outcome = outcome
        return self

    def raise_for_error(self) -> None:
        """Raise the recorded error, if any."""
        if self.error is not None:
            raise self.error

    def to_dict(self) -> Dict[str, Any]:
        return {
            "locator": self.locator,
            "action": self.action,
            "kind": self.kind,
            "name": self.name,
            "namespace": self.namespace,
            "outcome": self.outcome,
            "ok": self.ok,
            "exchanges": [exchange.to_dict() for exchange in self.exchanges],
            "error": str(self.error) if self.error is not None else None,
            "error_type": type(self.error).__name__ if self.error is not None else None,
            "notes": list(self.notes),
        }
