"""Reporting of per-document outcomes.

Every HTTP exchange produces one log record in the form::

    Deployment/web create → 201
    {"kind": "Deployment", ...}

and every document a closing record with its final outcome.
"""

import logging
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional

from kubeapply.core.schema.result import ApplyResult, Exchange

logger = logging.getLogger(__name__)


def format_exchange(label: str, exchange: Exchange) -> str:
    return f"{label} {exchange.operation} → {exchange.status_code}\n{exchange.body or '<empty>'}"


class Reporter:
    """Emits structured outcomes for observability.

    Holds no state besides the logger; reporting has no side effect on the
    operation being reported.
    """

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def exchange(self, label: str, exchange: Exchange, expected: bool = False) -> None:
        """Log one HTTP exchange.

        Args:
            label: ``kind/name`` of the document
            exchange: The exchange to report
            expected: Treat a non-2xx status as expected (409 on create,
                404 on delete) and log it at INFO
        """
        level = logging.INFO if exchange.ok or expected else logging.WARNING
        self.log.log(level, format_exchange(label, exchange))

    def finish(self, result: ApplyResult) -> None:
        """Log the final outcome of one document."""
        if result.ok:
            self.log.info(f"{result.label} {result.action or 'create'}: {result.outcome}")
        else:
            self.log.error(
                f"{result.label} {result.action or 'create'}: {result.outcome} ({result.error})"
            )
        for note in result.notes:
            self.log.warning(f"{result.label}: {note}")


def summarize(results: Iterable[ApplyResult]) -> Dict[str, Any]:
    """Aggregate results into run totals.

    Returns:
        Dict with ``total``, ``succeeded``, ``failed``, ``by_outcome`` and
        ``failures`` (labels of failed documents)
    """
    results = list(results)
    outcomes = Counter(r.outcome for r in results)
    failures: List[str] = [r.label for r in results if not r.ok]
    return {
        "total": len(results),
        "succeeded": len(results) - len(failures),
        "failed": len(failures),
        "by_outcome": dict(outcomes),
        "failures": failures,
    }
