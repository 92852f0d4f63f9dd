"""
Core schema definitions for documents, instructions and apply results.

These dataclasses form the foundation shared by the Kubernetes adapter,
the controller and the CLI.
"""

from kubeapply.core.schema.document import Document
from kubeapply.core.schema.instruction import Action, Instruction
from kubeapply.core.schema.result import ApplyResult, Exchange

__all__ = [
    "Action",
    "ApplyResult",
    "Document",
    "Exchange",
    "Instruction",
]
