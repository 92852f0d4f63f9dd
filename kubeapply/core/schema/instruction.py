"""Instruction model: which manifests to apply and how."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from kubeapply.core.errors import UnknownActionError


class Action(str, Enum):
    """Per-document action requested by an instruction."""

    CREATE = "create"
    REPLACE = "replace"
    DELETE = "delete"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Action":
        """Parse an action string case-insensitively.

        Absent or null actions default to ``create``.

        Raises:
            UnknownActionError: If the value is not create, replace or delete
        """
        if value is None:
            return cls.CREATE
        if not isinstance(value, str):
            raise UnknownActionError(f"Unknown action: {value!r}", action=value)
        normalized = value.strip().lower()
        for action in cls:
            if action.value == normalized:
                return action
        raise UnknownActionError(f"Unknown action: {value!r}", action=value)


@dataclass(frozen=True)
class Instruction:
    """One entry of the instruction list.

    Attributes:
        locator: Local path, ``file://`` URI or ``http(s)://`` URL
        action: Action as written in the instruction file, parsed at dispatch
            time so a bad action only skips its own documents
    """
    locator: Optional[str]
    action: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Instruction":
        """Build an instruction from a ``{"uri": ..., "action": ...}`` entry."""
        locator = data.get("uri")
        return cls(
            locator=str(locator) if locator is not None else None,
            action=data.get("action"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"uri": self.locator, "action": self.action}
