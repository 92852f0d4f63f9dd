"""Document model with typed accessors over a decoded manifest tree."""

import datetime
import json
from typing import Any, Dict, Optional

from kubeapply.core.errors import FieldTypeError, MissingFieldError

_MISSING = object()

_TYPE_NAMES = {
    dict: "mapping",
    list: "sequence",
    str: "string",
    bool: "bool",
    int: "number",
    float: "number",
    type(None): "null",
}


def _type_name(value: Any) -> str:
    for cls, name in _TYPE_NAMES.items():
        if isinstance(value, cls):
            return name
    return type(value).__name__


def _json_default(value: Any) -> Any:
    # YAML timestamps decode to date/datetime; the API expects RFC 3339 strings
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class Document:
    """One decoded resource manifest.

    Wraps the ordered mapping produced by the YAML/JSON decoder. Values are
    reached through typed accessors that fail with ``FieldTypeError`` when a
    field holds the wrong type instead of returning something unexpected.

    The document is treated as read-only, except for ``set_namespace`` which
    the namespace policy uses before dispatch.

    Example:
        >>> doc = Document({"apiVersion": "v1", "kind": "Pod",
        ...                 "metadata": {"name": "web"}})
        >>> doc.kind, doc.name
        ('Pod', 'web')
    """

    def __init__(self, body: Dict[str, Any]):
        if not isinstance(body, dict):
            raise FieldTypeError(
                f"Document must be a mapping, got {_type_name(body)}",
                field="",
                expected="mapping",
                actual=_type_name(body),
            )
        self.body = body

    def __repr__(self) -> str:
        kind = self.body.get("kind")
        metadata = self.body.get("metadata")
        name = metadata.get("name") if isinstance(metadata, dict) else None
        return f"Document(kind={kind!r}, name={name!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Document):
            return NotImplemented
        return self.body == other.body

    def find(self, *path: str) -> Any:
        """Return the value at ``path`` or ``None`` when any segment is absent.

        Raises:
            FieldTypeError: If an intermediate segment is not a mapping
        """
        value = self._walk(path)
        return None if value is _MISSING else value

    def get_str(self, *path: str, required: bool = True) -> Optional[str]:
        """Return the string at ``path``.

        Args:
            *path: Keys to traverse, e.g. ``("metadata", "name")``
            required: Raise when the value is absent or blank

        Returns:
            The string, or None when optional and absent

        Raises:
            MissingFieldError: If required and the value is absent or blank
            FieldTypeError: If the value is not a string
        """
        dotted = ".".join(path)
        value = self._walk(path)
        if value is _MISSING or value is None:
            if required:
                raise MissingFieldError(f"{dotted} missing", field=dotted)
            return None
        if not isinstance(value, str):
            raise FieldTypeError(
                f"{dotted} must be a string, got {_type_name(value)}",
                field=dotted,
                expected="string",
                actual=_type_name(value),
            )
        if required and not value.strip():
            raise MissingFieldError(f"{dotted} is blank", field=dotted)
        return value

    def get_mapping(self, *path: str) -> Optional[Dict[str, Any]]:
        """Return the mapping at ``path``, or None when absent.

        Raises:
            FieldTypeError: If the value exists but is not a mapping
        """
        dotted = ".".join(path)
        value = self._walk(path)
        if value is _MISSING or value is None:
            return None
        if not isinstance(value, dict):
            raise FieldTypeError(
                f"{dotted} must be a mapping, got {_type_name(value)}",
                field=dotted,
                expected="mapping",
                actual=_type_name(value),
            )
        return value

    def _walk(self, path: tuple) -> Any:
        value: Any = self.body
        for depth, key in enumerate(path):
            if value is None:
                return _MISSING
            if not isinstance(value, dict):
                dotted = ".".join(path[:depth])
                raise FieldTypeError(
                    f"{dotted} must be a mapping, got {_type_name(value)}",
                    field=dotted,
                    expected="mapping",
                    actual=_type_name(value),
                )
            value = value.get(key, _MISSING)
            if value is _MISSING:
                return _MISSING
        return value

    @property
    def kind(self) -> str:
        return self.get_str("kind")

    @property
    def api_version(self) -> str:
        return self.get_str("apiVersion")

    @property
    def name(self) -> str:
        return self.get_str("metadata", "name")

    @property
    def namespace(self) -> Optional[str]:
        return self.get_str("metadata", "namespace", required=False)

    def set_namespace(self, namespace: str) -> None:
        """Force ``metadata.namespace``, creating ``metadata`` if needed."""
        metadata = self.get_mapping("metadata")
        if metadata is None:
            metadata = {}
            self.body["metadata"] = metadata
        metadata["namespace"] = namespace

    def to_json(self) -> str:
        """Serialize the document body as the JSON request payload.

        Raises:
            FieldTypeError: If the body holds a value JSON cannot represent,
                such as ``!!binary`` bytes or a ``!!set``
        """
        try:
            return json.dumps(self.body, default=_json_default)
        except (TypeError, ValueError) as e:
            raise FieldTypeError(
                f"Document body cannot be encoded as JSON: {e}",
                field="",
                expected="JSON value",
            ) from e
