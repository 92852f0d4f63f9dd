"""Centralized configuration loading for kubeapply.

This module provides utilities for loading and accessing configuration from a
JSON file with support for environment variable fallbacks and default values,
plus the immutable ``ApplyConfig`` handed to the reconciler.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional

DEFAULT_CONFIG_FILE = "kubeapply.json"
CONFIG_PATH_ENV = "KUBEAPPLY_CONFIG"

DEFAULT_CLUSTER_SCOPED_KINDS: FrozenSet[str] = frozenset({"Namespace"})


def default_config_path() -> str:
    """Return the config file path from ``KUBEAPPLY_CONFIG`` or the default name."""
    return os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_FILE


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from JSON file.

    Returns empty dict if file doesn't exist or is invalid.

    Args:
        config_path: Path to the JSON config file (default: ``KUBEAPPLY_CONFIG``
            or ``kubeapply.json``)

    Returns:
        Configuration dictionary, or empty dict if file not found/invalid
    """
    path = Path(config_path or default_config_path())

    if not path.exists():
        return {}

    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError):
        # Return empty dict on error, allowing code to use defaults
        return {}

    return data if isinstance(data, dict) else {}


def get_config_value(
    keys: List[str], default: Any = None, config: Optional[Dict[str, Any]] = None
) -> Any:
    """Get nested configuration value with fallback to environment variable.

    Supports nested keys like ["k8s", "ca_cert"] or ["apply", "abort_on_error"].
    Also checks environment variables as fallback (e.g., K8S_CA_CERT for
    k8s.ca_cert).

    Args:
        keys: List of keys to traverse (e.g., ["k8s", "timeout"])
        default: Default value if key not found
        config: Optional config dict (uses load_config() if not provided)

    Returns:
        Configuration value, or default if not found
    """
    if config is None:
        config = load_config()

    value: Any = config
    for key in keys:
        if isinstance(value, dict):
            value = value.get(key)
            if value is None:
                break
        else:
            value = None
            break

    if value is not None:
        return value

    env_key = "_".join(k.upper() for k in keys)
    env_value = os.environ.get(env_key)
    if env_value is not None:
        return env_value

    return default


def as_bool(value: Any) -> bool:
    """Interpret a config or environment value as a boolean.

    Args:
        value: Raw value, e.g. ``True``, ``"true"``, ``"1"`` or ``"yes"``

    Returns:
        For strings, whether it is one of ``1``, ``true``, ``yes`` or ``on``
        (case-insensitive); for other values, ``bool(value)``
    """
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def as_kinds(value: Any) -> FrozenSet[str]:
    """Interpret a cluster-scoped kind list.

    Args:
        value: A JSON list of kinds, a comma separated string, or None

    Returns:
        The set of non-blank kinds, or ``DEFAULT_CLUSTER_SCOPED_KINDS`` when
        ``value`` is None
    """
    if value is None:
        return DEFAULT_CLUSTER_SCOPED_KINDS
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",")]
    else:
        items = [str(part).strip() for part in value]
    return frozenset(item for item in items if item)


@dataclass(frozen=True)
class ApplyConfig:
    """Immutable run configuration injected into the reconciler.

    Attributes:
        api_server: Base URL of the resource API, without trailing slash
        token: Bearer token used for every request
        default_namespace: Namespace forced onto every namespaced document.
            ``None`` keeps the namespace each document declares.
        abort_on_error: Stop processing after the first failed document
        delete_wait_timeout: Seconds to wait for a deleted resource to
            disappear before it is recreated (0 disables the wait)
        delete_poll_interval: Seconds between absence checks
        cluster_scoped_kinds: Kinds that never receive a namespace
    """
    api_server: str
    token: str
    default_namespace: Optional[str] = None
    abort_on_error: bool = False
    delete_wait_timeout: float = 30.0
    delete_poll_interval: float = 1.0
    cluster_scoped_kinds: FrozenSet[str] = field(
        default_factory=lambda: DEFAULT_CLUSTER_SCOPED_KINDS
    )

    def __post_init__(self) -> None:
        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "api_server", self.api_server.rstrip("/"))
        object.__setattr__(self, "token", self.token.strip())
        if self.default_namespace is not None and not self.default_namespace.strip():
            object.__setattr__(self, "default_namespace", None)
