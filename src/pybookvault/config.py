"""Client configuration for pybookvault."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pybookvault._constants import DEFAULT_ENDPOINT, DEFAULT_QUERY_NAME
from pybookvault.exceptions import VaultConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise VaultConfigError(f"{name} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class VaultConfig:
    """Client configuration.

    Parameters
    ----------
    endpoint : str
        GraphQL endpoint URL.
    request_timeout : float
        Total timeout in seconds for a single GraphQL request.
    auth_token : str or None
        Optional bearer token sent as ``Authorization`` header.
    query_name : str
        Cache key under which the book list is stored.
    api_trace_enabled : bool
        Log (redacted) request variables and response bodies at DEBUG.
    """

    endpoint: str = DEFAULT_ENDPOINT
    request_timeout: float = 30.0
    auth_token: str | None = None
    query_name: str = DEFAULT_QUERY_NAME
    api_trace_enabled: bool = False

    def __post_init__(self) -> None:
        if not self.endpoint.strip():
            raise VaultConfigError("endpoint must be non-empty")
        if self.request_timeout <= 0:
            raise VaultConfigError(f"request_timeout must be positive, got {self.request_timeout}")

    @classmethod
    def from_env(cls, **overrides: Any) -> VaultConfig:
        """Create configuration from ``VAULT_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "VAULT_ENDPOINT": "endpoint",
            "VAULT_AUTH_TOKEN": "auth_token",
            "VAULT_QUERY_NAME": "query_name",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        timeout_env = env.get("VAULT_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = _env_float("VAULT_REQUEST_TIMEOUT", timeout_env)

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(
                env.get("VAULT_API_TRACE_ENABLED"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
