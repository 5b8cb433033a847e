"""Custom exception hierarchy for pybookvault."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class VaultError(Exception):
    """Base exception for all pybookvault errors."""


class VaultConfigError(VaultError):
    """Invalid or missing configuration."""


class VaultValidationError(VaultError):
    """Entity or request payload failed validation.

    Raised before any speculative change is applied, so the cache is
    left untouched.
    """


class VaultTransportError(VaultError):
    """HTTP-level failure (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class VaultApiError(VaultError):
    """GraphQL response carried ``errors`` or lacked the requested field."""

    def __init__(
        self,
        message: str,
        *,
        operation: str = "",
        errors: Sequence[dict[str, Any]] = (),
    ) -> None:
        self.operation = operation
        self.errors = list(errors)
        super().__init__(message)

    @property
    def messages(self) -> list[str]:
        """Human-readable messages of the individual GraphQL errors."""
        return [str(err.get("message", "")) for err in self.errors if isinstance(err, dict)]
