"""Shared helpers for GraphQL operation modules.

This module centralizes the most repeated patterns:
- executing an operation through the transport
- mapping a GraphQL ``errors`` array to :class:`VaultApiError`
- extracting the top-level field an operation selected

It is internal to pybookvault and may change at any time.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pybookvault._transport import GraphQLTransport
from pybookvault.exceptions import VaultApiError


def _raise_for_errors(operation: str, errors: Any) -> None:
    items = [err for err in errors if isinstance(err, dict)] if isinstance(errors, list) else []
    messages = "; ".join(str(err.get("message", "")) for err in items) or "unknown error"
    raise VaultApiError(
        f"{operation} failed: {messages}",
        operation=operation,
        errors=items,
    )


async def execute_field(
    *,
    transport: GraphQLTransport,
    operation: str,
    query: str,
    field: str,
    variables: Mapping[str, Any] | None = None,
) -> Any:
    """Run *operation* and return ``data[field]``.

    Raises :class:`VaultApiError` when the response carries ``errors``
    or the selected field is missing.
    """
    response = await transport.execute(operation, query, variables)

    errors = response.get("errors")
    if errors:
        _raise_for_errors(operation, errors)

    data = response.get("data")
    if not isinstance(data, dict) or field not in data:
        raise VaultApiError(f"{operation} response has no data.{field}", operation=operation)
    return data[field]
