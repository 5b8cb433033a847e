"""HTTP transport for GraphQL operations."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pybookvault._constants import USER_AGENT
from pybookvault._redact import redact_for_log, redact_headers
from pybookvault.config import VaultConfig
from pybookvault.exceptions import VaultTransportError

_logger = logging.getLogger(__name__)


class GraphQLTransport(Protocol):
    """Structural transport interface used by operation modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpGraphQLTransport`) concrete.
    """

    async def execute(
        self,
        operation_name: str,
        query: str,
        variables: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        ...


class HttpGraphQLTransport:
    """POST GraphQL documents as JSON and return the decoded response body."""

    def __init__(self, config: VaultConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "accept": "application/json",
            "content-type": "application/json; charset=UTF-8",
            "user-agent": USER_AGENT,
        }
        if self._config.auth_token:
            headers["authorization"] = f"Bearer {self._config.auth_token}"
        return headers

    async def execute(
        self,
        operation_name: str,
        query: str,
        variables: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send one GraphQL operation.

        The returned dict is the raw response body (``data`` and/or
        ``errors``); interpreting GraphQL errors is left to the caller.
        """
        url = self._config.endpoint
        payload = {
            "operationName": operation_name,
            "query": query,
            "variables": dict(variables or {}),
        }

        headers = self._headers()
        _logger.debug("POST %s (%s)", url, operation_name)
        if self._config.api_trace_enabled:
            _logger.debug("%s headers: %s", operation_name, redact_headers(headers))
            _logger.debug("%s variables: %s", operation_name, redact_for_log(payload["variables"]))

        try:
            async with self._http.post(
                url,
                data=json.dumps(payload, separators=(",", ":")),
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                text = await resp.text()
                # GraphQL servers report operation errors with 200, but some
                # use 400 with a JSON ``errors`` body.
                if resp.status != 200 and not (resp.status == 400 and text.lstrip().startswith("{")):
                    raise VaultTransportError(
                        f"HTTP {resp.status} from {operation_name}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=url,
                    )
        except VaultTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise VaultTransportError(
                f"Request for {operation_name} failed: {exc!r}",
                endpoint=url,
            ) from exc

        try:
            body: Any = json.loads(text)
        except json.JSONDecodeError as exc:
            raise VaultTransportError(
                f"Invalid JSON from {operation_name}: {text[:200]}",
                endpoint=url,
            ) from exc

        if not isinstance(body, dict):
            raise VaultTransportError(
                f"Unexpected response shape from {operation_name}: {type(body).__name__}",
                endpoint=url,
            )

        if self._config.api_trace_enabled:
            _logger.debug("%s response: %s", operation_name, redact_for_log(body))

        return body
