"""Shared httpx transport for the backend and price clients."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from blockscope.exceptions import (
    BadStatusError,
    ConnectionFailedError,
    NetworkError,
    NetworkTimeoutError,
    ParseError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class JSONClient:
    """
    Async GET-and-decode client.

    Subclasses build URLs; this class owns the httpx.AsyncClient and maps
    every transport failure into the blockscope exception hierarchy:

    - timeout            → NetworkTimeoutError
    - connect failure    → ConnectionFailedError
    - other httpx error  → NetworkError
    - non-2xx response   → BadStatusError
    - body is not JSON   → ParseError
    """

    service_name = "API"

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        logger.debug("GET %s params=%s", url, params)
        try:
            resp = await self._client.get(url, params=params)
        except httpx.TimeoutException as e:
            raise NetworkTimeoutError(f"{self.service_name} timeout: {e}") from e
        except httpx.ConnectError as e:
            raise ConnectionFailedError(f"Cannot connect to {self.service_name}: {e}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"{self.service_name} request failed: {e}") from e

        if not resp.is_success:
            raise BadStatusError(
                f"{self.service_name} returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                url=str(resp.url),
            )

        try:
            return resp.json()
        except ValueError as e:
            raise ParseError(f"{self.service_name} returned invalid JSON: {e}") from e

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> JSONClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
