"""
Block metrics backend client.

Endpoints (relative to the configured base URL):
  GET /latest_block_metrics  → BlockSnapshot object
  GET /latest_15_blocks      → array of up to 15 block heights
  GET /block/{height}        → BlockSnapshot object for that height
"""

from __future__ import annotations

import httpx

from blockscope.fetchers.base import DEFAULT_TIMEOUT, JSONClient
from blockscope.models import BlockSnapshot, parse_block_heights


class BackendClient(JSONClient):
    """Async client for the block metrics backend."""

    service_name = "block metrics backend"

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(timeout=timeout, client=client)
        self.base_url = base_url.rstrip("/")

    async def latest_block_metrics(self) -> BlockSnapshot:
        data = await self.get_json(f"{self.base_url}/latest_block_metrics")
        return BlockSnapshot.from_dict(data)

    async def latest_blocks(self) -> tuple[int, ...]:
        data = await self.get_json(f"{self.base_url}/latest_15_blocks")
        return parse_block_heights(data)

    async def block(self, height: int) -> BlockSnapshot:
        """Fetch full metrics for one block height."""
        data = await self.get_json(f"{self.base_url}/block/{int(height)}")
        return BlockSnapshot.from_dict(data)
