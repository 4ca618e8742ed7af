"""
CoinGecko price-history client.

Uses the public market_chart endpoint (no key required):
  GET {api}/coins/{coin_id}/market_chart?vs_currency=usd&days=1
  → {"prices": [[epoch_ms, price], ...], "market_caps": ..., "total_volumes": ...}

Only `prices` is read. No rate-limit handling: a 429 surfaces as
BadStatusError like any other non-2xx status.
"""

from __future__ import annotations

import httpx

from blockscope.config import COINGECKO_API_URL
from blockscope.fetchers.base import DEFAULT_TIMEOUT, JSONClient
from blockscope.models import PricePoint, parse_price_points


class CoinGeckoClient(JSONClient):
    """Async client for CoinGecko market_chart."""

    service_name = "CoinGecko"

    def __init__(
        self,
        api_url: str = COINGECKO_API_URL,
        coin_id: str = "bitcoin",
        vs_currency: str = "usd",
        days: int = 1,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(timeout=timeout, client=client)
        self.api_url = api_url.rstrip("/")
        self.coin_id = coin_id
        self.vs_currency = vs_currency
        self.days = days

    @property
    def market_chart_url(self) -> str:
        return f"{self.api_url}/coins/{self.coin_id}/market_chart"

    async def market_chart(self) -> tuple[PricePoint, ...]:
        """Price samples for the configured window, ascending by timestamp."""
        data = await self.get_json(
            self.market_chart_url,
            params={"vs_currency": self.vs_currency, "days": self.days},
        )
        return parse_price_points(data)
