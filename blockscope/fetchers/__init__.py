"""
Fetcher layer for blockscope.

Provides factory functions returning configured clients for the two
upstreams. Streams depend only on the BlockSource / PriceSource protocols,
so tests can swap in fakes.

Usage:
    from blockscope.fetchers import get_backend_client
    backend = get_backend_client(config)
    snapshot = await backend.latest_block_metrics()
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from blockscope.config import BlockscopeConfig
    from blockscope.fetchers.backend import BackendClient
    from blockscope.fetchers.coingecko import CoinGeckoClient
    from blockscope.models import BlockSnapshot, PricePoint


@runtime_checkable
class BlockSource(Protocol):
    """
    Protocol for the block metrics backend.

    Raises:
        NetworkError: Timeout, connection failure or non-2xx status
        ParseError: Response body has an unexpected shape
    """

    async def latest_block_metrics(self) -> BlockSnapshot:
        ...

    async def latest_blocks(self) -> tuple[int, ...]:
        ...

    async def block(self, height: int) -> BlockSnapshot:
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class PriceSource(Protocol):
    """Protocol for the price-history service."""

    async def market_chart(self) -> tuple[PricePoint, ...]:
        ...

    async def close(self) -> None:
        ...


def get_backend_client(config: BlockscopeConfig) -> BackendClient:
    from blockscope.fetchers.backend import BackendClient

    return BackendClient(config.backend.base_url, timeout=config.http.timeout_seconds)


def get_price_client(config: BlockscopeConfig) -> CoinGeckoClient:
    from blockscope.fetchers.coingecko import CoinGeckoClient

    return CoinGeckoClient(
        api_url=config.prices.api_url,
        coin_id=config.prices.coin_id,
        vs_currency=config.prices.vs_currency,
        days=config.prices.days,
        timeout=config.http.timeout_seconds,
    )
