"""Pytest fixtures shared across all blockscope tests."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import pytest

from blockscope.config import (
    BackendConfig,
    BlockscopeConfig,
    HttpConfig,
    PollConfig,
    ToastConfig,
)
from blockscope.models import BlockSnapshot, PricePoint

BASE_URL = "http://backend.test/api"


# ── Config fixtures ───────────────────────────────────────────────────────────


@pytest.fixture
def sample_config() -> BlockscopeConfig:
    """Minimal valid BlockscopeConfig for tests."""
    return BlockscopeConfig(
        backend=BackendConfig(base_url=BASE_URL),
        poll=PollConfig(interval_seconds=30.0),
        http=HttpConfig(timeout_seconds=5.0),
        toast=ToastConfig(duration_seconds=2.0),
    )


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """No BLOCKSCOPE_* variables and no user config file."""
    for var in (
        "BLOCKSCOPE_BACKEND_API_URL",
        "BLOCKSCOPE_POLL_INTERVAL",
        "BLOCKSCOPE_PRICE_API_URL",
        "BLOCKSCOPE_HTTP_TIMEOUT",
        "BLOCKSCOPE_TOAST_SECONDS",
        "BLOCKSCOPE_LOG_LEVEL",
        "BLOCKSCOPE_CONFIG",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("BLOCKSCOPE_CONFIG_PATH", str(tmp_path / "absent.toml"))


# ── Payload fixtures ──────────────────────────────────────────────────────────


def block_payload(height: int = 850_000) -> dict[str, Any]:
    """Backend JSON for one block, as served by /block/{height}."""
    return {
        "block_height": height,
        "block_hash": f"00000000000000000002a7c4c1e48d76c5a37902165a270156b7a8d72{height % 1000:07d}",
        "transaction_count": 3120,
        "size": 1_543_210,
        "weight": 3_993_000,
        "difficulty": 83_148_355_189_239.77,
        "merkle_root": "4a5e1e4baab89f3a32518a88c31bc87f618f76673e2cc77ab2127b7afdeda33b",
        "nonce": 2_083_236_893,
        "miner": "Foundry USA",
        "market_price": 67_123.456,
        "value": 4_210.5,
        "value_today": 510_000.25,
        "average_value": 1.3495,
        "median_value": 0.0123,
        "network_hashrate": 612_345_678_901.234,
        "total_sent_today": 250_123.789,
        "blockchain_size": 589.12345678,
    }


@pytest.fixture
def make_payload() -> Callable[[int], dict[str, Any]]:
    return block_payload


@pytest.fixture
def make_snapshot() -> Callable[[int], BlockSnapshot]:
    return lambda height=850_000: BlockSnapshot.from_dict(block_payload(height))


@pytest.fixture
def market_chart_payload() -> dict[str, Any]:
    """CoinGecko market_chart response (trimmed to three samples)."""
    return {
        "prices": [[0, 100], [3_600_000, 110], [7_200_000, 105]],
        "market_caps": [[0, 1.0], [3_600_000, 1.1], [7_200_000, 1.05]],
        "total_volumes": [[0, 5.0], [3_600_000, 5.1], [7_200_000, 5.2]],
    }


# ── Fake upstreams ────────────────────────────────────────────────────────────


class FakeBackend:
    """
    In-memory BlockSource.

    - `snapshots`: results for successive latest_block_metrics() calls
      (BlockSnapshot or Exception); falls back to `latest_default`
    - `latest_gates`: per-call asyncio.Event the call waits on before returning
    - `detail_gates`: per-height asyncio.Event for block(height)
    - `errors`: method name → exception raised by that method
    """

    def __init__(self) -> None:
        self.latest_default = BlockSnapshot.from_dict(block_payload(850_000))
        self.snapshots: list[BlockSnapshot | Exception] = []
        self.latest_gates: list[asyncio.Event | None] = []
        self.heights: tuple[int, ...] = tuple(range(850_000, 849_985, -1))
        self.detail_gates: dict[int, asyncio.Event] = {}
        self.errors: dict[str, Exception] = {}
        self.latest_calls = 0
        self.detail_calls: list[int] = []
        self.closed = False

    async def latest_block_metrics(self) -> BlockSnapshot:
        self.latest_calls += 1
        gate = self.latest_gates.pop(0) if self.latest_gates else None
        item = self.snapshots.pop(0) if self.snapshots else self.latest_default
        if gate is not None:
            await gate.wait()
        if "latest_block_metrics" in self.errors:
            raise self.errors["latest_block_metrics"]
        if isinstance(item, Exception):
            raise item
        return item

    async def latest_blocks(self) -> tuple[int, ...]:
        if "latest_blocks" in self.errors:
            raise self.errors["latest_blocks"]
        return self.heights

    async def block(self, height: int) -> BlockSnapshot:
        self.detail_calls.append(height)
        gate = self.detail_gates.get(height)
        if gate is not None:
            await gate.wait()
        if "block" in self.errors:
            raise self.errors["block"]
        return BlockSnapshot.from_dict(block_payload(height))

    async def close(self) -> None:
        self.closed = True


class FakePrices:
    """In-memory PriceSource."""

    def __init__(self) -> None:
        self.points: tuple[PricePoint, ...] = (
            PricePoint(0, 100.0),
            PricePoint(3_600_000, 110.0),
            PricePoint(7_200_000, 105.0),
        )
        self.error: Exception | None = None
        self.calls = 0
        self.closed = False

    async def market_chart(self) -> tuple[PricePoint, ...]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.points

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def fake_prices() -> FakePrices:
    return FakePrices()

