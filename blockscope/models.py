"""
Shared data models for blockscope.

These dataclasses are the canonical data shapes used across all modules:
fetchers produce them, streams store them in the view state, output renders
them. Snapshots and price points are frozen; a refresh replaces them, it never
edits them in place.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from blockscope.exceptions import ParseError

# Backend returns the 15 most recent heights
MAX_BLOCK_LIST = 15


@dataclass(frozen=True)
class BlockSnapshot:
    """Metrics for one block, as served by the backend."""

    block_height: int
    block_hash: str
    transaction_count: int | None = None
    size: int | None = None
    weight: int | None = None
    difficulty: float | None = None
    merkle_root: str | None = None
    nonce: int | None = None
    miner: str | None = None
    market_price: float | None = None
    value: float | None = None
    value_today: float | None = None
    average_value: float | None = None
    median_value: float | None = None
    network_hashrate: float | None = None
    total_sent_today: float | None = None
    blockchain_size: float | None = None

    @classmethod
    def from_dict(cls, raw: Any) -> BlockSnapshot:
        """
        Build a snapshot from a backend JSON object.

        Unknown keys are ignored. block_height and block_hash are required;
        numeric fields that are present must be numbers.

        Raises:
            ParseError: raw is not an object or a field has the wrong type.
        """
        if not isinstance(raw, dict):
            raise ParseError(f"Expected block metrics object, got {type(raw).__name__}")

        height = raw.get("block_height")
        if not _is_int(height):
            raise ParseError(f"block_height must be an integer, got {height!r}")
        block_hash = raw.get("block_hash")
        if not isinstance(block_hash, str) or not block_hash:
            raise ParseError(f"block_hash must be a non-empty string, got {block_hash!r}")

        values: dict[str, Any] = {"block_height": height, "block_hash": block_hash}
        for f in fields(cls):
            if f.name in values or raw.get(f.name) is None:
                continue
            val = raw[f.name]
            if f.name in _INT_FIELDS:
                if not _is_int(val):
                    raise ParseError(f"{f.name} must be an integer, got {val!r}")
            elif f.name in _STR_FIELDS:
                if not isinstance(val, str):
                    raise ParseError(f"{f.name} must be a string, got {val!r}")
            elif not _is_number(val):
                raise ParseError(f"{f.name} must be a number, got {val!r}")
            values[f.name] = val
        return cls(**values)

    def short_hash(self) -> str:
        """Last six characters of the block hash, as shown on the dashboard."""
        return self.block_hash[-6:]

    def to_dict(self) -> dict:
        """Serialize for JSON output."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


_INT_FIELDS = {"transaction_count", "size", "weight", "nonce"}
_STR_FIELDS = {"merkle_root", "miner"}


@dataclass(frozen=True)
class PricePoint:
    """One market_chart sample."""

    timestamp_ms: int
    price: float


def parse_block_heights(raw: Any) -> tuple[int, ...]:
    """
    Validate a latest_15_blocks response.

    Keeps backend order and at most MAX_BLOCK_LIST entries.

    Raises:
        ParseError: raw is not a list of integers.
    """
    if not isinstance(raw, list):
        raise ParseError(f"Expected list of block heights, got {type(raw).__name__}")
    for item in raw:
        if not _is_int(item):
            raise ParseError(f"Block height must be an integer, got {item!r}")
    return tuple(raw[:MAX_BLOCK_LIST])


def parse_price_points(raw: Any) -> tuple[PricePoint, ...]:
    """
    Parse the `prices` field of a CoinGecko market_chart response.

    Returns points sorted ascending by timestamp.

    Raises:
        ParseError: missing `prices` or a sample that is not [epoch_ms, price].
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("prices"), list):
        raise ParseError("market_chart response has no 'prices' list")

    points: list[PricePoint] = []
    for sample in raw["prices"]:
        if (
            not isinstance(sample, (list, tuple))
            or len(sample) < 2
            or not _is_number(sample[0])
            or not _is_number(sample[1])
        ):
            raise ParseError(f"Price sample must be [epoch_ms, price], got {sample!r}")
        points.append(PricePoint(timestamp_ms=int(sample[0]), price=float(sample[1])))

    return tuple(sorted(points, key=lambda p: p.timestamp_ms))


def _is_int(val: Any) -> bool:
    return isinstance(val, int) and not isinstance(val, bool)


def _is_number(val: Any) -> bool:
    return isinstance(val, (int, float)) and not isinstance(val, bool)
