"""Tests for blockscope/cli.py — Click CLI entry point."""

from __future__ import annotations

import json

import httpx
import pytest
import respx
from click.testing import CliRunner

from blockscope.cli import cli

BASE_URL = "http://backend.test/api"
MARKET_CHART_URL = "https://api.coingecko.com/api/v3/coins/bitcoin/market_chart"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def backend_env(clean_env, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BLOCKSCOPE_BACKEND_API_URL", BASE_URL)


def _error_payload(output: str) -> dict:
    """Last JSON line of the combined output: the stderr error object."""
    line = [ln for ln in output.splitlines() if ln.startswith("{")][-1]
    return json.loads(line)


# ── version / help ────────────────────────────────────────────────────────────


def test_cli_version(runner: CliRunner) -> None:
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_help_works_without_config(runner: CliRunner, clean_env) -> None:
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    for command in ("watch", "block", "blocks", "prices"):
        assert command in result.output


# ── config errors ─────────────────────────────────────────────────────────────


def test_missing_backend_url_exits_with_config_error(runner: CliRunner, clean_env) -> None:
    result = runner.invoke(cli, ["blocks"])
    assert result.exit_code == 5
    assert _error_payload(result.output)["error"] == "config_missing"


def test_invalid_config_file(runner: CliRunner, clean_env, tmp_path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text("[backend\nbase_url = ")

    result = runner.invoke(cli, ["--config", str(config_path), "blocks"])
    assert result.exit_code == 5
    assert _error_payload(result.output)["error"] == "config_invalid"


def test_config_file_supplies_backend_url(runner: CliRunner, clean_env, tmp_path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text(f'[backend]\nbase_url = "{BASE_URL}"\n')

    with respx.mock:
        respx.get(f"{BASE_URL}/latest_15_blocks").mock(
            return_value=httpx.Response(200, json=[3, 2, 1])
        )
        result = runner.invoke(cli, ["--config", str(config_path), "blocks"])

    assert result.exit_code == 0
    assert json.loads(result.output) == {"blocks": [3, 2, 1], "count": 3}


# ── blocks ────────────────────────────────────────────────────────────────────


@respx.mock
def test_blocks_json(runner: CliRunner, backend_env) -> None:
    heights = list(range(850_000, 849_985, -1))
    respx.get(f"{BASE_URL}/latest_15_blocks").mock(return_value=httpx.Response(200, json=heights))

    result = runner.invoke(cli, ["blocks"])

    assert result.exit_code == 0
    output = json.loads(result.output)
    assert output["blocks"] == heights
    assert output["count"] == 15


@respx.mock
def test_blocks_table(runner: CliRunner, backend_env) -> None:
    respx.get(f"{BASE_URL}/latest_15_blocks").mock(return_value=httpx.Response(200, json=[]))

    result = runner.invoke(cli, ["blocks", "--format", "table"])

    assert result.exit_code == 0
    assert "No blocks available" in result.output


@respx.mock
def test_blocks_network_failure_exit_code(runner: CliRunner, backend_env) -> None:
    respx.get(f"{BASE_URL}/latest_15_blocks").mock(side_effect=httpx.ConnectError("refused"))

    result = runner.invoke(cli, ["blocks"])

    assert result.exit_code == 3
    assert _error_payload(result.output)["error"] == "connection_failed"


@respx.mock
def test_blocks_bad_body_exit_code(runner: CliRunner, backend_env) -> None:
    respx.get(f"{BASE_URL}/latest_15_blocks").mock(
        return_value=httpx.Response(200, json={"blocks": "nope"})
    )

    result = runner.invoke(cli, ["blocks"])

    assert result.exit_code == 4
    assert _error_payload(result.output)["error"] == "parse_error"


# ── block ─────────────────────────────────────────────────────────────────────


@respx.mock
def test_block_json(runner: CliRunner, backend_env, make_payload) -> None:
    respx.get(f"{BASE_URL}/block/849990").mock(
        return_value=httpx.Response(200, json=make_payload(849_990))
    )

    result = runner.invoke(cli, ["block", "849990"])

    assert result.exit_code == 0
    output = json.loads(result.output)
    assert output["block_height"] == 849_990
    assert output["miner"] == "Foundry USA"


@respx.mock
def test_block_not_found(runner: CliRunner, backend_env) -> None:
    respx.get(f"{BASE_URL}/block/1").mock(return_value=httpx.Response(404))

    result = runner.invoke(cli, ["block", "1"])

    assert result.exit_code == 3
    payload = _error_payload(result.output)
    assert payload["error"] == "bad_status"
    assert payload["details"]["status_code"] == 404


def test_block_rejects_negative_height(runner: CliRunner, backend_env) -> None:
    result = runner.invoke(cli, ["block", "--", "-1"])
    assert result.exit_code == 2


# ── prices ────────────────────────────────────────────────────────────────────


@respx.mock
def test_prices_json(runner: CliRunner, backend_env, market_chart_payload) -> None:
    respx.get(MARKET_CHART_URL).mock(return_value=httpx.Response(200, json=market_chart_payload))

    result = runner.invoke(cli, ["prices"])

    assert result.exit_code == 0
    output = json.loads(result.output)
    assert output["label"] == "Bitcoin Price (USD)"
    assert output["values"] == [100, 110, 105]
    assert len(output["labels"]) == 3


@respx.mock
def test_prices_timeout(runner: CliRunner, backend_env) -> None:
    respx.get(MARKET_CHART_URL).mock(side_effect=httpx.ReadTimeout("slow"))

    result = runner.invoke(cli, ["prices"])

    assert result.exit_code == 3
    assert _error_payload(result.output)["error"] == "network_timeout"
