"""
Config loading for blockscope.

Sources (in precedence order, highest first):
  1. Environment variables (BLOCKSCOPE_*)
  2. ~/.blockscope/config.toml
  3. Built-in defaults

The backend base URL has no default: a missing value is a startup error,
never an empty prefix on request paths.

Usage:
    from blockscope.config import load_config
    config = load_config()
    print(config.backend.base_url)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import toml

from blockscope.exceptions import ConfigInvalidError, ConfigMissingError

DEFAULT_CONFIG_DIR = Path.home() / ".blockscope"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.toml"

COINGECKO_API_URL = "https://api.coingecko.com/api/v3"

# Format: (env_var_name, dotted_config_path, type_converter)
_ENV_OVERRIDES: list[tuple[str, str, type]] = [
    ("BLOCKSCOPE_BACKEND_API_URL", "backend.base_url", str),
    ("BLOCKSCOPE_POLL_INTERVAL", "poll.interval_seconds", float),
    ("BLOCKSCOPE_PRICE_API_URL", "prices.api_url", str),
    ("BLOCKSCOPE_HTTP_TIMEOUT", "http.timeout_seconds", float),
    ("BLOCKSCOPE_TOAST_SECONDS", "toast.duration_seconds", float),
    ("BLOCKSCOPE_LOG_LEVEL", "logging.level", str),
]

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class BackendConfig:
    """Block metrics backend."""

    base_url: str = ""


@dataclass
class PollConfig:
    """Refresh cadence of the latest-block poller."""

    interval_seconds: float = 30.0


@dataclass
class PriceConfig:
    """Public price-history service (CoinGecko market_chart)."""

    api_url: str = COINGECKO_API_URL
    coin_id: str = "bitcoin"
    vs_currency: str = "usd"
    days: int = 1


@dataclass
class HttpConfig:
    timeout_seconds: float = 30.0


@dataclass
class ToastConfig:
    duration_seconds: float = 2.0


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class BlockscopeConfig:
    """Full configuration object. Passed via Click context to all commands."""

    backend: BackendConfig = field(default_factory=BackendConfig)
    poll: PollConfig = field(default_factory=PollConfig)
    prices: PriceConfig = field(default_factory=PriceConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    toast: ToastConfig = field(default_factory=ToastConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | None = None) -> BlockscopeConfig:
    """
    Load configuration from TOML file + environment variable overrides.

    Args:
        path: Override config file path. If None, uses BLOCKSCOPE_CONFIG_PATH
              env var or default (~/.blockscope/config.toml).

    Returns:
        BlockscopeConfig with all values resolved.

    Raises:
        ConfigMissingError: No backend base URL in file or environment.
        ConfigInvalidError: Config file is invalid TOML or has invalid values.
    """
    config_path = _resolve_config_path(path)

    raw: dict = {}
    if config_path.exists():
        try:
            raw = toml.load(str(config_path))
        except toml.TomlDecodeError as e:
            raise ConfigInvalidError(f"Invalid TOML in {config_path}: {e}") from e

    config = _dict_to_config(raw)
    _apply_env_overrides(config)
    _validate_config(config)

    return config


def get_default_config_path() -> Path:
    """Return the default config file path."""
    return DEFAULT_CONFIG_PATH


# ──────────────────────────────────────────────────────────────
# Private helpers
# ──────────────────────────────────────────────────────────────


def _resolve_config_path(path: str | None) -> Path:
    if path:
        return Path(path).expanduser()
    env_path = os.environ.get("BLOCKSCOPE_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH


def _dict_to_config(raw: dict) -> BlockscopeConfig:
    """Build BlockscopeConfig from raw TOML dict, applying defaults for missing keys."""
    config = BlockscopeConfig()

    try:
        backend = raw.get("backend", {})
        config.backend.base_url = str(backend.get("base_url", ""))

        poll = raw.get("poll", {})
        config.poll.interval_seconds = float(poll.get("interval_seconds", 30.0))

        prices = raw.get("prices", {})
        config.prices.api_url = str(prices.get("api_url", COINGECKO_API_URL))
        config.prices.coin_id = str(prices.get("coin_id", "bitcoin"))
        config.prices.vs_currency = str(prices.get("vs_currency", "usd"))
        config.prices.days = int(prices.get("days", 1))

        http = raw.get("http", {})
        config.http.timeout_seconds = float(http.get("timeout_seconds", 30.0))

        toast = raw.get("toast", {})
        config.toast.duration_seconds = float(toast.get("duration_seconds", 2.0))

        log = raw.get("logging", {})
        config.logging.level = str(log.get("level", "WARNING"))
    except (ValueError, TypeError) as e:
        raise ConfigInvalidError(f"Invalid config value: {e}") from e

    return config


def _apply_env_overrides(config: BlockscopeConfig) -> None:
    """Apply environment variable overrides to a loaded config."""
    for env_var, dotted_key, converter in _ENV_OVERRIDES:
        val = os.environ.get(env_var)
        if val is None:
            continue
        section, key = dotted_key.split(".", 1)
        section_obj = getattr(config, section)
        try:
            setattr(section_obj, key, converter(val))
        except (ValueError, TypeError) as e:
            raise ConfigInvalidError(
                f"Invalid value for {env_var}={val!r}: {e}"
            ) from e


def _validate_config(config: BlockscopeConfig) -> None:
    """Validate config values. Raises ConfigError subclasses on bad values."""
    base_url = config.backend.base_url.strip().rstrip("/")
    if not base_url:
        raise ConfigMissingError(
            "Backend base URL is not configured. "
            "Set BLOCKSCOPE_BACKEND_API_URL or [backend] base_url in the config file."
        )
    if not base_url.startswith(("http://", "https://")):
        raise ConfigInvalidError(
            f"backend.base_url must be an http(s) URL, got {base_url!r}"
        )
    config.backend.base_url = base_url
    config.prices.api_url = config.prices.api_url.rstrip("/")

    if config.poll.interval_seconds <= 0:
        raise ConfigInvalidError(
            f"poll.interval_seconds must be positive, got {config.poll.interval_seconds}"
        )
    if config.http.timeout_seconds <= 0:
        raise ConfigInvalidError(
            f"http.timeout_seconds must be positive, got {config.http.timeout_seconds}"
        )
    if config.toast.duration_seconds <= 0:
        raise ConfigInvalidError(
            f"toast.duration_seconds must be positive, got {config.toast.duration_seconds}"
        )
    if config.prices.days < 1:
        raise ConfigInvalidError(f"prices.days must be >= 1, got {config.prices.days}")

    level = config.logging.level.upper()
    if level not in VALID_LOG_LEVELS:
        raise ConfigInvalidError(
            f"logging.level must be one of {sorted(VALID_LOG_LEVELS)}, "
            f"got {config.logging.level!r}"
        )
    config.logging.level = level
