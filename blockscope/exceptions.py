"""
Custom exception hierarchy for blockscope.

Every fetch stream catches BlockscopeError subclasses and turns them into its
own static error message; cli.py formats them as JSON on stderr.

Exit code mapping:
  1 — BlockscopeError (generic error)
  3 — NetworkError (timeout, connection refused, non-2xx status)
  4 — ParseError (response body has an unexpected shape)
  5 — ConfigError (missing/malformed config)
"""


class BlockscopeError(Exception):
    """Base exception for all blockscope errors."""

    exit_code: int = 1
    error_code: str = "unknown_error"

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class NetworkError(BlockscopeError):
    """Transport-level failure or non-2xx response."""

    exit_code = 3
    error_code = "network_error"


class NetworkTimeoutError(NetworkError):
    """Request timed out."""

    error_code = "network_timeout"


class ConnectionFailedError(NetworkError):
    """Could not connect to API endpoint."""

    error_code = "connection_failed"


class BadStatusError(NetworkError):
    """Endpoint answered with a non-2xx status code."""

    error_code = "bad_status"

    def __init__(self, message: str, status_code: int, url: str = "") -> None:
        super().__init__(message, details={"status_code": status_code, "url": url})
        self.status_code = status_code


class ParseError(BlockscopeError):
    """Response body is not JSON or does not have the expected shape."""

    exit_code = 4
    error_code = "parse_error"


class ConfigError(BlockscopeError):
    """Configuration is missing or malformed."""

    exit_code = 5
    error_code = "config_error"


class ConfigMissingError(ConfigError):
    """A required setting (the backend base URL) is not configured."""

    error_code = "config_missing"


class ConfigInvalidError(ConfigError):
    """Config file exists but contains invalid TOML or invalid values."""

    error_code = "config_invalid"
