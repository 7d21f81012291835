"""Configuration loading for the Sei MCP gateway."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Final, Mapping, Optional

DEFAULT_MCP_SERVER_URL: Final[str] = "http://localhost:3004"
DEFAULT_RPC_PATH: Final[str] = "/api/mcp"
DEFAULT_NETWORK: Final[str] = "sei"
DEFAULT_GEMINI_MODEL: Final[str] = "gemini-1.5-flash-latest"

SEI_CHAIN_IDS: Final[Mapping[str, str]] = {
    "mainnet": "pacific-1",
    "testnet": "atlantic-2",
}


class ConfigError(RuntimeError):
    """Raised when environment configuration is missing or malformed."""


@dataclass(slots=True, frozen=True)
class ClientConfig:
    server_url: str = DEFAULT_MCP_SERVER_URL
    rpc_path: str = DEFAULT_RPC_PATH
    request_timeout: float = 30.0
    retry_attempts: int = 3
    retry_delay: float = 1.0
    max_requests_per_minute: int = 60
    rate_window: float = 60.0
    cache_ttl: float = 30.0
    default_network: str = DEFAULT_NETWORK
    network: str = "mainnet"
    chain_id: str = SEI_CHAIN_IDS["mainnet"]
    debug: bool = False
    log_level: str = "INFO"
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL

    @property
    def rpc_url(self) -> str:
        return f"{self.server_url}{self.rpc_path}"

    @property
    def log_level_value(self) -> int:
        if self.debug:
            return logging.DEBUG
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO


def _parse_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off", ""}:
        return False
    raise ConfigError(f"Environment variable '{name}' must be a boolean flag")


def _parse_positive_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return max(default, minimum)
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"Environment variable '{name}' must be an integer") from exc
    if value < minimum:
        raise ConfigError(f"Environment variable '{name}' must be >= {minimum}")
    return value


def _parse_positive_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return max(default, minimum)
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"Environment variable '{name}' must be a float") from exc
    if value < minimum:
        raise ConfigError(f"Environment variable '{name}' must be >= {minimum}")
    return value


def _normalize_path(value: str) -> str:
    value = value.strip() or DEFAULT_RPC_PATH
    if not value.startswith("/"):
        value = "/" + value
    return value


def load_config() -> ClientConfig:
    server_url = os.getenv("MCP_SERVER_URL", DEFAULT_MCP_SERVER_URL).strip().rstrip("/")
    if not server_url:
        raise ConfigError("MCP_SERVER_URL must not be empty")
    if not server_url.startswith(("http://", "https://")):
        raise ConfigError("MCP_SERVER_URL must be an http(s) URL")

    network = os.getenv("SEI_NETWORK", "mainnet").strip().lower() or "mainnet"
    if network not in SEI_CHAIN_IDS:
        raise ConfigError("SEI_NETWORK must be 'mainnet' or 'testnet'")
    chain_id = os.getenv("SEI_CHAIN_ID", "").strip() or SEI_CHAIN_IDS[network]

    default_network = os.getenv("SEI_MCP_NETWORK", DEFAULT_NETWORK).strip() or DEFAULT_NETWORK

    gemini_api_key = os.getenv("GEMINI_API_KEY") or None
    gemini_model = os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL).strip() or DEFAULT_GEMINI_MODEL

    return ClientConfig(
        server_url=server_url,
        rpc_path=_normalize_path(os.getenv("MCP_RPC_PATH", DEFAULT_RPC_PATH)),
        request_timeout=_parse_positive_float("MCP_SERVER_TIMEOUT", 30.0, minimum=0.1),
        retry_attempts=_parse_positive_int("MCP_CONNECTION_RETRY_ATTEMPTS", 3, minimum=0),
        retry_delay=_parse_positive_float("MCP_CONNECTION_RETRY_DELAY", 1.0, minimum=0.0),
        max_requests_per_minute=_parse_positive_int("MAX_REQUESTS_PER_MINUTE", 60, minimum=0),
        rate_window=_parse_positive_float("RATE_LIMIT_WINDOW", 60.0, minimum=1.0),
        cache_ttl=_parse_positive_float("REQUEST_CACHE_TTL", 30.0, minimum=0.1),
        default_network=default_network,
        network=network,
        chain_id=chain_id,
        debug=_parse_bool_env("MCP_DEBUG", False),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        gemini_api_key=gemini_api_key,
        gemini_model=gemini_model,
    )
