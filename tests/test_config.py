import logging

import pytest

from sei_mcp_gateway.config import (
    DEFAULT_GEMINI_MODEL,
    DEFAULT_MCP_SERVER_URL,
    DEFAULT_NETWORK,
    ClientConfig,
    ConfigError,
    load_config,
)

_ENV_VARS = (
    "MCP_SERVER_URL",
    "MCP_RPC_PATH",
    "MCP_SERVER_TIMEOUT",
    "MCP_CONNECTION_RETRY_ATTEMPTS",
    "MCP_CONNECTION_RETRY_DELAY",
    "MAX_REQUESTS_PER_MINUTE",
    "RATE_LIMIT_WINDOW",
    "REQUEST_CACHE_TTL",
    "SEI_MCP_NETWORK",
    "SEI_NETWORK",
    "SEI_CHAIN_ID",
    "MCP_DEBUG",
    "LOG_LEVEL",
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield


def test_load_config_defaults():
    config = load_config()

    assert config.server_url == DEFAULT_MCP_SERVER_URL
    assert config.rpc_url == f"{DEFAULT_MCP_SERVER_URL}/api/mcp"
    assert config.request_timeout == pytest.approx(30.0)
    assert config.retry_attempts == 3
    assert config.retry_delay == pytest.approx(1.0)
    assert config.max_requests_per_minute == 60
    assert config.rate_window == pytest.approx(60.0)
    assert config.cache_ttl == pytest.approx(30.0)
    assert config.default_network == DEFAULT_NETWORK
    assert config.network == "mainnet"
    assert config.chain_id == "pacific-1"
    assert config.debug is False
    assert config.gemini_api_key is None
    assert config.gemini_model == DEFAULT_GEMINI_MODEL


def test_load_config_overrides(monkeypatch):
    monkeypatch.setenv("MCP_SERVER_URL", "https://mcp.example.com/")
    monkeypatch.setenv("MCP_RPC_PATH", "rpc")
    monkeypatch.setenv("MCP_SERVER_TIMEOUT", "2.5")
    monkeypatch.setenv("MAX_REQUESTS_PER_MINUTE", "0")
    monkeypatch.setenv("REQUEST_CACHE_TTL", "5")
    monkeypatch.setenv("SEI_NETWORK", "testnet")
    monkeypatch.setenv("SEI_MCP_NETWORK", "sei-testnet")
    monkeypatch.setenv("GEMINI_API_KEY", "gem-key")

    config = load_config()

    assert config.server_url == "https://mcp.example.com"
    assert config.rpc_url == "https://mcp.example.com/rpc"
    assert config.request_timeout == pytest.approx(2.5)
    assert config.max_requests_per_minute == 0
    assert config.cache_ttl == pytest.approx(5.0)
    assert config.chain_id == "atlantic-2"
    assert config.default_network == "sei-testnet"
    assert config.gemini_api_key == "gem-key"


def test_explicit_chain_id_wins(monkeypatch):
    monkeypatch.setenv("SEI_CHAIN_ID", "custom-7")

    assert load_config().chain_id == "custom-7"


@pytest.mark.parametrize(
    "name, value",
    [
        ("MCP_SERVER_URL", "ftp://mcp"),
        ("MCP_SERVER_TIMEOUT", "fast"),
        ("MCP_SERVER_TIMEOUT", "0"),
        ("MAX_REQUESTS_PER_MINUTE", "-1"),
        ("REQUEST_CACHE_TTL", "0"),
        ("RATE_LIMIT_WINDOW", "0.5"),
        ("SEI_NETWORK", "devnet"),
        ("MCP_DEBUG", "maybe"),
    ],
)
def test_load_config_rejects_invalid_values(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigError):
        load_config()


def test_debug_flag_forces_debug_logging(monkeypatch):
    monkeypatch.setenv("MCP_DEBUG", "yes")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")

    config = load_config()

    assert config.debug is True
    assert config.log_level_value == logging.DEBUG


def test_unknown_log_level_falls_back_to_info():
    assert ClientConfig(log_level="CHATTY").log_level_value == logging.INFO
