"""Async gateway to a Sei blockchain MCP server."""

from .config import ClientConfig, ConfigError, load_config
from .mcp import (
    Balance,
    Block,
    ChainInfo,
    ConnectionState,
    ContractCallResult,
    ContractCheck,
    GasEstimate,
    McpClientError,
    McpConnectionError,
    McpRequestError,
    McpTimeoutError,
    NftBalance,
    NftMetadata,
    NftOwnership,
    SeiMcpClient,
    TokenBalance,
    TokenInfo,
    TokenUri,
    Transaction,
    TransactionReceipt,
    TransferResult,
    UnsupportedOperationError,
    is_recoverable,
)
from .query_parser import (
    Intent,
    NftReference,
    ParsedQuery,
    Timeframe,
    classify_intent,
    extract_dex,
    extract_nft_reference,
    extract_timeframe,
    extract_token_symbol,
    extract_transaction_hash,
    extract_wallet_address,
    parse_query,
)

__all__ = [
    "Balance",
    "Block",
    "ChainInfo",
    "ClientConfig",
    "ConfigError",
    "ConnectionState",
    "ContractCallResult",
    "ContractCheck",
    "GasEstimate",
    "Intent",
    "McpClientError",
    "McpConnectionError",
    "McpRequestError",
    "McpTimeoutError",
    "NftBalance",
    "NftMetadata",
    "NftOwnership",
    "NftReference",
    "ParsedQuery",
    "SeiMcpClient",
    "Timeframe",
    "TokenBalance",
    "TokenInfo",
    "TokenUri",
    "Transaction",
    "TransactionReceipt",
    "TransferResult",
    "UnsupportedOperationError",
    "classify_intent",
    "extract_dex",
    "extract_nft_reference",
    "extract_timeframe",
    "extract_token_symbol",
    "extract_transaction_hash",
    "extract_wallet_address",
    "is_recoverable",
    "load_config",
    "parse_query",
]
