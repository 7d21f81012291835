"""Sei MCP gateway client, transport and decoded result types."""

from .base import (
    Balance,
    Block,
    ChainInfo,
    ContractCallResult,
    ContractCheck,
    GasEstimate,
    McpClient,
    NftBalance,
    NftMetadata,
    NftOwnership,
    TokenBalance,
    TokenInfo,
    TokenUri,
    Transaction,
    TransactionReceipt,
    TransferResult,
)
from .client import ConnectionState, SeiMcpClient
from .errors import (
    McpClientError,
    McpConnectionError,
    McpRequestError,
    McpTimeoutError,
    UnsupportedOperationError,
    is_rate_limited,
    is_recoverable,
)
from .transport import HttpMcpTransport

__all__ = [
    "Balance",
    "Block",
    "ChainInfo",
    "ConnectionState",
    "ContractCallResult",
    "ContractCheck",
    "GasEstimate",
    "HttpMcpTransport",
    "McpClient",
    "McpClientError",
    "McpConnectionError",
    "McpRequestError",
    "McpTimeoutError",
    "NftBalance",
    "NftMetadata",
    "NftOwnership",
    "SeiMcpClient",
    "TokenBalance",
    "TokenInfo",
    "TokenUri",
    "Transaction",
    "TransactionReceipt",
    "TransferResult",
    "UnsupportedOperationError",
    "is_rate_limited",
    "is_recoverable",
]
