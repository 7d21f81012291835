"""Helpers for turning gateway results into console-friendly text."""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

from .addresses import shorten
from .mcp.base import (
    Balance,
    ChainInfo,
    ContractCheck,
    NftMetadata,
    NftOwnership,
    TokenBalance,
    Transaction,
    TransactionReceipt,
    TransferResult,
)
from .mcp.errors import (
    McpConnectionError,
    McpRequestError,
    McpTimeoutError,
    UnsupportedOperationError,
    is_rate_limited,
)

WEI_PER_SEI = Decimal(10) ** 18


def _format_sei(value: Decimal) -> str:
    if value == 0:
        return "0 SEI"
    if abs(value) >= 1:
        return f"{value:,.4f} SEI"
    return f"{value:.6f} SEI"


def _format_wei(value: int) -> str:
    if value == 0:
        return "0 SEI"
    sei = Decimal(value) / WEI_PER_SEI
    if sei >= Decimal("0.000001"):
        return _format_sei(sei)
    gwei = Decimal(value) / Decimal(10) ** 9
    if gwei >= Decimal("0.01"):
        return f"{gwei:.2f} gwei"
    return f"{value} wei"


def _format_network_label(network: Optional[str]) -> str:
    if not network:
        return "Sei"
    cleaned = network.replace("_", " ").replace("-", " ").strip()
    return cleaned.title() or "Sei"


def _or_na(value: Any) -> str:
    return "n/a" if value is None else str(value)


def format_balance(balance: Balance) -> str:
    lines = (
        "👛 Wallet Balance",
        f"Address: {shorten(balance.address)}",
        f"Balance: {_format_sei(balance.amount)}",
        f"Network: {_format_network_label(balance.network)}",
    )
    return "\n".join(lines)


def format_token_balance(balance: TokenBalance) -> str:
    symbol = balance.symbol or "tokens"
    amount = balance.formatted if balance.formatted is not None else str(balance.raw)
    lines = (
        "🪙 Token Balance",
        f"Holder: {shorten(balance.address)}",
        f"Token: {shorten(balance.token_address)}",
        f"Balance: {amount} {symbol}",
    )
    return "\n".join(lines)


def format_chain_info(info: ChainInfo) -> str:
    lines = [
        f"⛓️ {_format_network_label(info.network)} Chain",
        f"Chain id: {info.chain_id}",
        f"Latest block: {info.block_number:,}",
    ]
    if info.rpc_url:
        lines.append(f"RPC: {info.rpc_url}")
    return "\n".join(lines)


def format_transaction(tx: Transaction, receipt: Optional[TransactionReceipt] = None) -> str:
    if receipt is not None:
        status = "Success" if receipt.succeeded else "Reverted"
    else:
        status = "Pending" if tx.is_pending else "Included"
    lines: list[str] = [
        "📦 Transaction Summary",
        f"Hash: {tx.hash}",
        f"Status: {status}",
        f"From: {tx.from_address}",
        f"To: {tx.to_address or 'Contract creation'}",
        f"Value: {_format_wei(tx.value_wei)}",
        f"Block: {_or_na(tx.block_number)}",
        f"Nonce: {_or_na(tx.nonce)}",
    ]
    if receipt is not None:
        lines.append(f"Gas used: {receipt.gas_used:,}")
        lines.append(f"Logs emitted: {receipt.log_count}")
        if receipt.contract_address:
            lines.append(f"Created contract: {receipt.contract_address}")
    elif tx.gas is not None:
        lines.append(f"Gas limit: {tx.gas:,}")
    return "\n".join(lines)


def format_contract_check(check: ContractCheck) -> str:
    return f"🔎 {check.address} is a {check.account_type}"


def format_nft(metadata: NftMetadata, ownership: Optional[NftOwnership] = None) -> str:
    title = metadata.name or f"Token #{metadata.token_id}"
    lines = [
        f"🖼️ {title}",
        f"Contract: {metadata.contract}",
        f"Token id: {metadata.token_id}",
        f"Metadata URI: {metadata.token_uri}",
    ]
    if metadata.symbol:
        lines.append(f"Collection symbol: {metadata.symbol}")
    if metadata.owner:
        lines.append(f"Owner: {metadata.owner}")
    if ownership is not None:
        verdict = "owns" if ownership.is_owner else "does not own"
        lines.append(f"{shorten(ownership.owner_address)} {verdict} this token")
    return "\n".join(lines)


def format_transfer(result: TransferResult) -> str:
    lines = [
        "✅ Transaction submitted",
        f"Operation: {result.operation}",
        f"Hash: {result.transaction_hash}",
        f"Network: {_format_network_label(result.network)}",
    ]
    if result.message:
        lines.append(result.message)
    return "\n".join(lines)


def format_networks(networks: Sequence[str]) -> str:
    if not networks:
        return "No networks reported by the MCP server."
    return "🌐 Supported networks: " + ", ".join(networks)


def format_generic_result(name: str, result: Any) -> str:
    """Render an arbitrary MCP result as indented JSON."""

    pretty = json.dumps(result, indent=2, sort_keys=True, default=str)
    header = f"🛠️ {name} result" if name else "🛠️ Result"
    return f"{header}\n{pretty}"


def format_bullets(items: Iterable[str]) -> str:
    return "\n".join(f"• {item}" for item in items)


def describe_error(exc: BaseException) -> str:
    """Map a gateway failure to a message suitable for an end user."""

    if isinstance(exc, McpConnectionError):
        return "Unable to connect to the blockchain network. Please try again later."
    if isinstance(exc, McpTimeoutError):
        return "The request is taking longer than expected. Please try again."
    if is_rate_limited(exc):
        return "Too many requests. Please wait a moment before trying again."
    if isinstance(exc, UnsupportedOperationError):
        return str(exc)
    if isinstance(exc, McpRequestError):
        return f"Request failed: {exc}"
    return "An unexpected error occurred. Please try again."
