"""Base abstractions and typed results for the Sei MCP gateway."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Tuple

from .errors import McpRequestError


def _malformed(operation: str, detail: str) -> McpRequestError:
    return McpRequestError(f"Malformed {operation} result: {detail}")


def _as_mapping(payload: Any, operation: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise _malformed(operation, f"expected an object, got {type(payload).__name__}")
    return payload


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return None


def _to_int(value: Any, operation: str, field_name: str) -> int:
    if isinstance(value, bool):
        raise _malformed(operation, f"'{field_name}' must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            if text.lower().startswith("0x"):
                return int(text, 16)
            return int(text)
        except ValueError:
            pass
    raise _malformed(operation, f"'{field_name}' must be an integer, got {value!r}")


def _optional_int(value: Any, operation: str, field_name: str) -> Optional[int]:
    if value is None:
        return None
    return _to_int(value, operation, field_name)


def _require_int(payload: Mapping[str, Any], operation: str, *keys: str) -> int:
    value = _first(payload, *keys)
    if value is None:
        raise _malformed(operation, f"missing '{keys[0]}'")
    return _to_int(value, operation, keys[0])


def _require_str(payload: Mapping[str, Any], operation: str, *keys: str) -> str:
    value = _first(payload, *keys)
    if not isinstance(value, str) or not value.strip():
        raise _malformed(operation, f"missing '{keys[0]}'")
    return value.strip()


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _require_bool(payload: Mapping[str, Any], operation: str, key: str) -> bool:
    value = payload.get(key)
    if not isinstance(value, bool):
        raise _malformed(operation, f"'{key}' must be a boolean")
    return value


def _to_decimal(value: Any, operation: str, field_name: str) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise _malformed(operation, f"missing '{field_name}'")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise _malformed(operation, f"'{field_name}' must be numeric, got {value!r}") from exc


@dataclass(slots=True, frozen=True)
class Balance:
    address: str
    network: str
    wei: int
    amount: Decimal

    @classmethod
    def from_payload(cls, payload: Any, *, network: str) -> "Balance":
        data = _as_mapping(payload, "get_balance")
        amount_raw = _first(data, "ether", "sei", "formatted")
        return cls(
            address=_require_str(data, "get_balance", "address"),
            network=_optional_str(data.get("network")) or network,
            wei=_require_int(data, "get_balance", "wei"),
            amount=_to_decimal(amount_raw, "get_balance", "ether"),
        )


@dataclass(slots=True, frozen=True)
class TokenBalance:
    address: str
    token_address: str
    network: str
    raw: int
    formatted: Optional[str] = None
    symbol: Optional[str] = None
    decimals: Optional[int] = None

    @classmethod
    def from_payload(
        cls,
        payload: Any,
        *,
        operation: str,
        address: str,
        token_address: str,
        network: str,
    ) -> "TokenBalance":
        data = _as_mapping(payload, operation)
        balance = data.get("balance")
        formatted: Optional[str] = _optional_str(data.get("formatted"))
        symbol: Optional[str] = _optional_str(data.get("symbol"))
        decimals = _optional_int(data.get("decimals"), operation, "decimals")
        if isinstance(balance, Mapping):
            raw = _require_int(balance, operation, "raw", "value")
            formatted = _optional_str(balance.get("formatted")) or formatted
            token = balance.get("token")
            if isinstance(token, Mapping):
                symbol = _optional_str(token.get("symbol")) or symbol
                token_decimals = _optional_int(token.get("decimals"), operation, "decimals")
                if token_decimals is not None:
                    decimals = token_decimals
        elif balance is not None:
            raw = _to_int(balance, operation, "balance")
        else:
            raw = _require_int(data, operation, "raw", "wei")
        return cls(
            address=_optional_str(data.get("address")) or address,
            token_address=_optional_str(data.get("tokenAddress")) or token_address,
            network=_optional_str(data.get("network")) or network,
            raw=raw,
            formatted=formatted,
            symbol=symbol,
            decimals=decimals,
        )


@dataclass(slots=True, frozen=True)
class ChainInfo:
    network: str
    chain_id: int
    block_number: int
    rpc_url: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any, *, network: str) -> "ChainInfo":
        data = _as_mapping(payload, "get_chain_info")
        return cls(
            network=_optional_str(data.get("network")) or network,
            chain_id=_require_int(data, "get_chain_info", "chainId"),
            block_number=_require_int(data, "get_chain_info", "blockNumber"),
            rpc_url=_optional_str(data.get("rpcUrl")),
        )


@dataclass(slots=True, frozen=True)
class Block:
    number: int
    hash: str
    timestamp: int
    transaction_count: int
    gas_used: Optional[int] = None
    base_fee_per_gas: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Any, *, operation: str = "get_block") -> "Block":
        data = _as_mapping(payload, operation)
        transactions = data.get("transactions")
        if transactions is None:
            transactions = ()
        elif not isinstance(transactions, (list, tuple)):
            raise _malformed(operation, "'transactions' must be a list")
        return cls(
            number=_require_int(data, operation, "number"),
            hash=_require_str(data, operation, "hash"),
            timestamp=_require_int(data, operation, "timestamp"),
            transaction_count=len(transactions),
            gas_used=_optional_int(data.get("gasUsed"), operation, "gasUsed"),
            base_fee_per_gas=_optional_int(data.get("baseFeePerGas"), operation, "baseFeePerGas"),
        )


@dataclass(slots=True, frozen=True)
class Transaction:
    hash: str
    from_address: str
    to_address: Optional[str]
    value_wei: int
    block_number: Optional[int]
    nonce: Optional[int]
    gas: Optional[int]
    gas_price: Optional[int]
    input_data: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.block_number is None

    @property
    def is_contract_creation(self) -> bool:
        return self.to_address is None

    @classmethod
    def from_payload(cls, payload: Any) -> "Transaction":
        op = "get_transaction"
        data = _as_mapping(payload, op)
        return cls(
            hash=_require_str(data, op, "hash"),
            from_address=_require_str(data, op, "from"),
            to_address=_optional_str(data.get("to")),
            value_wei=_require_int(data, op, "value"),
            block_number=_optional_int(data.get("blockNumber"), op, "blockNumber"),
            nonce=_optional_int(data.get("nonce"), op, "nonce"),
            gas=_optional_int(data.get("gas"), op, "gas"),
            gas_price=_optional_int(_first(data, "gasPrice", "maxFeePerGas"), op, "gasPrice"),
            input_data=_optional_str(data.get("input")),
        )


@dataclass(slots=True, frozen=True)
class TransactionReceipt:
    transaction_hash: str
    status: str
    block_number: int
    gas_used: int
    from_address: str
    to_address: Optional[str]
    contract_address: Optional[str]
    log_count: int
    effective_gas_price: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

    @classmethod
    def from_payload(cls, payload: Any) -> "TransactionReceipt":
        op = "get_transaction_receipt"
        data = _as_mapping(payload, op)
        raw_status = _first(data, "status")
        if raw_status in ("success", "0x1", 1, "1"):
            status = "success"
        elif raw_status in ("reverted", "failed", "0x0", 0, "0"):
            status = "reverted"
        else:
            raise _malformed(op, f"unknown status {raw_status!r}")
        logs = data.get("logs")
        if logs is None:
            logs = ()
        elif not isinstance(logs, (list, tuple)):
            raise _malformed(op, "'logs' must be a list")
        return cls(
            transaction_hash=_require_str(data, op, "transactionHash"),
            status=status,
            block_number=_require_int(data, op, "blockNumber"),
            gas_used=_require_int(data, op, "gasUsed"),
            from_address=_require_str(data, op, "from"),
            to_address=_optional_str(data.get("to")),
            contract_address=_optional_str(data.get("contractAddress")),
            log_count=len(logs),
            effective_gas_price=_optional_int(data.get("effectiveGasPrice"), op, "effectiveGasPrice"),
        )


@dataclass(slots=True, frozen=True)
class TokenInfo:
    address: str
    name: str
    symbol: str
    decimals: int
    total_supply: Optional[int] = None
    formatted_total_supply: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any, *, token_address: str) -> "TokenInfo":
        op = "get_erc20_token_info"
        data = _as_mapping(payload, op)
        return cls(
            address=_optional_str(data.get("address")) or token_address,
            name=_require_str(data, op, "name"),
            symbol=_require_str(data, op, "symbol"),
            decimals=_require_int(data, op, "decimals"),
            total_supply=_optional_int(data.get("totalSupply"), op, "totalSupply"),
            formatted_total_supply=_optional_str(data.get("formattedTotalSupply")),
        )


@dataclass(slots=True, frozen=True)
class NftMetadata:
    contract: str
    token_id: str
    token_uri: str
    name: Optional[str] = None
    symbol: Optional[str] = None
    owner: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any, *, operation: str, contract: str, token_id: str) -> "NftMetadata":
        data = _as_mapping(payload, operation)
        owner = _optional_str(data.get("owner"))
        if owner is not None and owner.lower() == "unknown":
            owner = None
        return cls(
            contract=_optional_str(data.get("contract")) or contract,
            token_id=_optional_str(data.get("tokenId")) or token_id,
            token_uri=_require_str(data, operation, "tokenURI", "tokenUri", "uri"),
            name=_optional_str(data.get("name")),
            symbol=_optional_str(data.get("symbol")),
            owner=owner,
        )


@dataclass(slots=True, frozen=True)
class TokenUri:
    token_address: str
    token_id: str
    uri: str

    @classmethod
    def from_payload(cls, payload: Any, *, token_address: str, token_id: str) -> "TokenUri":
        if isinstance(payload, str) and payload.strip():
            return cls(token_address=token_address, token_id=token_id, uri=payload.strip())
        data = _as_mapping(payload, "get_erc1155_token_uri")
        return cls(
            token_address=token_address,
            token_id=token_id,
            uri=_require_str(data, "get_erc1155_token_uri", "uri"),
        )


@dataclass(slots=True, frozen=True)
class NftOwnership:
    token_address: str
    token_id: str
    owner_address: str
    is_owner: bool

    @classmethod
    def from_payload(cls, payload: Any, *, token_address: str, token_id: str, owner_address: str) -> "NftOwnership":
        data = _as_mapping(payload, "check_nft_ownership")
        return cls(
            token_address=_optional_str(data.get("tokenAddress")) or token_address,
            token_id=_optional_str(data.get("tokenId")) or token_id,
            owner_address=_optional_str(data.get("ownerAddress")) or owner_address,
            is_owner=_require_bool(data, "check_nft_ownership", "isOwner"),
        )


@dataclass(slots=True, frozen=True)
class NftBalance:
    collection: str
    owner: str
    balance: int
    token_id: Optional[str] = None

    @classmethod
    def from_payload(
        cls,
        payload: Any,
        *,
        operation: str,
        collection: str,
        owner: str,
        token_id: Optional[str] = None,
    ) -> "NftBalance":
        data = _as_mapping(payload, operation)
        return cls(
            collection=_optional_str(_first(data, "collection", "tokenAddress")) or collection,
            owner=_optional_str(_first(data, "owner", "ownerAddress")) or owner,
            balance=_require_int(data, operation, "balance"),
            token_id=_optional_str(data.get("tokenId")) or token_id,
        )


@dataclass(slots=True, frozen=True)
class ContractCheck:
    address: str
    is_contract: bool

    @property
    def account_type(self) -> str:
        return "Contract" if self.is_contract else "Externally Owned Account (EOA)"

    @classmethod
    def from_payload(cls, payload: Any, *, address: str) -> "ContractCheck":
        data = _as_mapping(payload, "is_contract")
        return cls(
            address=_optional_str(data.get("address")) or address,
            is_contract=_require_bool(data, "is_contract", "isContract"),
        )


@dataclass(slots=True, frozen=True)
class GasEstimate:
    to: str
    gas_limit: int
    gas_price: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Any, *, to: str) -> "GasEstimate":
        op = "estimate_gas"
        if isinstance(payload, (int, str)) and not isinstance(payload, bool):
            return cls(to=to, gas_limit=_to_int(payload, op, "gas"))
        data = _as_mapping(payload, op)
        return cls(
            to=to,
            gas_limit=_require_int(data, op, "gasLimit", "gas", "estimatedGas", "gasEstimate"),
            gas_price=_optional_int(data.get("gasPrice"), op, "gasPrice"),
        )


@dataclass(slots=True, frozen=True)
class TransferResult:
    operation: str
    transaction_hash: str
    network: str
    message: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any, *, operation: str, network: str) -> "TransferResult":
        if isinstance(payload, str) and payload.strip():
            return cls(operation=operation, transaction_hash=payload.strip(), network=network)
        data = _as_mapping(payload, operation)
        return cls(
            operation=operation,
            transaction_hash=_require_str(data, operation, "transactionHash", "txHash", "hash"),
            network=_optional_str(data.get("network")) or network,
            message=_optional_str(data.get("message")),
        )


@dataclass(slots=True, frozen=True)
class ContractCallResult:
    contract_address: str
    function_name: str
    value: Any


def parse_supported_networks(payload: Any) -> Tuple[str, ...]:
    op = "get_supported_networks"
    networks = payload.get("supportedNetworks") if isinstance(payload, Mapping) else payload
    if not isinstance(networks, (list, tuple)):
        raise _malformed(op, "'supportedNetworks' must be a list")
    result = []
    for item in networks:
        if not isinstance(item, str) or not item.strip():
            raise _malformed(op, f"invalid network name {item!r}")
        result.append(item.strip())
    return tuple(result)


class McpClient(ABC):
    """Common interface for long-lived MCP client connections."""

    @abstractmethod
    async def start(self) -> None:
        """Open connections needed for the client."""

    @abstractmethod
    async def close(self) -> None:
        """Shutdown any resources held by the client."""
