"""Gateway client for the Sei MCP JSON-RPC server."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

from ..addresses import normalize_recipient
from ..config import ClientConfig
from ..infra.cache import ResponseCache, build_cache_key
from ..infra.ratelimit import DEFAULT_IDENTIFIER, SlidingWindowRateLimiter
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
    parse_supported_networks,
)
from .errors import (
    McpClientError,
    McpConnectionError,
    McpRequestError,
    McpTimeoutError,
    UnsupportedOperationError,
)
from .transport import HttpMcpTransport

_LOGGER = logging.getLogger(__name__)


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


def _params(**values: Any) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def _require_text(value: Optional[str], name: str) -> str:
    text = (value or "").strip()
    if not text:
        raise McpRequestError(f"{name} must not be empty")
    return text


def _validate_amount(amount: Any) -> str:
    text = str(amount).strip()
    try:
        parsed = Decimal(text)
    except InvalidOperation as exc:
        raise McpRequestError(f"Invalid amount '{amount}'") from exc
    if not parsed.is_finite() or parsed <= 0:
        raise McpRequestError(f"Amount must be a positive number, got '{amount}'")
    return text


def _recipient(address: str) -> str:
    try:
        return normalize_recipient(address)
    except ValueError as exc:
        raise McpRequestError(str(exc)) from exc


class SeiMcpClient(McpClient):
    """Single entry point for Sei blockchain operations served by the MCP server.

    Every call goes through the same pipeline: cache lookup, rate-limit admission,
    lazy connection, dispatch, decode, cache store. Connection establishment is
    shared, so concurrent first calls trigger a single health probe and all of them
    observe the same outcome. Reads are cacheable; transfers, writes and gas
    estimates never are.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        transport: Optional[HttpMcpTransport] = None,
        cache: Optional[ResponseCache] = None,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
    ) -> None:
        self._config = config or ClientConfig()
        self._transport = transport or HttpMcpTransport(
            self._config.server_url,
            rpc_path=self._config.rpc_path,
            timeout=self._config.request_timeout,
        )
        self._cache = cache if cache is not None else ResponseCache(self._config.cache_ttl)
        self._rate_limiter = (
            rate_limiter
            if rate_limiter is not None
            else SlidingWindowRateLimiter(self._config.max_requests_per_minute, window=self._config.rate_window)
        )
        self._state = ConnectionState.DISCONNECTED
        self._connect_task: Optional[asyncio.Task[None]] = None
        _LOGGER.debug(
            "Initialised Sei MCP client for %s (network=%s)",
            self._config.server_url,
            self._config.default_network,
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def rate_limiter(self) -> SlidingWindowRateLimiter:
        return self._rate_limiter

    async def __aenter__(self) -> "SeiMcpClient":
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.close()

    async def start(self) -> None:
        await self.ensure_connected()

    async def ensure_connected(self) -> None:
        if self._state is ConnectionState.CONNECTED:
            if self._transport.is_ready:
                return
            _LOGGER.warning("MCP session was lost; reconnecting")
            self._state = ConnectionState.DISCONNECTED

        task = self._connect_task
        if task is None:
            task = asyncio.get_running_loop().create_task(self._connect(), name="mcp-connect")
            self._connect_task = task
            task.add_done_callback(self._on_connect_done)
        else:
            _LOGGER.debug("Connection to MCP server in progress; waiting")

        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled():
                raise McpConnectionError("Connection attempt to MCP server was cancelled") from None
            raise

    async def _connect(self) -> None:
        self._state = ConnectionState.CONNECTING
        _LOGGER.debug("Connecting to MCP server at %s", self._transport.base_url)
        try:
            await self._transport.connect()
        except BaseException as exc:
            self._state = ConnectionState.DISCONNECTED
            if isinstance(exc, McpClientError):
                _LOGGER.warning("MCP connection failed: %s", exc)
            raise
        self._state = ConnectionState.CONNECTED
        _LOGGER.info("Connected to MCP server at %s", self._transport.base_url)

    def _on_connect_done(self, task: "asyncio.Task[None]") -> None:
        if self._connect_task is task:
            self._connect_task = None
        if not task.cancelled():
            # Mark the outcome as retrieved when every waiter has gone away.
            task.exception()

    async def call(
        self,
        operation: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        cacheable: bool = True,
        identifier: Optional[str] = None,
        timeout: Optional[float] = None,
        decoder: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        """Dispatch ``operation`` and return its (optionally decoded) result.

        ``timeout`` imposes a deadline on everything after the cache lookup and
        surfaces as :class:`McpTimeoutError`. The in-flight HTTP request is cancelled
        on a best-effort basis.
        """

        payload = dict(params or {})
        cache_key = build_cache_key(operation, payload) if cacheable else None
        if cache_key is not None:
            cached = self._cache.get(cache_key)
            if cached is not None:
                _LOGGER.debug("Cache hit for %s", cache_key)
                return cached

        dispatch = self._dispatch(operation, payload, identifier or DEFAULT_IDENTIFIER, cache_key, decoder)
        if timeout is None:
            return await dispatch
        try:
            return await asyncio.wait_for(dispatch, timeout)
        except asyncio.TimeoutError as exc:
            _LOGGER.warning("MCP request %s exceeded %.2fs deadline", operation, timeout)
            raise McpTimeoutError(f"MCP request {operation} timed out after {timeout:.2f}s", timeout=timeout) from exc

    async def _dispatch(
        self,
        operation: str,
        params: Dict[str, Any],
        identifier: str,
        cache_key: Optional[str],
        decoder: Optional[Callable[[Any], Any]],
    ) -> Any:
        self._admit(operation, identifier)
        await self.ensure_connected()
        # Other callers may have used the quota while we waited on the connect.
        self._admit(operation, identifier)
        self._rate_limiter.record(identifier)

        _LOGGER.debug("Dispatching %s with params %s", operation, params)
        try:
            raw = await self._transport.request(operation, params)
        except McpClientError:
            if not self._transport.is_ready:
                self._state = ConnectionState.DISCONNECTED
            raise

        result = decoder(raw) if decoder is not None else raw
        if cache_key is not None and result is not None:
            self._cache.set(cache_key, result)
        return result

    def _admit(self, operation: str, identifier: str) -> None:
        if not self._rate_limiter.can_admit(identifier):
            _LOGGER.warning("Rate limit exceeded for %s (identifier=%s)", operation, identifier)
            raise McpRequestError("Rate limit exceeded. Please try again later.", status_code=429)

    def clear_cache(self, key: Optional[str] = None) -> None:
        if key is None:
            self._cache.clear()
        else:
            self._cache.evict(key)

    async def close(self) -> None:
        task, self._connect_task = self._connect_task, None
        if task is not None and not task.done():
            task.cancel()
            with suppress(asyncio.CancelledError, McpClientError):
                await task
        await self._transport.close()
        self._cache.clear()
        if self._state is not ConnectionState.DISCONNECTED:
            _LOGGER.info("Disconnected from MCP server")
        self._state = ConnectionState.DISCONNECTED

    def _network(self, network: Optional[str]) -> str:
        return (network or self._config.default_network).strip()

    # Reads

    async def get_balance(self, address: str, network: Optional[str] = None, **options: Any) -> Balance:
        net = self._network(network)
        return await self.call(
            "get_balance",
            _params(address=_require_text(address, "address"), network=net),
            decoder=lambda raw: Balance.from_payload(raw, network=net),
            **options,
        )

    async def get_erc20_balance(
        self, token_address: str, address: str, network: Optional[str] = None, **options: Any
    ) -> TokenBalance:
        return await self._token_balance("get_erc20_balance", token_address, address, network, options)

    async def get_token_balance(
        self, token_address: str, address: str, network: Optional[str] = None, **options: Any
    ) -> TokenBalance:
        return await self._token_balance("get_token_balance", token_address, address, network, options)

    async def get_token_balance_erc20(
        self, token_address: str, address: str, network: Optional[str] = None, **options: Any
    ) -> TokenBalance:
        return await self._token_balance("get_token_balance_erc20", token_address, address, network, options)

    async def _token_balance(
        self,
        operation: str,
        token_address: str,
        address: str,
        network: Optional[str],
        options: Mapping[str, Any],
    ) -> TokenBalance:
        net = self._network(network)
        token = _require_text(token_address, "tokenAddress")
        owner = _require_text(address, "address")
        return await self.call(
            operation,
            _params(tokenAddress=token, address=owner, network=net),
            decoder=lambda raw: TokenBalance.from_payload(
                raw, operation=operation, address=owner, token_address=token, network=net
            ),
            **options,
        )

    async def get_chain_info(self, network: Optional[str] = None, **options: Any) -> ChainInfo:
        net = self._network(network)
        return await self.call(
            "get_chain_info",
            _params(network=net),
            decoder=lambda raw: ChainInfo.from_payload(raw, network=net),
            **options,
        )

    async def get_latest_block(self, network: Optional[str] = None, **options: Any) -> Block:
        return await self.call(
            "get_latest_block",
            _params(network=self._network(network)),
            decoder=lambda raw: Block.from_payload(raw, operation="get_latest_block"),
            **options,
        )

    async def get_block_by_number(self, block_number: int, network: Optional[str] = None, **options: Any) -> Block:
        if isinstance(block_number, bool) or not isinstance(block_number, int) or block_number < 0:
            raise McpRequestError(f"Block number must be a non-negative integer, got {block_number!r}")
        return await self.call(
            "get_block_by_number",
            _params(blockNumber=block_number, network=self._network(network)),
            decoder=lambda raw: Block.from_payload(raw, operation="get_block_by_number"),
            **options,
        )

    async def get_transaction(self, tx_hash: str, network: Optional[str] = None, **options: Any) -> Transaction:
        return await self.call(
            "get_transaction",
            _params(txHash=_require_text(tx_hash, "txHash"), network=self._network(network)),
            decoder=Transaction.from_payload,
            **options,
        )

    async def get_transaction_details(self, tx_hash: str, network: Optional[str] = None, **options: Any) -> Transaction:
        return await self.get_transaction(tx_hash, network, **options)

    async def get_transaction_receipt(
        self, tx_hash: str, network: Optional[str] = None, **options: Any
    ) -> TransactionReceipt:
        return await self.call(
            "get_transaction_receipt",
            _params(txHash=_require_text(tx_hash, "txHash"), network=self._network(network)),
            decoder=TransactionReceipt.from_payload,
            **options,
        )

    async def get_erc20_token_info(self, token_address: str, network: Optional[str] = None, **options: Any) -> TokenInfo:
        token = _require_text(token_address, "tokenAddress")
        return await self.call(
            "get_erc20_token_info",
            _params(tokenAddress=token, network=self._network(network)),
            decoder=lambda raw: TokenInfo.from_payload(raw, token_address=token),
            **options,
        )

    async def get_erc721_token_metadata(
        self, token_address: str, token_id: str, network: Optional[str] = None, **options: Any
    ) -> NftMetadata:
        return await self._nft_metadata("get_erc721_token_metadata", token_address, token_id, network, options)

    async def get_nft_info(
        self, token_address: str, token_id: str, network: Optional[str] = None, **options: Any
    ) -> NftMetadata:
        return await self._nft_metadata("get_nft_info", token_address, token_id, network, options)

    async def _nft_metadata(
        self,
        operation: str,
        token_address: str,
        token_id: Any,
        network: Optional[str],
        options: Mapping[str, Any],
    ) -> NftMetadata:
        token = _require_text(token_address, "tokenAddress")
        ident = _require_text(str(token_id), "tokenId")
        return await self.call(
            operation,
            _params(tokenAddress=token, tokenId=ident, network=self._network(network)),
            decoder=lambda raw: NftMetadata.from_payload(raw, operation=operation, contract=token, token_id=ident),
            **options,
        )

    async def get_erc1155_token_uri(
        self, token_address: str, token_id: str, network: Optional[str] = None, **options: Any
    ) -> TokenUri:
        token = _require_text(token_address, "tokenAddress")
        ident = _require_text(str(token_id), "tokenId")
        return await self.call(
            "get_erc1155_token_uri",
            _params(tokenAddress=token, tokenId=ident, network=self._network(network)),
            decoder=lambda raw: TokenUri.from_payload(raw, token_address=token, token_id=ident),
            **options,
        )

    async def check_nft_ownership(
        self,
        token_address: str,
        token_id: str,
        owner_address: str,
        network: Optional[str] = None,
        **options: Any,
    ) -> NftOwnership:
        token = _require_text(token_address, "tokenAddress")
        ident = _require_text(str(token_id), "tokenId")
        owner = _require_text(owner_address, "ownerAddress")
        return await self.call(
            "check_nft_ownership",
            _params(tokenAddress=token, tokenId=ident, ownerAddress=owner, network=self._network(network)),
            decoder=lambda raw: NftOwnership.from_payload(
                raw, token_address=token, token_id=ident, owner_address=owner
            ),
            **options,
        )

    async def get_nft_balance(
        self, token_address: str, owner_address: str, network: Optional[str] = None, **options: Any
    ) -> NftBalance:
        token = _require_text(token_address, "tokenAddress")
        owner = _require_text(owner_address, "ownerAddress")
        return await self.call(
            "get_nft_balance",
            _params(tokenAddress=token, ownerAddress=owner, network=self._network(network)),
            decoder=lambda raw: NftBalance.from_payload(
                raw, operation="get_nft_balance", collection=token, owner=owner
            ),
            **options,
        )

    async def get_erc1155_balance(
        self,
        token_address: str,
        token_id: str,
        owner_address: str,
        network: Optional[str] = None,
        **options: Any,
    ) -> NftBalance:
        token = _require_text(token_address, "tokenAddress")
        ident = _require_text(str(token_id), "tokenId")
        owner = _require_text(owner_address, "ownerAddress")
        return await self.call(
            "get_erc1155_balance",
            _params(tokenAddress=token, tokenId=ident, ownerAddress=owner, network=self._network(network)),
            decoder=lambda raw: NftBalance.from_payload(
                raw, operation="get_erc1155_balance", collection=token, owner=owner, token_id=ident
            ),
            **options,
        )

    async def is_contract(self, address: str, network: Optional[str] = None, **options: Any) -> ContractCheck:
        target = _require_text(address, "address")
        return await self.call(
            "is_contract",
            _params(address=target, network=self._network(network)),
            decoder=lambda raw: ContractCheck.from_payload(raw, address=target),
            **options,
        )

    async def get_supported_networks(self, **options: Any) -> Tuple[str, ...]:
        return await self.call("get_supported_networks", {}, decoder=parse_supported_networks, **options)

    async def read_contract(
        self,
        contract_address: str,
        abi: Sequence[Mapping[str, Any]],
        function_name: str,
        args: Optional[Sequence[Any]] = None,
        network: Optional[str] = None,
        **options: Any,
    ) -> ContractCallResult:
        contract = _require_text(contract_address, "contractAddress")
        function = _require_text(function_name, "functionName")
        return await self.call(
            "read_contract",
            _params(
                contractAddress=contract,
                abi=list(abi),
                functionName=function,
                args=list(args or []),
                network=self._network(network),
            ),
            decoder=lambda raw: ContractCallResult(contract_address=contract, function_name=function, value=raw),
            **options,
        )

    # Mutations and live estimates: never served from or stored in the cache.

    async def estimate_gas(
        self,
        to: str,
        data: Optional[str] = None,
        value: Optional[str] = None,
        network: Optional[str] = None,
        **options: Any,
    ) -> GasEstimate:
        recipient = _recipient(to)
        return await self.call(
            "estimate_gas",
            _params(to=recipient, data=data, value=value, network=self._network(network)),
            cacheable=False,
            decoder=lambda raw: GasEstimate.from_payload(raw, to=recipient),
            **options,
        )

    async def transfer_native(
        self, to: str, amount: Any, network: Optional[str] = None, **options: Any
    ) -> TransferResult:
        return await self._mutate(
            "transfer_sei",
            _params(to=_recipient(to), amount=_validate_amount(amount), network=self._network(network)),
            options,
        )

    async def transfer_erc20(
        self, token_address: str, to: str, amount: Any, network: Optional[str] = None, **options: Any
    ) -> TransferResult:
        return await self._mutate(
            "transfer_erc20",
            _params(
                tokenAddress=_require_text(token_address, "tokenAddress"),
                to=_recipient(to),
                amount=_validate_amount(amount),
                network=self._network(network),
            ),
            options,
        )

    async def transfer_token(
        self, token_address: str, to: str, amount: Any, network: Optional[str] = None, **options: Any
    ) -> TransferResult:
        return await self._mutate(
            "transfer_token",
            _params(
                tokenAddress=_require_text(token_address, "tokenAddress"),
                to=_recipient(to),
                amount=_validate_amount(amount),
                network=self._network(network),
            ),
            options,
        )

    async def transfer_nft(
        self, token_address: str, to: str, token_id: str, network: Optional[str] = None, **options: Any
    ) -> TransferResult:
        return await self._mutate(
            "transfer_nft",
            _params(
                tokenAddress=_require_text(token_address, "tokenAddress"),
                to=_recipient(to),
                tokenId=_require_text(str(token_id), "tokenId"),
                network=self._network(network),
            ),
            options,
        )

    async def transfer_erc1155(
        self,
        token_address: str,
        to: str,
        token_id: str,
        amount: Any,
        network: Optional[str] = None,
        **options: Any,
    ) -> TransferResult:
        return await self._mutate(
            "transfer_erc1155",
            _params(
                tokenAddress=_require_text(token_address, "tokenAddress"),
                to=_recipient(to),
                tokenId=_require_text(str(token_id), "tokenId"),
                amount=_validate_amount(amount),
                network=self._network(network),
            ),
            options,
        )

    async def approve_token_spending(
        self, token_address: str, spender: str, amount: Any, network: Optional[str] = None, **options: Any
    ) -> TransferResult:
        return await self._mutate(
            "approve_token_spending",
            _params(
                tokenAddress=_require_text(token_address, "tokenAddress"),
                spender=_recipient(spender),
                amount=_validate_amount(amount),
                network=self._network(network),
            ),
            options,
        )

    async def write_contract(
        self,
        contract_address: str,
        abi: Sequence[Mapping[str, Any]],
        function_name: str,
        args: Optional[Sequence[Any]] = None,
        value: Optional[str] = None,
        network: Optional[str] = None,
        **options: Any,
    ) -> TransferResult:
        return await self._mutate(
            "write_contract",
            _params(
                contractAddress=_require_text(contract_address, "contractAddress"),
                abi=list(abi),
                functionName=_require_text(function_name, "functionName"),
                args=list(args or []),
                value=value,
                network=self._network(network),
            ),
            options,
        )

    async def _mutate(self, operation: str, params: Dict[str, Any], options: Mapping[str, Any]) -> TransferResult:
        network = params.get("network", self._config.default_network)
        return await self.call(
            operation,
            params,
            cacheable=False,
            decoder=lambda raw: TransferResult.from_payload(raw, operation=operation, network=network),
            **options,
        )

    # Operations the MCP server does not provide.

    async def get_wallet_transactions(self, address: str, timeframe: str = "day") -> Any:
        raise UnsupportedOperationError(
            "get_wallet_transactions",
            "Wallet transaction history is not implemented by the Sei MCP server. "
            "Use get_transaction for specific transaction details.",
        )

    async def get_token_flows(self, token: str, dex: Optional[str], period: str) -> Any:
        raise UnsupportedOperationError(
            "get_token_flows",
            "Token flow analysis is not implemented by the Sei MCP server. "
            "Use get_erc20_token_info for token metadata and read_contract for DEX data.",
        )

    async def get_nft_history(self, collection: str, token_id: str) -> Any:
        raise UnsupportedOperationError(
            "get_nft_history",
            "NFT history is not implemented by the Sei MCP server. "
            "Use get_erc721_token_metadata and check_nft_ownership for NFT data.",
        )
