"""Question answering on top of the Sei MCP gateway."""

from __future__ import annotations

import logging
import re
from typing import Awaitable, Callable, Optional, Protocol, TypeVar

from .addresses import is_hex_address
from .config import DEFAULT_GEMINI_MODEL
from .formatting import (
    describe_error,
    format_balance,
    format_bullets,
    format_contract_check,
    format_generic_result,
    format_nft,
    format_transaction,
)
from .infra.retry import retry_recoverable
from .mcp.client import SeiMcpClient
from .mcp.errors import McpClientError
from .query_parser import Intent, ParsedQuery, parse_query

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_TOKEN_ID = re.compile(r"(?:token|#)\s*(\d+)", re.IGNORECASE)

EXAMPLE_QUERIES = (
    "Check balance for wallet sei1...",
    "Explain transaction 0x...",
    "Show NFT 0x... token 42",
    "Is 0x... a contract?",
)

GENERAL_PROMPT = (
    "You are a concise assistant for the Sei blockchain. Answer the user's question in "
    "plain text using at most a few short paragraphs. If the question needs live on-chain "
    "data, explain which wallet address, transaction hash or contract the user should provide.\n\n"
    "Question: {question}"
)


class AssistantError(RuntimeError):
    """Raised when the language model cannot produce an answer."""


class TextModel(Protocol):
    async def generate_text(self, prompt: str) -> str: ...


class ChatAssistant:
    """Routes free-text questions to gateway calls and renders the results."""

    def __init__(
        self,
        client: SeiMcpClient,
        *,
        api_key: Optional[str] = None,
        model: str = DEFAULT_GEMINI_MODEL,
        llm: Optional[TextModel] = None,
        retry_attempts: int = 0,
        retry_delay: float = 1.0,
    ) -> None:
        self._client = client
        if llm is None and api_key:
            llm = _GeminiModelWrapper(api_key, model=model)
        self._llm = llm
        self._retry_attempts = retry_attempts
        self._retry_delay = retry_delay

    @property
    def has_language_model(self) -> bool:
        return self._llm is not None

    async def answer(self, question: str) -> str:
        question = question.strip()
        if not question:
            return "Please include a question for me to answer."

        parsed = parse_query(question)
        _LOGGER.debug("Query classified as %s", parsed.intent.value)
        try:
            if parsed.intent is Intent.WALLET_ANALYSIS:
                return await self._wallet(parsed)
            if parsed.intent is Intent.TOKEN_FLOW:
                return await self._token_flow(parsed)
            if parsed.intent is Intent.NFT_HISTORY:
                return await self._nft(parsed)
            if parsed.intent is Intent.TRANSACTION_EXPLAIN:
                return await self._transaction(parsed)
            return await self._general(parsed)
        except McpClientError as exc:
            _LOGGER.warning("Gateway call failed for %s query: %s", parsed.intent.value, exc)
            return describe_error(exc)
        except AssistantError as exc:
            _LOGGER.warning("Language model failed: %s", exc)
            return "I couldn't work out how to answer that just now. Please try again."
        except Exception:
            _LOGGER.exception("Unexpected failure while answering question")
            return "An unexpected error occurred while retrieving that data."

    async def _with_retry(self, func: Callable[[], Awaitable[T]]) -> T:
        if self._retry_attempts <= 0:
            return await func()
        return await retry_recoverable(func, attempts=self._retry_attempts, delay=self._retry_delay)

    async def _wallet(self, parsed: ParsedQuery) -> str:
        address = parsed.wallet_address
        if not address:
            return "I need a wallet address to check a balance.\n" + format_bullets(
                ("Check balance for wallet sei1...", "What's the balance of 0x...")
            )
        balance = await self._with_retry(lambda: self._client.get_balance(address))
        return format_balance(balance)

    async def _token_flow(self, parsed: ParsedQuery) -> str:
        token = parsed.token_symbol or "SEI"
        flows = await self._client.get_token_flows(token, parsed.dex, parsed.timeframe.value)
        return format_generic_result(f"{token} flows ({parsed.timeframe.value})", flows)

    async def _nft(self, parsed: ParsedQuery) -> str:
        contract = parsed.wallet_address
        token_match = _TOKEN_ID.search(parsed.text)
        if contract and is_hex_address(contract) and token_match:
            token_id = token_match.group(1)
            metadata = await self._with_retry(lambda: self._client.get_nft_info(contract, token_id))
            return format_nft(metadata)
        if parsed.nft is not None:
            history = await self._client.get_nft_history(parsed.nft.collection, parsed.nft.token_id)
            return format_generic_result(f"{parsed.nft.collection} #{parsed.nft.token_id} history", history)
        return "Please provide an NFT contract address and token id.\n" + format_bullets(
            ("Show NFT 0x... token 42",)
        )

    async def _transaction(self, parsed: ParsedQuery) -> str:
        tx_hash = parsed.transaction_hash
        if tx_hash:
            if not tx_hash.startswith("0x"):
                tx_hash = f"0x{tx_hash}"
            tx = await self._with_retry(lambda: self._client.get_transaction(tx_hash))
            receipt = None
            if not tx.is_pending:
                receipt = await self._with_retry(lambda: self._client.get_transaction_receipt(tx_hash))
            return format_transaction(tx, receipt)
        address = parsed.wallet_address
        if address and is_hex_address(address):
            check = await self._with_retry(lambda: self._client.is_contract(address))
            return format_contract_check(check)
        return "Please include a transaction hash (0x followed by 64 hex characters)."

    async def _general(self, parsed: ParsedQuery) -> str:
        if self._llm is None:
            return "I can help with these kinds of questions:\n" + format_bullets(EXAMPLE_QUERIES)
        reply = await self._llm.generate_text(GENERAL_PROMPT.format(question=parsed.text))
        return reply.strip()


class _GeminiModelWrapper:
    """Thin wrapper around the google-generativeai client."""

    def __init__(self, api_key: str, *, model: str) -> None:
        try:
            import google.generativeai as genai  # type: ignore
        except ImportError as exc:  # pragma: no cover - import guard
            raise AssistantError(
                "google-generativeai package is not installed; install it to enable general answers."
            ) from exc

        if not api_key:
            raise AssistantError("Gemini API key is required")
        genai.configure(api_key=api_key)
        self._model = genai.GenerativeModel(model)

    async def generate_text(self, prompt: str) -> str:
        response = await self._model.generate_content_async(  # type: ignore[attr-defined]
            prompt,
            generation_config={"temperature": 0.2},
        )

        text = getattr(response, "text", None)
        if text:
            return text

        for candidate in getattr(response, "candidates", None) or ():
            parts = getattr(getattr(candidate, "content", None), "parts", None)
            if parts:
                part_text = getattr(parts[0], "text", None)
                if part_text:
                    return part_text

        raise AssistantError("Gemini returned an empty response")
