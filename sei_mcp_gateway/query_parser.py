"""Extraction of structured parameters from free-text blockchain questions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple


class Timeframe(str, Enum):
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class Intent(str, Enum):
    WALLET_ANALYSIS = "wallet_analysis"
    TOKEN_FLOW = "token_flow"
    NFT_HISTORY = "nft_history"
    TRANSACTION_EXPLAIN = "transaction_explain"
    GENERAL = "general"


@dataclass(slots=True, frozen=True)
class NftReference:
    collection: str
    token_id: str


@dataclass(slots=True, frozen=True)
class ParsedQuery:
    text: str
    intent: Intent
    wallet_address: Optional[str]
    token_symbol: Optional[str]
    transaction_hash: Optional[str]
    timeframe: Timeframe
    dex: Optional[str]
    nft: Optional[NftReference]


KNOWN_TOKENS: Tuple[str, ...] = ("USDC", "WETH", "SEI", "WBTC", "USDT", "DAI", "ATOM", "OSMO")
KNOWN_DEXES: Tuple[str, ...] = ("dragonswap", "astroport", "fin", "white whale", "wyndex")

_TIMEFRAME_KEYWORDS: Tuple[Tuple[Timeframe, Tuple[str, ...]], ...] = (
    (Timeframe.HOUR, ("hour", "hours", "hourly", "hr", "1h")),
    (Timeframe.DAY, ("day", "days", "daily", "today", "24h", "1d")),
    (Timeframe.WEEK, ("week", "weeks", "weekly", "7d", "1w")),
    (Timeframe.MONTH, ("month", "months", "monthly", "30d", "1m")),
)

_HEX_ADDRESS = re.compile(r"0x[0-9a-fA-F]{40}(?![0-9a-fA-F])")
_SEI_ADDRESS = re.compile(r"sei1[a-z0-9]{38,58}")
_TX_HASH = re.compile(r"0x[0-9a-fA-F]{64}(?![0-9a-fA-F])|(?<![0-9a-zA-Z])[0-9a-fA-F]{64}(?![0-9a-fA-F])")
_DOLLAR_SYMBOL = re.compile(r"\$([A-Za-z]{2,10})\b")
_UPPER_WORD = re.compile(r"\b([A-Z]{2,10})\b")
_NFT_REFERENCE = re.compile(r"([A-Za-z][A-Za-z ]*?)\s*#(\d+)")

_FLOW_WORDS = ("flow", "flows", "inflow", "inflows", "outflow", "outflows", "movements")
_FLOW_TOKENS = ("usdc", "sei", "weth")


def _has_word(text: str, words: Iterable[str]) -> bool:
    return any(re.search(rf"\b{re.escape(word)}\b", text) for word in words)


def extract_wallet_address(text: str) -> Optional[str]:
    for pattern in (_HEX_ADDRESS, _SEI_ADDRESS):
        match = pattern.search(text)
        if match:
            return match.group(0)
    return None


def extract_token_symbol(text: str) -> Optional[str]:
    match = _DOLLAR_SYMBOL.search(text)
    if match:
        return match.group(1).upper()
    lowered = text.lower()
    for token in KNOWN_TOKENS:
        if _has_word(lowered, (token.lower(),)):
            return token
    match = _UPPER_WORD.search(text)
    return match.group(1) if match else None


def extract_transaction_hash(text: str) -> Optional[str]:
    match = _TX_HASH.search(text)
    return match.group(0) if match else None


def extract_timeframe(text: str) -> Timeframe:
    lowered = text.lower()
    for timeframe, keywords in _TIMEFRAME_KEYWORDS:
        if _has_word(lowered, keywords):
            return timeframe
    return Timeframe.DAY


def extract_dex(text: str) -> Optional[str]:
    lowered = text.lower()
    for dex in KNOWN_DEXES:
        if _has_word(lowered, (dex,)):
            return dex
    return None


def extract_nft_reference(text: str) -> Optional[NftReference]:
    match = _NFT_REFERENCE.search(text)
    if not match:
        return None
    collection = match.group(1).strip()
    if not collection:
        return None
    return NftReference(collection=collection, token_id=match.group(2))


def classify_intent(text: str) -> Intent:
    """Pick the first matching intent, in priority order.

    Wallet questions win over token flows, which win over NFT lookups, which win
    over transaction explanations. Anything else is a general question.
    """

    lowered = text.lower()
    mentions_token = _has_word(lowered, _FLOW_TOKENS) or "$" in lowered

    if _has_word(lowered, ("wallet", "balance", "holdings")):
        return Intent.WALLET_ANALYSIS
    if _has_word(lowered, ("token", "tokens")) and _has_word(lowered, _FLOW_WORDS + ("trading",)):
        return Intent.TOKEN_FLOW
    if _has_word(lowered, _FLOW_WORDS) and mentions_token:
        return Intent.TOKEN_FLOW
    if _has_word(lowered, ("dragonswap", "astroport", "dex")) and mentions_token:
        return Intent.TOKEN_FLOW
    if _has_word(lowered, ("nft", "nfts", "collection")) or "#" in lowered:
        return Intent.NFT_HISTORY
    if _has_word(lowered, ("transaction", "tx")) or "0x" in lowered:
        return Intent.TRANSACTION_EXPLAIN
    return Intent.GENERAL


def parse_query(text: str) -> ParsedQuery:
    return ParsedQuery(
        text=text,
        intent=classify_intent(text),
        wallet_address=extract_wallet_address(text),
        token_symbol=extract_token_symbol(text),
        transaction_hash=extract_transaction_hash(text),
        timeframe=extract_timeframe(text),
        dex=extract_dex(text),
        nft=extract_nft_reference(text),
    )
