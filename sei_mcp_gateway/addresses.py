"""Address validation and conversion helpers for Sei accounts."""

from __future__ import annotations

import re

from bech32 import bech32_decode, convertbits

SEI_HRP = "sei"

_HEX_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")
_SEI_ADDRESS = re.compile(r"^sei1[02-9ac-hj-np-z]{38,58}$")
_TX_HASH = re.compile(r"^0x[0-9a-fA-F]{64}$")


def is_hex_address(value: str) -> bool:
    return bool(_HEX_ADDRESS.match(value.strip()))


def is_sei_address(value: str) -> bool:
    return bool(_SEI_ADDRESS.match(value.strip()))


def is_transaction_hash(value: str) -> bool:
    return bool(_TX_HASH.match(value.strip()))


def bech32_to_hex(address: str) -> str:
    """Decode a ``sei1...`` bech32 address into its 0x-prefixed account bytes.

    Raises ``ValueError`` when the checksum, prefix or payload length is invalid.
    The result is the raw account bytes; it is only the EVM address for accounts
    whose Cosmos and EVM addresses are derived from the same 20-byte hash.
    """

    hrp, data = bech32_decode(address.strip().lower())
    if hrp is None or data is None:
        raise ValueError(f"Invalid bech32 address: {address}")
    if hrp != SEI_HRP:
        raise ValueError(f"Unexpected address prefix '{hrp}', expected '{SEI_HRP}'")
    decoded = convertbits(data, 5, 8, False)
    if decoded is None or len(decoded) not in (20, 32):
        raise ValueError(f"Invalid bech32 payload length for {address}")
    return "0x" + bytes(decoded).hex()


def normalize_recipient(address: str) -> str:
    """Return a 0x address for either supported address format."""

    candidate = address.strip()
    if is_hex_address(candidate):
        return candidate
    if candidate.lower().startswith(f"{SEI_HRP}1"):
        converted = bech32_to_hex(candidate)
        if len(converted) != 42:
            raise ValueError(f"Address {address} does not map to a 20-byte account")
        return converted
    raise ValueError(
        f"Invalid address: {address}. Supported formats: 0x... (EVM) or sei1... (Sei bech32)"
    )


def shorten(address: str, *, keep: int = 6) -> str:
    if not address or len(address) <= keep * 2:
        return address or "Unknown"
    return f"{address[:keep]}...{address[-keep:]}"
