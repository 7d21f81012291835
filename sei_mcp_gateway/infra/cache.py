from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

_HEX_VALUE = re.compile(r"^0x[0-9a-fA-F]+$")


@dataclass(slots=True)
class CacheEntry:
    """Cached result payload for a single request key."""

    payload: Any
    timestamp: float

    def is_fresh(self, ttl: float, now: float) -> bool:
        return (now - self.timestamp) <= ttl

    def age(self, now: float) -> float:
        return max(0.0, now - self.timestamp)


def _canonicalize(value: Any) -> Any:
    if isinstance(value, str):
        return value.lower() if _HEX_VALUE.match(value) else value
    if isinstance(value, Mapping):
        return {str(key): _canonicalize(item) for key, item in value.items() if item is not None}
    if isinstance(value, (list, tuple)):
        return [_canonicalize(item) for item in value]
    return value


def build_cache_key(operation: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Return a deterministic key for ``operation`` called with ``params``.

    Hex strings are lower-cased so checksummed and plain addresses share an entry,
    and ``None`` parameters are dropped so omitted and explicit-null arguments agree.
    """

    canonical = _canonicalize(dict(params or {}))
    encoded = json.dumps(canonical, sort_keys=True, separators=(",", ":"), default=str)
    return f"{operation}:{encoded}"


class ResponseCache:
    """Time-to-live cache for successful gateway results with lazy expiry."""

    def __init__(self, ttl: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self._ttl = ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_fresh(self._ttl, self._clock()):
            del self._entries[key]
            return None
        return entry.payload

    def set(self, key: str, payload: Any) -> None:
        self._entries[key] = CacheEntry(payload=payload, timestamp=self._clock())

    def evict(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
