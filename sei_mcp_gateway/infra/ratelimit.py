from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, Optional

DEFAULT_IDENTIFIER = "global"


@dataclass(slots=True)
class RateWindow:
    """Request timestamps recorded for one identifier."""

    timestamps: Deque[float] = field(default_factory=deque)

    def prune(self, now: float, window: float) -> None:
        horizon = now - window
        while self.timestamps and self.timestamps[0] <= horizon:
            self.timestamps.popleft()


class SlidingWindowRateLimiter:
    """Non-blocking sliding-window admission control keyed by identifier.

    ``can_admit`` and ``record`` are meant to be called as a pair right before a
    request is dispatched. Rejections are immediate; nothing is queued.
    """

    def __init__(
        self,
        max_requests: int,
        *,
        window: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 0:
            raise ValueError("max_requests must not be negative")
        if window <= 0:
            raise ValueError("window must be positive")
        self._max_requests = max_requests
        self._window = window
        self._clock = clock
        self._windows: Dict[str, RateWindow] = {}

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window(self) -> float:
        return self._window

    def _used(self, identifier: str) -> int:
        window = self._windows.get(identifier)
        if window is None:
            return 0
        window.prune(self._clock(), self._window)
        if not window.timestamps:
            del self._windows[identifier]
            return 0
        return len(window.timestamps)

    def can_admit(self, identifier: str = DEFAULT_IDENTIFIER) -> bool:
        if self._max_requests == 0:
            return False
        return self._used(identifier) < self._max_requests

    def record(self, identifier: str = DEFAULT_IDENTIFIER) -> None:
        self._windows.setdefault(identifier, RateWindow()).timestamps.append(self._clock())

    def remaining(self, identifier: str = DEFAULT_IDENTIFIER) -> int:
        return max(0, self._max_requests - self._used(identifier))

    def __len__(self) -> int:
        return len(self._windows)

    def reset(self, identifier: Optional[str] = None) -> None:
        if identifier is None:
            self._windows.clear()
        else:
            self._windows.pop(identifier, None)
