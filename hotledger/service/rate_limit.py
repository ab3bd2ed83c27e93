"""
Per-account throttling for the HotLedger relayer.

Each (endpoint, account) pair gets its own sliding window, so one busy
sender or relayed owner cannot exhaust the budget of another.
"""

import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional, Tuple

Key = Tuple[str, str]


class AccountThrottle:
    """
    Sliding-window request budget per account.

    `acquire` records the request and returns None when it fits the
    window, or the seconds until the oldest counted request expires.
    """

    def __init__(
        self,
        per_minute: int,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        max_tracked: int = 10_000
    ):
        self.per_minute = max(1, per_minute)
        self.window_seconds = window_seconds
        self._clock = clock
        self._max_tracked = max_tracked
        self._windows: Dict[Key, Deque[float]] = {}
        self._lock = threading.Lock()

    def acquire(self, endpoint: str, account: str) -> Optional[float]:
        key = (endpoint, account.lower())
        now = self._clock()
        with self._lock:
            window = self._windows.get(key)
            if window is None:
                if len(self._windows) >= self._max_tracked:
                    self._evict_idle(now)
                window = self._windows[key] = deque()
            self._expire(window, now)

            if len(window) >= self.per_minute:
                return window[0] + self.window_seconds - now
            window.append(now)
            return None

    def tracked(self) -> int:
        with self._lock:
            return len(self._windows)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _expire(self, window: Deque[float], now: float) -> None:
        cutoff = now - self.window_seconds
        while window and window[0] <= cutoff:
            window.popleft()

    def _evict_idle(self, now: float) -> None:
        for key in list(self._windows):
            window = self._windows[key]
            self._expire(window, now)
            if not window:
                del self._windows[key]
