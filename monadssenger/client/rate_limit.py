import time
from typing import Callable, List

from .errors import RateLimited


class SlidingWindowRateLimiter:
    """
    최근 window_seconds 동안 max_events회까지만 허용하는 클라이언트 로컬 제한기.

    서버가 강제하지 않으므로 비협조적인 클라이언트는 막지 못합니다.
    """

    def __init__(
        self,
        max_events: int = 3,
        window_seconds: float = 5.0,
        clock: Callable[[], float] = time.monotonic
    ):
        self.max_events = max_events
        self.window_seconds = window_seconds
        self.clock = clock
        self._events: List[float] = []

    def acquire(self) -> None:
        """허용되면 기록, 초과 시 RateLimited"""
        now = self.clock()
        self._events = [t for t in self._events if now - t < self.window_seconds]

        if len(self._events) >= self.max_events:
            retry_after = self.window_seconds - (now - self._events[0])
            raise RateLimited(
                "You're sending messages too quickly. Please wait a moment.",
                retry_after=retry_after
            )

        self._events.append(now)

    def reset(self) -> None:
        self._events.clear()
