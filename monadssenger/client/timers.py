"""
asyncio 기반 타이머

- RepeatingTimer: 고정 간격으로 콜백 실행 (setInterval과 동일하게, 느린 콜백이 다음 주기를 막지 않음)
- DebounceTimer: 마지막 schedule() 이후 delay가 지나면 한 번 실행
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)

AsyncCallback = Callable[[], Awaitable[None]]


class RepeatingTimer:
    """취소 가능한 반복 타이머"""

    def __init__(
        self,
        interval: float,
        callback: AsyncCallback,
        run_immediately: bool = False,
        name: str = "timer"
    ):
        self.interval = interval
        self.callback = callback
        self.run_immediately = run_immediately
        self.name = name
        self._task: Optional[asyncio.Task] = None
        self._ticks: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)

    async def _run(self) -> None:
        if not self.run_immediately:
            await asyncio.sleep(self.interval)
        while True:
            tick = asyncio.get_running_loop().create_task(self._tick())
            self._ticks.add(tick)
            tick.add_done_callback(self._ticks.discard)
            await asyncio.sleep(self.interval)

    async def _tick(self) -> None:
        try:
            await self.callback()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(f"{self.name} tick failed")

    def cancel(self) -> None:
        """반복 중지 + 진행 중인 콜백 취소"""
        if self._task is not None:
            self._task.cancel()
            self._task = None
        for tick in list(self._ticks):
            tick.cancel()
        self._ticks.clear()


class DebounceTimer:
    """재시작 가능한 단발 타이머"""

    def __init__(self, delay: float, name: str = "debounce"):
        self.delay = delay
        self.name = name
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, callback: AsyncCallback) -> None:
        """기존 예약을 취소하고 delay 후 callback 실행을 예약"""
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._fire(callback), name=self.name)

    async def _fire(self, callback: AsyncCallback) -> None:
        await asyncio.sleep(self.delay)
        try:
            await callback()
        except Exception:
            logger.exception(f"{self.name} callback failed")

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
