"""
인메모리 저장소

프로세스 메모리에만 데이터를 보관합니다. 개발/테스트용이며,
설정된 백엔드 초기화에 실패했을 때의 대체 저장소로도 사용됩니다.
"""

import itertools
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from monadssenger.database.base import ChatStore
from monadssenger.schemas.message import MessageResponse
from monadssenger.schemas.typing import TypingIndicatorResponse
from monadssenger.utils.time_utils import utcnow, as_naive_utc

logger = logging.getLogger(__name__)


class MemoryChatStore(ChatStore):
    backend_name = "memory"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._messages: Dict[str, List[MessageResponse]] = {}
        self._typing: Dict[Tuple[str, str], TypingIndicatorResponse] = {}
        self._ids = itertools.count(1)
        self._last_created_at: Optional[datetime] = None

    def _next_timestamp(self) -> datetime:
        # 시계가 뒤로 가더라도 created_at은 감소하지 않음
        now = utcnow()
        if self._last_created_at is not None and now < self._last_created_at:
            now = self._last_created_at
        self._last_created_at = now
        return now

    async def append_message(self, room: str, username: str, user_color: str, text: str) -> MessageResponse:
        message = MessageResponse(
            id=next(self._ids),
            room=room,
            username=username,
            user_color=user_color,
            message=text,
            created_at=self._next_timestamp(),
        )
        self._messages.setdefault(room, []).append(message)
        return message

    async def list_messages(self, room: str, limit: int) -> List[MessageResponse]:
        messages = self._messages.get(room, [])
        return list(messages[-limit:]) if limit > 0 else []

    async def touch_typing(self, room: str, username: str, user_color: str) -> None:
        self._typing[(room, username)] = TypingIndicatorResponse(
            room=room,
            username=username,
            user_color=user_color,
            updated_at=utcnow(),
        )

    async def clear_typing(self, room: str, username: str) -> None:
        self._typing.pop((room, username), None)

    async def list_active_typing(self, room: str, now: Optional[datetime] = None) -> List[TypingIndicatorResponse]:
        cutoff = as_naive_utc(now) - timedelta(seconds=self.typing_ttl_seconds)

        # 만료된 상태는 조회 시 삭제
        expired = [key for key, indicator in self._typing.items() if indicator.updated_at <= cutoff]
        for key in expired:
            del self._typing[key]

        return [
            indicator
            for (indicator_room, _), indicator in self._typing.items()
            if indicator_room == room
        ]

    async def close(self) -> None:
        logger.info("Memory store discarded")
