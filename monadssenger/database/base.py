"""
채팅 저장소 인터페이스

메시지/타이핑 상태 저장소가 공통으로 제공해야 하는 연산을 정의합니다.
SQL, MongoDB, 인메모리 구현이 모두 이 인터페이스를 따릅니다.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from monadssenger.schemas.message import MessageResponse
from monadssenger.schemas.typing import TypingIndicatorResponse

# 타이핑 상태 유효 시간 (초)
TYPING_TTL_SECONDS = 10


class ChatStore(ABC):
    """메시지 및 타이핑 상태 저장소"""

    backend_name: str = "unknown"

    def __init__(self, typing_ttl_seconds: int = TYPING_TTL_SECONDS):
        self.typing_ttl_seconds = typing_ttl_seconds

    @abstractmethod
    async def append_message(self, room: str, username: str, user_color: str, text: str) -> MessageResponse:
        """메시지 저장 후 id/created_at이 채워진 레코드 반환"""

    @abstractmethod
    async def list_messages(self, room: str, limit: int) -> List[MessageResponse]:
        """채팅방의 최근 메시지 limit개를 오래된 순으로 반환"""

    @abstractmethod
    async def touch_typing(self, room: str, username: str, user_color: str) -> None:
        """(room, username) 타이핑 상태를 현재 시각으로 upsert"""

    @abstractmethod
    async def clear_typing(self, room: str, username: str) -> None:
        """타이핑 상태 삭제 (없으면 아무 것도 하지 않음)"""

    @abstractmethod
    async def list_active_typing(self, room: str, now: Optional[datetime] = None) -> List[TypingIndicatorResponse]:
        """now 기준 typing_ttl_seconds 이내에 갱신된 타이핑 상태 목록"""

    async def ping(self) -> bool:
        """저장소 연결 확인"""
        return True

    async def close(self) -> None:
        """저장소 연결 종료"""
