"""
Message service layer.

Validates message input and delegates persistence to the active chat store.
"""

from typing import List, Optional

from monadssenger.core.config import settings
from monadssenger.core.validators import Validator
from monadssenger.database.base import ChatStore
from monadssenger.schemas.message import MessageResponse


def resolve_room(room: Optional[str]) -> str:
    """빈 채팅방 ID는 기본 채팅방(lobby)으로 대체"""
    if Validator.is_empty(room):
        return settings.default_room
    return room


async def create_message(
    store: ChatStore,
    room: Optional[str],
    username: Optional[str],
    user_color: Optional[str],
    text: Optional[str]
) -> MessageResponse:
    """메시지 생성"""
    Validator.validate_required_fields({
        "username": username,
        "user_color": user_color,
        "message": text,
    })
    Validator.validate_string_length(text, "message", max_length=settings.message_max_length)

    return await store.append_message(resolve_room(room), username, user_color, text)


async def get_room_messages(
    store: ChatStore,
    room: Optional[str] = None,
    limit: Optional[int] = None
) -> List[MessageResponse]:
    """
    채팅방 최근 메시지 조회 (오래된 순)

    limit은 message_list_max_limit으로 잘리고, 0 이하이면 빈 목록을 반환합니다.
    """
    if limit is None:
        limit = settings.message_list_default_limit
    limit = min(limit, settings.message_list_max_limit)
    if limit <= 0:
        return []

    return await store.list_messages(resolve_room(room), limit)
