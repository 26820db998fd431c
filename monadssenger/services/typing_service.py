"""
Typing indicator service layer.
"""

from datetime import datetime
from typing import List, Optional

from monadssenger.core.validators import Validator
from monadssenger.database.base import ChatStore
from monadssenger.schemas.typing import TypingIndicatorResponse
from monadssenger.services.message_service import resolve_room


async def touch_typing(
    store: ChatStore,
    room: Optional[str],
    username: Optional[str],
    user_color: Optional[str]
) -> None:
    """타이핑 상태 갱신 (upsert)"""
    Validator.validate_required_fields({
        "room": room,
        "username": username,
        "user_color": user_color,
    })
    await store.touch_typing(resolve_room(room), username, user_color)


async def clear_typing(store: ChatStore, room: Optional[str], username: Optional[str]) -> None:
    """타이핑 상태 삭제 (없어도 성공)"""
    Validator.validate_required_fields({"room": room, "username": username})
    await store.clear_typing(resolve_room(room), username)


async def get_active_typing(
    store: ChatStore,
    room: Optional[str] = None,
    now: Optional[datetime] = None
) -> List[TypingIndicatorResponse]:
    """최근 타이핑 중인 사용자 목록"""
    return await store.list_active_typing(resolve_room(room), now)
