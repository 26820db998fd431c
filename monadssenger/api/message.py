import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query

from monadssenger.core.config import settings
from monadssenger.database import get_store
from monadssenger.database.base import ChatStore
from monadssenger.schemas.message import MessageCreate, MessageCreateResponse, MessageListResponse
from monadssenger.services import message_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/messages", tags=["Messages"])


@router.get("", response_model=MessageListResponse)
async def get_messages(
    room: Optional[str] = Query(default=None, description="채팅방 ID (기본값: lobby)"),
    limit: int = Query(default=settings.message_list_default_limit, description="메시지 개수"),
    store: ChatStore = Depends(get_store)
) -> MessageListResponse:
    """
    채팅방 메시지 조회

    - **room**: 채팅방 ID
    - **limit**: 조회할 최근 메시지 개수 (기본값: 50, 최대 1000으로 잘림, 0 이하이면 빈 목록)

    최근 메시지 limit개를 오래된 순으로 반환합니다.
    """
    messages = await message_service.get_room_messages(store, room=room, limit=limit)
    return MessageListResponse(messages=messages)


@router.post("", response_model=MessageCreateResponse)
async def send_message(
    message_data: MessageCreate,
    store: ChatStore = Depends(get_store)
) -> MessageCreateResponse:
    """
    메시지 전송

    - **room**: 채팅방 ID (생략 시 lobby)
    - **username**, **user_color**: 세션 사용자 정보
    - **message**: 메시지 내용 (최대 1000자)
    """
    message = await message_service.create_message(
        store,
        room=message_data.room,
        username=message_data.username,
        user_color=message_data.user_color,
        text=message_data.message
    )

    logger.info(f"Message {message.id} stored in room {message.room}")
    return MessageCreateResponse(message=message)
