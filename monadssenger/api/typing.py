from typing import Optional
from fastapi import APIRouter, Depends, Query

from monadssenger.database import get_store
from monadssenger.database.base import ChatStore
from monadssenger.schemas.typing import TypingCreate, TypingListResponse, SuccessResponse
from monadssenger.services import typing_service

router = APIRouter(prefix="/typing", tags=["Typing"])


@router.post("", response_model=SuccessResponse)
async def update_typing(
    typing_data: TypingCreate,
    store: ChatStore = Depends(get_store)
) -> SuccessResponse:
    """타이핑 상태 갱신 ((room, username) 기준 upsert)"""
    await typing_service.touch_typing(
        store,
        room=typing_data.room,
        username=typing_data.username,
        user_color=typing_data.user_color
    )
    return SuccessResponse()


@router.delete("", response_model=SuccessResponse)
async def delete_typing(
    room: Optional[str] = Query(default=None),
    username: Optional[str] = Query(default=None),
    store: ChatStore = Depends(get_store)
) -> SuccessResponse:
    """타이핑 상태 삭제"""
    await typing_service.clear_typing(store, room=room, username=username)
    return SuccessResponse()


@router.get("", response_model=TypingListResponse)
async def get_typing(
    room: Optional[str] = Query(default=None),
    store: ChatStore = Depends(get_store)
) -> TypingListResponse:
    """최근 10초 이내 타이핑 중인 사용자 목록"""
    indicators = await typing_service.get_active_typing(store, room=room)
    return TypingListResponse(typing=indicators)
