"""
MongoDB 저장소 (Motor + Beanie)

타이핑 상태는 (room, username) 유니크 인덱스 위의 upsert로 관리합니다.
"""

import time
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import AsyncIterator, List, Optional

from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from monadssenger.core.errors import BackendUnavailableException
from monadssenger.core.logging import get_logger, log_database_operation
from monadssenger.database.base import ChatStore
from monadssenger.database.mongodb import check_mongo_connection, close_mongo_connection
from monadssenger.models.documents import MessageDocument, TypingIndicatorDocument
from monadssenger.schemas.message import MessageResponse
from monadssenger.schemas.typing import TypingIndicatorResponse
from monadssenger.utils.time_utils import utcnow, as_naive_utc

logger = get_logger(__name__)


def _to_message(document: MessageDocument) -> MessageResponse:
    return MessageResponse(
        id=str(document.id),
        room=document.room,
        username=document.username,
        user_color=document.user_color,
        message=document.message,
        created_at=document.created_at
    )


def _to_typing(document: TypingIndicatorDocument) -> TypingIndicatorResponse:
    return TypingIndicatorResponse(
        room=document.room,
        username=document.username,
        user_color=document.user_color,
        updated_at=document.updated_at
    )


class MongoChatStore(ChatStore):
    """init_mongodb()로 Beanie 초기화가 끝난 뒤 생성해야 합니다."""

    backend_name = "mongodb"

    @asynccontextmanager
    async def _operation(self, operation: str, collection: str) -> AsyncIterator[None]:
        start_time = time.time()
        try:
            yield
        except PyMongoError as e:
            logger.error(f"MongoDB {operation} on {collection} failed: {e}")
            raise BackendUnavailableException(
                self.backend_name,
                "MongoDB connection or operation failed"
            ) from e
        else:
            log_database_operation(
                logger,
                operation,
                collection,
                duration_ms=(time.time() - start_time) * 1000
            )

    async def append_message(self, room: str, username: str, user_color: str, text: str) -> MessageResponse:
        document = MessageDocument(
            room=room,
            username=username,
            user_color=user_color,
            message=text,
            created_at=utcnow()
        )
        async with self._operation("INSERT", "messages"):
            await document.insert()
        return _to_message(document)

    async def list_messages(self, room: str, limit: int) -> List[MessageResponse]:
        async with self._operation("FIND", "messages"):
            documents = await MessageDocument.find(
                MessageDocument.room == room
            ).sort([("created_at", DESCENDING), ("_id", DESCENDING)]).limit(limit).to_list()

        # 최신순으로 정렬된 것을 역순으로 변경 (오래된 것부터)
        return [_to_message(document) for document in reversed(documents)]

    async def touch_typing(self, room: str, username: str, user_color: str) -> None:
        # 단일 update_one upsert: 동시 호출도 (room, username)당 한 문서
        query = {"room": room, "username": username}
        update = {"$set": {"user_color": user_color, "updated_at": utcnow()}}
        collection = TypingIndicatorDocument.get_motor_collection()

        async with self._operation("UPSERT", "typing_indicators"):
            try:
                await collection.update_one(query, update, upsert=True)
            except DuplicateKeyError:
                # 같은 키의 동시 upsert에서 진 쪽은 이미 생긴 문서를 갱신
                await collection.update_one(query, update)

    async def clear_typing(self, room: str, username: str) -> None:
        async with self._operation("DELETE", "typing_indicators"):
            await TypingIndicatorDocument.find(
                TypingIndicatorDocument.room == room,
                TypingIndicatorDocument.username == username
            ).delete()

    async def list_active_typing(self, room: str, now: Optional[datetime] = None) -> List[TypingIndicatorResponse]:
        cutoff = as_naive_utc(now) - timedelta(seconds=self.typing_ttl_seconds)
        async with self._operation("FIND", "typing_indicators"):
            documents = await TypingIndicatorDocument.find(
                TypingIndicatorDocument.room == room,
                TypingIndicatorDocument.updated_at > cutoff
            ).to_list()
        return [_to_typing(document) for document in documents]

    async def ping(self) -> bool:
        return await check_mongo_connection()

    async def close(self) -> None:
        await close_mongo_connection()
