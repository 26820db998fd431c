"""
SQL 저장소 (SQLAlchemy async)

PostgreSQL(asyncpg), SQLite(aiosqlite), MySQL을 지원합니다.
타이핑 상태는 DB의 upsert(ON CONFLICT / ON DUPLICATE KEY)로 (room, username)당 한 행을 보장합니다.
"""

import time
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import AsyncIterator, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from monadssenger.core.errors import BackendUnavailableException
from monadssenger.core.logging import get_logger, log_database_operation
from monadssenger.database.base import ChatStore
from monadssenger.database.sql import init_sql_db, check_sql_connection, close_sql_db
from monadssenger.models.messages import Message
from monadssenger.models.typing_indicators import TypingIndicator
from monadssenger.schemas.message import MessageResponse
from monadssenger.schemas.typing import TypingIndicatorResponse
from monadssenger.utils.time_utils import utcnow, as_naive_utc

logger = get_logger(__name__)


class SqlChatStore(ChatStore):
    backend_name = "sql"

    def __init__(self, engine: AsyncEngine, **kwargs):
        super().__init__(**kwargs)
        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

    async def create_tables(self) -> None:
        try:
            await init_sql_db(self.engine)
        except (SQLAlchemyError, OSError) as e:
            raise BackendUnavailableException(self.backend_name, "Failed to initialize tables") from e

    @asynccontextmanager
    async def _session(self, operation: str, table: str) -> AsyncIterator[AsyncSession]:
        """세션 제공 + 드라이버 에러를 BackendUnavailableException으로 변환"""
        start_time = time.time()
        try:
            async with self.session_factory() as session:
                yield session
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"SQL {operation} on {table} failed: {e}")
            raise BackendUnavailableException(
                self.backend_name,
                "Database connection or operation failed"
            ) from e
        else:
            log_database_operation(
                logger,
                operation,
                table,
                duration_ms=(time.time() - start_time) * 1000
            )

    # =========================================================================
    # Messages
    # =========================================================================

    async def append_message(self, room: str, username: str, user_color: str, text: str) -> MessageResponse:
        async with self._session("INSERT", "messages") as db:
            message = Message(
                room=room,
                username=username,
                user_color=user_color,
                message=text,
                created_at=utcnow()
            )
            db.add(message)
            await db.commit()
            await db.refresh(message)
            return MessageResponse.model_validate(message)

    async def list_messages(self, room: str, limit: int) -> List[MessageResponse]:
        async with self._session("SELECT", "messages") as db:
            # 최신순으로 limit개 조회 후 오래된 순으로 뒤집기
            result = await db.execute(
                select(Message)
                .where(Message.room == room)
                .order_by(Message.created_at.desc(), Message.id.desc())
                .limit(limit)
            )
            rows = result.scalars().all()
            return [MessageResponse.model_validate(row) for row in reversed(rows)]

    # =========================================================================
    # Typing indicators
    # =========================================================================

    def _upsert_typing_statement(self, room: str, username: str, user_color: str, now: datetime):
        values = {"room": room, "username": username, "user_color": user_color, "updated_at": now}
        dialect = self.engine.dialect.name

        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        elif dialect in ("mysql", "mariadb"):
            from sqlalchemy.dialects.mysql import insert
            stmt = insert(TypingIndicator).values(**values)
            return stmt.on_duplicate_key_update(updated_at=now, user_color=user_color)
        else:
            return None

        stmt = insert(TypingIndicator).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=["room", "username"],
            set_={"updated_at": now, "user_color": user_color}
        )

    async def touch_typing(self, room: str, username: str, user_color: str) -> None:
        now = utcnow()
        stmt = self._upsert_typing_statement(room, username, user_color, now)

        async with self._session("UPSERT", "typing_indicators") as db:
            if stmt is not None:
                await db.execute(stmt)
            else:
                # upsert 미지원 DB: 조회 후 갱신
                result = await db.execute(
                    select(TypingIndicator).where(
                        TypingIndicator.room == room,
                        TypingIndicator.username == username
                    )
                )
                indicator = result.scalar_one_or_none()
                if indicator is None:
                    db.add(TypingIndicator(room=room, username=username, user_color=user_color, updated_at=now))
                else:
                    indicator.user_color = user_color
                    indicator.updated_at = now
            await db.commit()

    async def clear_typing(self, room: str, username: str) -> None:
        async with self._session("DELETE", "typing_indicators") as db:
            await db.execute(
                delete(TypingIndicator).where(
                    TypingIndicator.room == room,
                    TypingIndicator.username == username
                )
            )
            await db.commit()

    async def list_active_typing(self, room: str, now: Optional[datetime] = None) -> List[TypingIndicatorResponse]:
        cutoff = as_naive_utc(now) - timedelta(seconds=self.typing_ttl_seconds)
        async with self._session("SELECT", "typing_indicators") as db:
            result = await db.execute(
                select(TypingIndicator).where(
                    TypingIndicator.room == room,
                    TypingIndicator.updated_at > cutoff
                )
            )
            return [TypingIndicatorResponse.model_validate(row) for row in result.scalars().all()]

    async def ping(self) -> bool:
        return await check_sql_connection(self.engine)

    async def close(self) -> None:
        await close_sql_db(self.engine)
