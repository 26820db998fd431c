import pytest
from datetime import timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

import monadssenger.database as database
from monadssenger.core.config import settings
from monadssenger.core.errors import BackendUnavailableException
from monadssenger.database import create_store, init_store, check_database_health
from monadssenger.database.memory_store import MemoryChatStore
from monadssenger.database.mongo_store import MongoChatStore
from monadssenger.database.sql import create_sql_engine
from monadssenger.database.sql_store import SqlChatStore
from monadssenger.models.documents import TypingIndicatorDocument
from monadssenger.utils.time_utils import utcnow


class TestMessageStore:
    """메시지 저장소 공통 동작"""

    @pytest.mark.asyncio
    async def test_append_assigns_id_and_timestamp(self, chat_store):
        before = utcnow()
        message = await chat_store.append_message("lobby", "Ape42", "#ff8800", "gm")

        assert message.id
        assert message.room == "lobby"
        assert message.message == "gm"
        assert message.created_at >= before - timedelta(seconds=1)

    @pytest.mark.asyncio
    async def test_list_returns_oldest_first(self, chat_store):
        for text in ["one", "two", "three"]:
            await chat_store.append_message("lobby", "Ape42", "#ff8800", text)

        messages = await chat_store.list_messages("lobby", 50)

        assert [m.message for m in messages] == ["one", "two", "three"]
        assert len({m.id for m in messages}) == 3

    @pytest.mark.asyncio
    async def test_list_limit_keeps_most_recent(self, chat_store):
        for i in range(60):
            await chat_store.append_message("lobby", "Ape42", "#ff8800", f"msg {i}")

        messages = await chat_store.list_messages("lobby", 50)

        assert len(messages) == 50
        assert messages[0].message == "msg 10"
        assert messages[-1].message == "msg 59"

    @pytest.mark.asyncio
    async def test_list_empty_room(self, chat_store):
        assert await chat_store.list_messages("usa", 50) == []

    @pytest.mark.asyncio
    async def test_rooms_are_isolated(self, chat_store):
        await chat_store.append_message("dev", "Ape42", "#ff8800", "ship it")

        assert await chat_store.list_messages("lobby", 50) == []
        assert [m.message for m in await chat_store.list_messages("dev", 50)] == ["ship it"]


class TestTypingStore:
    """타이핑 상태 저장소 공통 동작"""

    @pytest.mark.asyncio
    async def test_touch_then_list(self, chat_store):
        await chat_store.touch_typing("lobby", "Ape42", "#ff8800")

        active = await chat_store.list_active_typing("lobby")

        assert [(i.username, i.user_color) for i in active] == [("Ape42", "#ff8800")]

    @pytest.mark.asyncio
    async def test_touch_twice_keeps_single_record(self, chat_store):
        await chat_store.touch_typing("lobby", "Ape42", "#ff8800")
        await chat_store.touch_typing("lobby", "Ape42", "#123456")
        await chat_store.touch_typing("lobby", "Whale7", "#000000")

        active = await chat_store.list_active_typing("lobby")

        assert sorted(i.username for i in active) == ["Ape42", "Whale7"]
        assert {i.username: i.user_color for i in active}["Ape42"] == "#123456"

    @pytest.mark.asyncio
    async def test_expired_indicators_are_hidden(self, chat_store):
        await chat_store.touch_typing("lobby", "Ape42", "#ff8800")

        later = utcnow() + timedelta(seconds=11)
        assert await chat_store.list_active_typing("lobby", now=later) == []

    @pytest.mark.asyncio
    async def test_aware_now_is_normalized(self, chat_store):
        await chat_store.touch_typing("lobby", "Ape42", "#ff8800")

        aware_now = utcnow().replace(tzinfo=timezone.utc) + timedelta(seconds=5)
        assert len(await chat_store.list_active_typing("lobby", now=aware_now)) == 1

    @pytest.mark.asyncio
    async def test_clear_removes_indicator(self, chat_store):
        await chat_store.touch_typing("lobby", "Ape42", "#ff8800")

        await chat_store.clear_typing("lobby", "Ape42")

        assert await chat_store.list_active_typing("lobby") == []

    @pytest.mark.asyncio
    async def test_clear_before_touch_is_noop(self, chat_store):
        await chat_store.clear_typing("lobby", "Ape42")

        assert await chat_store.list_active_typing("lobby") == []

    @pytest.mark.asyncio
    async def test_clear_only_affects_one_room(self, chat_store):
        await chat_store.touch_typing("lobby", "Ape42", "#ff8800")
        await chat_store.touch_typing("dev", "Ape42", "#ff8800")

        await chat_store.clear_typing("dev", "Ape42")

        assert len(await chat_store.list_active_typing("lobby")) == 1
        assert await chat_store.list_active_typing("dev") == []

    @pytest.mark.asyncio
    async def test_ping(self, chat_store):
        assert await chat_store.ping() is True


class TestStoreLifecycle:
    """저장소 생성 및 대체 동작"""

    @pytest.mark.asyncio
    async def test_sql_store_unreachable_database(self, tmp_path):
        url = f"sqlite+aiosqlite:///{tmp_path}/missing/dir/chat.db"
        store = SqlChatStore(create_sql_engine(url))

        with pytest.raises(BackendUnavailableException) as exc_info:
            await store.create_tables()

        assert exc_info.value.status_code == 500
        assert exc_info.value.error == "backend_unavailable"
        await store.close()

    @pytest.mark.asyncio
    async def test_create_memory_store(self):
        store = await create_store("memory")

        assert isinstance(store, MemoryChatStore)
        assert store.typing_ttl_seconds == settings.typing_ttl_seconds

    @pytest.mark.asyncio
    async def test_create_unknown_store(self):
        with pytest.raises(ValueError):
            await create_store("firestore")

    @pytest.mark.asyncio
    async def test_init_store_falls_back_to_memory(self, monkeypatch, tmp_path):
        monkeypatch.setattr(database, "_store", None)
        monkeypatch.setattr(settings, "storage_backend", "sql")
        monkeypatch.setattr(settings, "database_url", f"sqlite+aiosqlite:///{tmp_path}/missing/dir/chat.db")
        monkeypatch.setattr(settings, "fallback_to_memory", True)

        store = await init_store()

        assert isinstance(store, MemoryChatStore)
        assert await init_store() is store

    @pytest.mark.asyncio
    async def test_init_store_without_fallback_raises(self, monkeypatch, tmp_path):
        monkeypatch.setattr(database, "_store", None)
        monkeypatch.setattr(settings, "storage_backend", "sql")
        monkeypatch.setattr(settings, "database_url", f"sqlite+aiosqlite:///{tmp_path}/missing/dir/chat.db")
        monkeypatch.setattr(settings, "fallback_to_memory", False)

        with pytest.raises(BackendUnavailableException):
            await init_store()

    @pytest.mark.asyncio
    async def test_check_database_health(self, memory_store):
        health = await check_database_health(memory_store)

        assert health == {"backend": "memory", "connected": True, "overall": True}


class TestMemoryStoreTyping:
    """인메모리 타이핑 상태 정리"""

    @pytest.mark.asyncio
    async def test_expired_indicators_are_removed(self, memory_store):
        await memory_store.touch_typing("lobby", "Ape42", "#ff8800")
        await memory_store.touch_typing("dev", "Whale7", "#000000")

        await memory_store.list_active_typing("lobby", now=utcnow() + timedelta(seconds=11))

        assert memory_store._typing == {}

    @pytest.mark.asyncio
    async def test_fresh_indicators_are_kept(self, memory_store):
        await memory_store.touch_typing("lobby", "Ape42", "#ff8800")
        await memory_store.touch_typing("dev", "Whale7", "#000000")

        await memory_store.list_active_typing("lobby")

        assert set(memory_store._typing) == {("lobby", "Ape42"), ("dev", "Whale7")}


class TestMongoTypingUpsert:
    """MongoDB 타이핑 upsert (컬렉션 모킹)"""

    @pytest.mark.asyncio
    async def test_touch_is_single_upsert(self):
        collection = MagicMock()
        collection.update_one = AsyncMock()

        with patch.object(TypingIndicatorDocument, "get_motor_collection", return_value=collection):
            await MongoChatStore().touch_typing("lobby", "Ape42", "#ff8800")

        collection.update_one.assert_awaited_once()
        query, update = collection.update_one.await_args.args
        assert query == {"room": "lobby", "username": "Ape42"}
        assert update["$set"]["user_color"] == "#ff8800"
        assert collection.update_one.await_args.kwargs == {"upsert": True}

    @pytest.mark.asyncio
    async def test_concurrent_insert_conflict_falls_back_to_update(self):
        collection = MagicMock()
        collection.update_one = AsyncMock(side_effect=[DuplicateKeyError("E11000 duplicate key"), None])

        with patch.object(TypingIndicatorDocument, "get_motor_collection", return_value=collection):
            await MongoChatStore().touch_typing("lobby", "Ape42", "#ff8800")

        assert collection.update_one.await_count == 2
        assert collection.update_one.await_args_list[1].kwargs == {}

    @pytest.mark.asyncio
    async def test_driver_error_is_backend_unavailable(self):
        collection = MagicMock()
        collection.update_one = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))

        with patch.object(TypingIndicatorDocument, "get_motor_collection", return_value=collection):
            with pytest.raises(BackendUnavailableException):
                await MongoChatStore().touch_typing("lobby", "Ape42", "#ff8800")
