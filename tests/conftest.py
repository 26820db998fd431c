import pytest
import pytest_asyncio
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from monadssenger.main import app
from monadssenger.database import get_store
from monadssenger.database.base import ChatStore
from monadssenger.database.memory_store import MemoryChatStore
from monadssenger.database.sql_store import SqlChatStore


# 테스트용 인메모리 SQLite 데이터베이스 설정
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def create_test_engine() -> AsyncEngine:
    """테스트용 비동기 데이터베이스 엔진 생성"""
    return create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False
    )


@pytest.fixture
def memory_store() -> MemoryChatStore:
    """인메모리 저장소"""
    return MemoryChatStore()


@pytest_asyncio.fixture
async def sql_store() -> AsyncGenerator[SqlChatStore, None]:
    """SQLite 기반 SQL 저장소"""
    store = SqlChatStore(create_test_engine())
    await store.create_tables()

    yield store

    await store.close()


@pytest_asyncio.fixture(params=["memory", "sql"])
async def chat_store(request) -> AsyncGenerator[ChatStore, None]:
    """모든 저장소 구현에 대해 같은 테스트 실행"""
    if request.param == "memory":
        store = MemoryChatStore()
    else:
        store = SqlChatStore(create_test_engine())
        await store.create_tables()

    yield store

    await store.close()


@pytest_asyncio.fixture
async def client(chat_store) -> AsyncGenerator[AsyncClient, None]:
    """테스트용 비동기 HTTP 클라이언트"""
    app.dependency_overrides[get_store] = lambda: chat_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def message_data():
    """메시지 전송 요청 기본값"""
    return {
        "room": "lobby",
        "username": "Ape42",
        "user_color": "#ff8800",
        "message": "gm frens",
    }


@pytest.fixture
def typing_data():
    """타이핑 상태 요청 기본값"""
    return {
        "room": "lobby",
        "username": "Ape42",
        "user_color": "#ff8800",
    }
