import asyncio
import logging
from typing import Optional

from monadssenger.core.config import settings
from monadssenger.core.errors import BackendUnavailableException
from .base import ChatStore
from .memory_store import MemoryChatStore

logger = logging.getLogger(__name__)

# 프로세스 전역 저장소 (lazy 초기화)
_store: Optional[ChatStore] = None
_store_lock = asyncio.Lock()


async def create_store(backend: Optional[str] = None) -> ChatStore:
    """설정된 백엔드에 맞는 저장소 생성 및 초기화"""
    backend = (backend or settings.storage_backend).lower()
    ttl = settings.typing_ttl_seconds

    if backend == "sql":
        from .sql import create_sql_engine
        from .sql_store import SqlChatStore

        store = SqlChatStore(create_sql_engine(settings.database_url, echo=settings.debug), typing_ttl_seconds=ttl)
        try:
            await store.create_tables()
        except BackendUnavailableException:
            await store.close()
            raise
        return store

    if backend == "mongodb":
        from .mongodb import init_mongodb
        from .mongo_store import MongoChatStore

        await init_mongodb(settings.mongo_url, settings.mongo_db_name)
        return MongoChatStore(typing_ttl_seconds=ttl)

    if backend == "memory":
        return MemoryChatStore(typing_ttl_seconds=ttl)

    raise ValueError(f"Unknown storage backend: {backend}")


async def init_store() -> ChatStore:
    """Initialize the process-wide store once"""
    global _store
    if _store is not None:
        return _store

    async with _store_lock:
        if _store is not None:
            return _store
        try:
            _store = await create_store()
            logger.info(f"Storage backend '{_store.backend_name}' initialized successfully")
        except ValueError:
            raise
        except Exception as e:
            if not settings.fallback_to_memory:
                logger.error(f"Storage initialization failed: {e}")
                raise
            logger.warning(f"Storage initialization failed, falling back to memory store: {e}")
            _store = MemoryChatStore(typing_ttl_seconds=settings.typing_ttl_seconds)
    return _store


async def close_store():
    """Close the process-wide store"""
    global _store
    if _store is None:
        return
    try:
        await _store.close()
        logger.info("Storage connections closed")
    except Exception as e:
        logger.error(f"Error closing storage connections: {e}")
    finally:
        _store = None


async def get_store() -> ChatStore:
    """Dependency to get the chat store"""
    return await init_store()


async def check_database_health(store: ChatStore) -> dict:
    """Check health of the active storage backend"""
    healthy = await store.ping()
    return {
        "backend": store.backend_name,
        "connected": healthy,
        "overall": healthy
    }

__all__ = [
    "ChatStore",
    "MemoryChatStore",
    "create_store",
    "init_store",
    "close_store",
    "get_store",
    "check_database_health",
]
