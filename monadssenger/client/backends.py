"""
동기화 루프가 사용하는 백엔드 어댑터

ChatBackend 인터페이스(append, list_messages, touch, clear, list_active)를
- HttpChatBackend: REST API (/messages, /typing) 호출
- StoreChatBackend: 서버 저장소(ChatStore)에 직접 접근
두 가지로 구현합니다.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, ValidationError

from monadssenger.core.errors import BaseCustomException, RateLimitException
from monadssenger.database.base import ChatStore
from monadssenger.schemas.message import MessageResponse, MessageListResponse, MessageCreateResponse
from monadssenger.schemas.typing import TypingIndicatorResponse, TypingListResponse
from monadssenger.services import message_service, typing_service

from .errors import BackendUnavailable, RateLimited


class ChatBackend(ABC):
    """채팅 백엔드 기능 인터페이스"""

    @abstractmethod
    async def append(self, room: str, username: str, user_color: str, text: str) -> MessageResponse:
        ...

    @abstractmethod
    async def list_messages(self, room: str, limit: int) -> List[MessageResponse]:
        ...

    @abstractmethod
    async def touch(self, room: str, username: str, user_color: str) -> None:
        ...

    @abstractmethod
    async def clear(self, room: str, username: str) -> None:
        ...

    @abstractmethod
    async def list_active(self, room: str) -> List[TypingIndicatorResponse]:
        ...

    async def probe(self) -> None:
        """연결 확인 (실패 시 BackendUnavailable)"""
        await self.list_messages("lobby", 1)

    async def aclose(self) -> None:
        pass


class HttpChatBackend(ChatBackend):
    """REST API 어댑터 (httpx)"""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        try:
            response = await self.client.request(method, path, params=params, json=json)
        except httpx.HTTPError as e:
            raise BackendUnavailable(f"{method} {path} failed: {e}") from e

        if response.status_code == 429:
            body = _safe_json(response)
            details = body.get("details") or {}
            raise RateLimited(
                body.get("message", "Rate limit exceeded"),
                retry_after=details.get("retry_after")
            )

        if not response.is_success:
            body = _safe_json(response)
            raise BackendUnavailable(
                f"{method} {path} returned {response.status_code}: {body.get('message', response.text)}",
                status_code=response.status_code
            )

        return _safe_json(response)

    async def append(self, room: str, username: str, user_color: str, text: str) -> MessageResponse:
        data = await self._request("POST", "/messages", json={
            "room": room,
            "username": username,
            "user_color": user_color,
            "message": text,
        })
        return _parse(MessageCreateResponse, data).message

    async def list_messages(self, room: str, limit: int) -> List[MessageResponse]:
        data = await self._request("GET", "/messages", params={"room": room, "limit": limit})
        return _parse(MessageListResponse, data).messages

    async def touch(self, room: str, username: str, user_color: str) -> None:
        await self._request("POST", "/typing", json={
            "room": room,
            "username": username,
            "user_color": user_color,
        })

    async def clear(self, room: str, username: str) -> None:
        await self._request("DELETE", "/typing", params={"room": room, "username": username})

    async def list_active(self, room: str) -> List[TypingIndicatorResponse]:
        data = await self._request("GET", "/typing", params={"room": room})
        return _parse(TypingListResponse, data).typing

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()


class StoreChatBackend(ChatBackend):
    """ChatStore 직접 접근 어댑터 (같은 프로세스에서 저장소를 공유할 때)"""

    def __init__(self, store: ChatStore):
        self.store = store

    async def _call(self, operation, *args, **kwargs):
        try:
            return await operation(self.store, *args, **kwargs)
        except RateLimitException as e:
            raise RateLimited(e.message) from e
        except BaseCustomException as e:
            raise BackendUnavailable(e.message, status_code=e.status_code) from e

    async def append(self, room: str, username: str, user_color: str, text: str) -> MessageResponse:
        return await self._call(message_service.create_message, room, username, user_color, text)

    async def list_messages(self, room: str, limit: int) -> List[MessageResponse]:
        return await self._call(message_service.get_room_messages, room, limit)

    async def touch(self, room: str, username: str, user_color: str) -> None:
        await self._call(typing_service.touch_typing, room, username, user_color)

    async def clear(self, room: str, username: str) -> None:
        await self._call(typing_service.clear_typing, room, username)

    async def list_active(self, room: str) -> List[TypingIndicatorResponse]:
        return await self._call(typing_service.get_active_typing, room)

    async def probe(self) -> None:
        if not await self.store.ping():
            raise BackendUnavailable(f"{self.store.backend_name} store is not reachable")


def _safe_json(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _parse(model: type[BaseModel], data: Dict[str, Any]):
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise BackendUnavailable(f"Unexpected response payload: {e.error_count()} errors") from e
