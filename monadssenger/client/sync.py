"""
채팅방 동기화 루프

한 채팅방 화면의 메시지/타이핑 상태를 백엔드와 맞춥니다.

- CONNECTED: 2초마다 최근 메시지 50개와 타이핑 상태를 다시 가져와 통째로 교체
- DISCONNECTED: 백엔드에 닿지 못하면 세션 메모리에만 채팅방별 메시지를 보관 (다른 사용자와 동기화되지 않음)

전송은 낙관적으로 화면에 먼저 추가하고, 백엔드 저장에 실패하면 세션을 DISCONNECTED로 영구 전환합니다.
채팅방을 바꿀 때마다 세대(generation) 번호를 올리고, 이전 세대의 응답은 버립니다.
"""

import logging
import random
import time
from enum import Enum
from functools import partial
from typing import Callable, Dict, List, Optional

from monadssenger.schemas.message import MessageResponse
from monadssenger.schemas.typing import TypingIndicatorResponse
from monadssenger.utils.text_filters import process_message_text
from monadssenger.utils.time_utils import utcnow

from .backends import ChatBackend
from .errors import BackendUnavailable, ClientError, RateLimited
from .identity import SessionIdentity, generate_identity
from .rate_limit import SlidingWindowRateLimiter
from .timers import DebounceTimer, RepeatingTimer

logger = logging.getLogger(__name__)

DEFAULT_ROOMS = ["lobby", "bnb", "usa", "dev"]
POLL_INTERVAL_SECONDS = 2.0
TYPING_CLEAR_DELAY_SECONDS = 3.0
MESSAGE_FETCH_LIMIT = 50
RATE_LIMIT_WARNING = "Slow down! You're sending messages too quickly. Please wait a moment."


class ConnectionState(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


def generate_local_message_id() -> str:
    """로컬 전용 메시지 ID (epoch ms + 난수)"""
    return f"{int(time.time() * 1000)}-{random.random()}"


def is_local_message_id(message_id: str) -> bool:
    return "-" in message_id


class ChatSession:
    """채팅방 하나를 보고 있는 클라이언트 세션"""

    def __init__(
        self,
        backend: ChatBackend,
        identity: Optional[SessionIdentity] = None,
        room: str = "lobby",
        poll_interval: float = POLL_INTERVAL_SECONDS,
        typing_clear_delay: float = TYPING_CLEAR_DELAY_SECONDS,
        message_limit: int = MESSAGE_FETCH_LIMIT,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        on_messages: Optional[Callable[[List[MessageResponse]], None]] = None,
        on_typing: Optional[Callable[[List[TypingIndicatorResponse]], None]] = None,
        on_warning: Optional[Callable[[str], None]] = None,
        on_state_change: Optional[Callable[[ConnectionState], None]] = None
    ):
        self.backend = backend
        self.identity = identity or generate_identity()
        self.room = room
        self.poll_interval = poll_interval
        self.message_limit = message_limit
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter()

        self.on_messages = on_messages
        self.on_typing = on_typing
        self.on_warning = on_warning
        self.on_state_change = on_state_change

        self.state = ConnectionState.CONNECTED
        self.messages: List[MessageResponse] = []
        self.typing_users: List[TypingIndicatorResponse] = []
        self.local_messages: Dict[str, List[MessageResponse]] = {room_id: [] for room_id in DEFAULT_ROOMS}

        self._generation = 0
        self._started = False
        self._message_timer: Optional[RepeatingTimer] = None
        self._typing_timer: Optional[RepeatingTimer] = None
        self._typing_clear = DebounceTimer(typing_clear_delay, name="typing-clear")

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_local(self) -> bool:
        return self.state is ConnectionState.DISCONNECTED

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """백엔드 연결 확인 후 현재 채팅방 동기화 시작"""
        if self._started:
            return
        self._started = True
        await self._probe()
        await self._enter_room()

    async def stop(self) -> None:
        self._stop_timers()
        self._typing_clear.cancel()
        self._started = False

    async def close(self) -> None:
        await self.stop()
        await self.backend.aclose()

    async def __aenter__(self) -> "ChatSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def switch_room(self, room: str) -> None:
        if room == self.room:
            return
        self.room = room
        if self._started:
            await self._enter_room()

    # =========================================================================
    # Synchronization
    # =========================================================================

    async def _probe(self) -> None:
        try:
            await self.backend.probe()
            logger.info("Backend available")
        except BackendUnavailable as e:
            logger.info(f"Backend check failed, using in-memory storage: {e}")
            self._go_local()

    def _go_local(self) -> None:
        """로컬 모드로 영구 전환"""
        if self.is_local:
            return
        self.state = ConnectionState.DISCONNECTED
        self._generation += 1
        self._stop_timers()
        self._typing_clear.cancel()

        if self.on_state_change:
            self.on_state_change(self.state)
        self._show_local(self.room)

    def _stop_timers(self) -> None:
        for timer in (self._message_timer, self._typing_timer):
            if timer is not None:
                timer.cancel()
        self._message_timer = None
        self._typing_timer = None

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation or self.is_local

    async def _enter_room(self) -> None:
        self._stop_timers()
        self._generation += 1
        generation = self._generation
        room = self.room

        if self.is_local:
            self._show_local(room)
            return

        try:
            messages = await self.backend.list_messages(room, self.message_limit)
        except BackendUnavailable as e:
            logger.error(f"Error fetching messages for room {room}: {e}")
            self._go_local()
            return

        if self._is_stale(generation):
            return

        self._show_messages(messages)

        logger.info(f"Setting up polling for room: {room}")
        self._message_timer = RepeatingTimer(
            self.poll_interval,
            partial(self._poll_messages, generation, room),
            name=f"messages:{room}"
        )
        self._typing_timer = RepeatingTimer(
            self.poll_interval,
            partial(self._poll_typing, generation, room),
            run_immediately=True,
            name=f"typing:{room}"
        )
        self._message_timer.start()
        self._typing_timer.start()

    async def _poll_messages(self, generation: int, room: str) -> None:
        try:
            messages = await self.backend.list_messages(room, self.message_limit)
        except BackendUnavailable as e:
            logger.error(f"Error polling messages: {e}")
            return

        if self._is_stale(generation):
            logger.debug(f"Discarding stale message poll for room {room}")
            return
        self._show_messages(messages)

    async def _poll_typing(self, generation: int, room: str) -> None:
        try:
            indicators = await self.backend.list_active(room)
        except ClientError as e:
            logger.debug(f"Typing indicator error: {e}")
            return

        if self._is_stale(generation):
            return
        self._show_typing(indicators)

    # =========================================================================
    # View state
    # =========================================================================

    def _show_messages(self, messages: List[MessageResponse]) -> bool:
        """내용이 바뀐 경우에만 교체 후 알림"""
        messages = list(messages)
        if messages == self.messages:
            return False
        self.messages = messages
        if self.on_messages:
            self.on_messages(list(messages))
        return True

    def _show_typing(self, indicators: List[TypingIndicatorResponse]) -> bool:
        others = [i for i in indicators if i.username != self.identity.username]
        if others == self.typing_users:
            return False
        self.typing_users = others
        if self.on_typing:
            self.on_typing(list(others))
        return True

    def _show_local(self, room: str) -> None:
        self._show_messages(self.local_messages.get(room, []))
        self._show_typing([])

    def _store_locally(self, message: MessageResponse) -> None:
        self.local_messages.setdefault(message.room, []).append(message)

    def _warn(self, warning: str) -> None:
        logger.warning(warning)
        if self.on_warning:
            self.on_warning(warning)

    # =========================================================================
    # User actions
    # =========================================================================

    async def send(self, text: str) -> Optional[MessageResponse]:
        """
        메시지 전송

        Returns:
            저장된 메시지 (로컬 모드면 로컬 메시지), 무시되거나 제한에 걸리면 None
        """
        if not text or not text.strip():
            return None

        try:
            self.rate_limiter.acquire()
        except RateLimited:
            self._warn(RATE_LIMIT_WARNING)
            return None

        room = self.room
        generation = self._generation
        local_message = MessageResponse(
            id=generate_local_message_id(),
            room=room,
            username=self.identity.username,
            user_color=self.identity.user_color,
            message=process_message_text(text.strip()),
            created_at=utcnow()
        )

        # 낙관적 업데이트
        self._show_messages(self.messages + [local_message])

        if self.is_local:
            self._store_locally(local_message)
            logger.info("Message stored in memory")
            return local_message

        try:
            stored = await self.backend.append(
                room,
                self.identity.username,
                self.identity.user_color,
                local_message.message
            )
        except RateLimited as e:
            self._show_messages([m for m in self.messages if m.id != local_message.id])
            self._warn(str(e))
            return None
        except BackendUnavailable as e:
            logger.warning(f"Failed to send message, switching to in-memory storage: {e}")
            self._store_locally(local_message)
            self._go_local()
            return local_message

        logger.info("Message sent to backend successfully")
        if generation == self._generation:
            self._show_messages([stored if m.id == local_message.id else m for m in self.messages])

        self._typing_clear.cancel()
        await self._clear_typing(room)
        return stored

    async def on_input_change(self) -> None:
        """입력 변경 시 타이핑 상태 갱신, 3초간 입력이 없으면 삭제"""
        if self.is_local:
            return

        room = self.room
        try:
            await self.backend.touch(room, self.identity.username, self.identity.user_color)
        except ClientError as e:
            logger.debug(f"Typing update failed: {e}")
            return

        self._typing_clear.schedule(partial(self._clear_typing, room))

    async def _clear_typing(self, room: str) -> None:
        try:
            await self.backend.clear(room, self.identity.username)
        except ClientError as e:
            logger.debug(f"Typing clear failed: {e}")
