"""
Monadssenger 클라이언트

채팅방 폴링 동기화, 낙관적 전송, 로컬 대체 저장, 전송 속도 제한, 타이핑 표시를 제공합니다.
"""

from .backends import ChatBackend, HttpChatBackend, StoreChatBackend
from .errors import ClientError, BackendUnavailable, RateLimited
from .identity import SessionIdentity, generate_identity
from .rate_limit import SlidingWindowRateLimiter
from .sync import ChatSession, ConnectionState, DEFAULT_ROOMS

__all__ = [
    "ChatBackend",
    "HttpChatBackend",
    "StoreChatBackend",
    "ClientError",
    "BackendUnavailable",
    "RateLimited",
    "SessionIdentity",
    "generate_identity",
    "SlidingWindowRateLimiter",
    "ChatSession",
    "ConnectionState",
    "DEFAULT_ROOMS",
]
