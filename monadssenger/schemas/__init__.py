from .message import MessageCreate, MessageResponse, MessageListResponse, MessageCreateResponse
from .typing import TypingCreate, TypingIndicatorResponse, TypingListResponse, SuccessResponse

__all__ = [
    "MessageCreate",
    "MessageResponse",
    "MessageListResponse",
    "MessageCreateResponse",
    "TypingCreate",
    "TypingIndicatorResponse",
    "TypingListResponse",
    "SuccessResponse",
]
