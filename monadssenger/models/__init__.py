from .messages import Message
from .typing_indicators import TypingIndicator
from .documents import MessageDocument, TypingIndicatorDocument

__all__ = [
    "Message",
    "TypingIndicator",
    "MessageDocument",
    "TypingIndicatorDocument",
]
