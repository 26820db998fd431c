from datetime import datetime
from beanie import Document
from pydantic import Field
from pymongo import ASCENDING, DESCENDING, IndexModel

from monadssenger.utils.time_utils import utcnow


class MessageDocument(Document):
    room: str = Field(..., description="Room where message was sent")
    username: str = Field(..., description="Sender display name")
    user_color: str = Field(..., description="Sender color")
    message: str = Field(..., description="Message content")
    created_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "messages"
        indexes = [
            [("room", ASCENDING), ("created_at", DESCENDING)],  # For room message history
        ]

    def __repr__(self):
        return f"<MessageDocument(id={self.id}, room={self.room}, username={self.username})>"


class TypingIndicatorDocument(Document):
    room: str = Field(..., description="Room the user is typing in")
    username: str = Field(..., description="Typing user")
    user_color: str = Field(..., description="Typing user color")
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "typing_indicators"
        indexes = [
            IndexModel([("room", ASCENDING), ("username", ASCENDING)], unique=True),
            [("room", ASCENDING), ("updated_at", DESCENDING)],
        ]
