from sqlalchemy import Column, Integer, String, Text, DateTime, Index
from monadssenger.database.sql import Base
from monadssenger.utils.time_utils import utcnow


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    room = Column(String(255), nullable=False, default="lobby")
    username = Column(Text, nullable=False)
    user_color = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_messages_room_created_at", "room", "created_at"),  # For room message history
    )

    def __repr__(self):
        return f"<Message(id={self.id}, room={self.room}, username={self.username})>"
