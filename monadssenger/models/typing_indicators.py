from sqlalchemy import Column, Integer, String, Text, DateTime, UniqueConstraint
from monadssenger.database.sql import Base
from monadssenger.utils.time_utils import utcnow


class TypingIndicator(Base):
    __tablename__ = "typing_indicators"

    id = Column(Integer, primary_key=True, autoincrement=True)
    room = Column(String(255), nullable=False)
    username = Column(String(255), nullable=False)
    user_color = Column(Text, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    __table_args__ = (
        UniqueConstraint("room", "username", name="uq_typing_indicators_room_username"),
    )

    def __repr__(self):
        return f"<TypingIndicator(room={self.room}, username={self.username}, updated_at={self.updated_at})>"
