from sqlalchemy import Column, Integer, String, ForeignKey, Text, CheckConstraint
from sqlalchemy.orm import relationship
from .base import BaseModel

class RoomMessage(BaseModel):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    room_id = Column(String(255), nullable=False, index=True)
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False)

    author = relationship("User", back_populates="room_messages")

    __table_args__ = (
        CheckConstraint("length(text) <= 500", name="messages_text_length"),
    )

class DirectMessage(BaseModel):
    __tablename__ = "dm_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # canonical "<uid>_<uid>" channel name
    chat_id = Column(String(511), nullable=False, index=True)
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False)

    author = relationship("User", back_populates="direct_messages")

    __table_args__ = (
        CheckConstraint("length(text) <= 500", name="dm_messages_text_length"),
    )
