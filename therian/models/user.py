from sqlalchemy import Column, String, Text, Boolean, DateTime
from sqlalchemy.orm import relationship
from .base import BaseModel, utcnow

class User(BaseModel):
    __tablename__ = "users"

    # external identity provider subject id
    id = Column(String(255), primary_key=True)
    name = Column(String(100), nullable=False)
    photo = Column(Text, nullable=True)
    email = Column(String(255), nullable=True)
    premium = Column(Boolean, default=False, nullable=False)
    banned = Column(Boolean, default=False, nullable=False)
    last_seen = Column(DateTime(timezone=True), default=utcnow, nullable=True)

    room_messages = relationship("RoomMessage", back_populates="author")
    direct_messages = relationship("DirectMessage", back_populates="author")
