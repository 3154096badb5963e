from sqlalchemy import Column, String, ForeignKey
from .base import BaseModel

class Friendship(BaseModel):
    """One direction of the symmetric friend relation; adding a friend writes both rows."""
    __tablename__ = "friends"

    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    friend_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
