from .base import Base
from .user import User
from .message import RoomMessage, DirectMessage
from .friend import Friendship

__all__ = [
    "Base",
    "User",
    "RoomMessage",
    "DirectMessage",
    "Friendship"
]
