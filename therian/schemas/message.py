from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class MessageAuthor(BaseModel):
    user_id: str
    name: str
    photo: Optional[str] = None
    premium: bool = False

class RoomMessageResponse(MessageAuthor):
    id: int
    room_id: str
    text: str
    created_at: datetime

class DirectMessageResponse(MessageAuthor):
    id: int
    chat_id: str
    text: str
    created_at: datetime
