from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class UserResponse(BaseModel):
    id: str
    name: str
    photo: Optional[str] = None
    email: Optional[str] = None
    premium: bool
    last_seen: Optional[datetime] = None

    class Config:
        from_attributes = True

class PublicUserResponse(BaseModel):
    id: str
    name: str
    photo: Optional[str] = None
    premium: bool

    class Config:
        from_attributes = True

class FriendResponse(PublicUserResponse):
    last_seen: Optional[datetime] = None

class GoogleLogin(BaseModel):
    id_token: str

class LoginResponse(BaseModel):
    token: str
    user: UserResponse

class UpdateName(BaseModel):
    name: str

class UpdatePhoto(BaseModel):
    photo: str

class ExternalIdentity(BaseModel):
    """Verified profile returned by the identity provider."""
    sub: str
    name: Optional[str] = None
    email: Optional[str] = None
    picture: Optional[str] = None
