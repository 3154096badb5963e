"""
Error taxonomy shared by the HTTP routers and the real-time core.

Every failure is local to the request or connection that triggered it;
nothing here is treated as process-fatal.
"""

from enum import Enum


class AuthFailure(str, Enum):
    INVALID = "invalid"
    EXPIRED = "expired"
    UNKNOWN_IDENTITY = "unknown_identity"
    BANNED = "banned"
    FORBIDDEN = "forbidden"


class ChatError(Exception):
    """Base class for all chat core errors."""


class AuthError(ChatError):
    def __init__(self, reason: AuthFailure, detail: str = None):
        self.reason = reason
        self.detail = detail or reason.value
        super().__init__(self.detail)


class ValidationError(ChatError):
    """Empty or oversized text, malformed direct channel name, self-befriending."""


class AuthorizationError(ChatError):
    """The session is not a member of the target channel."""


class StorageError(ChatError):
    """A round-trip to the relational store failed."""
