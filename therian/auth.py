"""
Session tokens and the bearer-token dependencies used by the HTTP routers.

A session token is a signed JWT carrying only the identity id (``uid``) and
its validity window. Issuing and verifying do no I/O, so the same issuer
serves both the request path and WebSocket authentication.
"""

import logging
from datetime import datetime, timedelta, timezone

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from therian.config import settings
from therian.database import get_db
from therian.errors import AuthError, AuthFailure
from therian.models.user import User
from therian.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class TokenIssuer:
    def __init__(self, secret_key: str, algorithm: str = "HS256", ttl: timedelta = timedelta(days=30)):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = ttl

    def issue(self, user_id: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {"uid": user_id, "iat": now, "exp": now + self.ttl}
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        """Return the identity id bound to ``token``.

        Raises:
            AuthError: ``expired`` past validity, ``invalid`` for a bad
                signature or malformed structure.
        """
        if not isinstance(token, str) or not token:
            raise AuthError(AuthFailure.INVALID, "Invalid token")
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise AuthError(AuthFailure.EXPIRED, "Token expired")
        except JWTError:
            raise AuthError(AuthFailure.INVALID, "Invalid token")

        user_id = payload.get("uid")
        if not isinstance(user_id, str) or not user_id:
            raise AuthError(AuthFailure.INVALID, "Invalid token")
        return user_id


token_issuer = TokenIssuer(
    settings.SECRET_KEY,
    settings.ALGORITHM,
    timedelta(days=settings.SESSION_TOKEN_EXPIRE_DAYS),
)

bearer_scheme = HTTPBearer(auto_error=False)


def get_token_issuer() -> TokenIssuer:
    return token_issuer


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    issuer: TokenIssuer = Depends(get_token_issuer),
    db: AsyncSession = Depends(get_db),
) -> User:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthError(AuthFailure.INVALID, "Not authenticated")

    user_id = issuer.verify(credentials.credentials)
    user = await UserRepository(db).get_by_id(user_id)
    if user is None:
        raise AuthError(AuthFailure.UNKNOWN_IDENTITY, "User not found")
    if user.banned:
        raise AuthError(AuthFailure.BANNED, "User is banned")
    return user
