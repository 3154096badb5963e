"""
Identity provider verification.

Exchanges a Google ID token for the verified subject id and profile fields by
asking Google's ``tokeninfo`` endpoint, so no provider SDK is needed.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from therian.config import settings
from therian.errors import AuthError, AuthFailure
from therian.schemas.user import ExternalIdentity

logger = logging.getLogger(__name__)


class GoogleCredentialVerifier:
    def __init__(self, tokeninfo_url: str, client_id: str = "", timeout: float = 10.0):
        self.tokeninfo_url = tokeninfo_url
        self.client_id = client_id
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def verify(self, id_token: str) -> ExternalIdentity:
        if not id_token:
            raise AuthError(AuthFailure.INVALID, "id_token required")

        session = await self._get_session()
        try:
            async with session.get(self.tokeninfo_url, params={"id_token": id_token}) as response:
                payload = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(f"Identity provider request failed: {e}")
            raise AuthError(AuthFailure.INVALID, "Identity provider unavailable") from e

        if not isinstance(payload, dict) or not payload.get("sub"):
            detail = "Invalid identity token"
            if isinstance(payload, dict):
                detail = payload.get("error_description") or payload.get("error") or detail
            raise AuthError(AuthFailure.INVALID, detail)

        if self.client_id and payload.get("aud") != self.client_id:
            raise AuthError(AuthFailure.INVALID, "Identity token issued for another client")

        return ExternalIdentity(
            sub=str(payload["sub"]),
            name=payload.get("name"),
            email=payload.get("email"),
            picture=payload.get("picture"),
        )

    async def close(self):
        if self._session is not None and not self._session.closed:
            await self._session.close()


verifier = GoogleCredentialVerifier(settings.GOOGLE_TOKENINFO_URL, settings.GOOGLE_CLIENT_ID)


def get_verifier() -> GoogleCredentialVerifier:
    return verifier
