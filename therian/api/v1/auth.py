import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from therian.auth import TokenIssuer, get_token_issuer
from therian.config import settings
from therian.database import get_db
from therian.errors import AuthError, AuthFailure
from therian.identity import GoogleCredentialVerifier, get_verifier
from therian.repositories.user_repository import UserRepository
from therian.schemas.user import GoogleLogin, LoginResponse

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/google", response_model=LoginResponse)
async def login_with_google(
    login: GoogleLogin,
    db: AsyncSession = Depends(get_db),
    verifier: GoogleCredentialVerifier = Depends(get_verifier),
    issuer: TokenIssuer = Depends(get_token_issuer)
):
    """Exchange a Google ID token for a session token."""
    try:
        identity = await verifier.verify(login.id_token)
    except AuthError as e:
        logger.info(f"Google login rejected: {e.detail}")
        raise

    user = await UserRepository(db).upsert_login(identity, settings.DEFAULT_DISPLAY_NAME)
    if user.banned:
        logger.info(f"Banned user {user.id} refused at login")
        raise AuthError(AuthFailure.BANNED, "User is banned")

    logger.info(f"User {user.id} logged in")
    return {"token": issuer.issue(user.id), "user": user}
