# storefront/services/auth.py

import logging
from typing import List, Optional

from storefront.clients.supabase import SupabaseClient, SupabaseError
from storefront.core.config import settings
from storefront.schemas.user import AuthSession, AuthUser

logger = logging.getLogger(__name__)

COOKIE_ATTRIBUTES = "HttpOnly; Secure; Path=/; SameSite=Strict"
EXPIRED = "Expires=Thu, 01 Jan 1970 00:00:00 GMT"


def session_cookies(session: AuthSession) -> List[str]:
    """Set-Cookie values carrying the provider's tokens."""
    access = f"{settings.ACCESS_TOKEN_COOKIE}={session.access_token}; {COOKIE_ATTRIBUTES}"
    if session.expires_in:
        access += f"; Max-Age={session.expires_in}"
    cookies = [access]
    if session.refresh_token:
        cookies.append(f"{settings.REFRESH_TOKEN_COOKIE}={session.refresh_token}; {COOKIE_ATTRIBUTES}")
    return cookies


def expired_session_cookies() -> List[str]:
    return [
        f"{settings.ACCESS_TOKEN_COOKIE}=; {COOKIE_ATTRIBUTES}; {EXPIRED}",
        f"{settings.REFRESH_TOKEN_COOKIE}=; {COOKIE_ATTRIBUTES}; {EXPIRED}",
    ]


async def login(client: SupabaseClient, email: str, password: str) -> AuthSession:
    session = await client.auth.sign_in_with_password(email, password)
    logger.info(f"User {session.user.id} signed in.")
    return session


async def logout(client: SupabaseClient, access_token: Optional[str]) -> None:
    """Best effort: a provider failure is logged and the caller clears cookies anyway."""
    if not access_token:
        logger.debug("Logout without an access token, nothing to revoke.")
        return
    try:
        await client.auth.admin_sign_out(access_token)
    except SupabaseError as e:
        logger.warning(f"Provider sign-out failed, clearing cookies anyway: {e.message}")


async def verify_session(client: SupabaseClient, access_token: str) -> AuthUser:
    return await client.auth.get_user(access_token)
