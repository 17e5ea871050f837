# storefront/dependencies.py

import logging
import re
import uuid
from typing import Optional

from fastapi import Depends, HTTPException, Request, Response, status
from redis.asyncio import Redis

from storefront.clients.supabase import SupabaseClient, SupabaseError, get_supabase_client
from storefront.core import locales
from storefront.core.config import settings
from storefront.core.redis import get_redis_client
from storefront.schemas.user import AuthUser
from storefront.services.cart import CartSession
from storefront.services.guest_cart import GuestCartStore

logger = logging.getLogger(__name__)

GUEST_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


# --- Authentication ---

async def get_current_user(
    request: Request,
    client: SupabaseClient = Depends(get_supabase_client),
) -> AuthUser:
    """
    REQUIRED dependency.
    Needs a valid access-token cookie, otherwise 401.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=locales.ERROR_LOGIN_REQUIRED,
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = request.cookies.get(settings.ACCESS_TOKEN_COOKIE)
    if not token:
        raise credentials_exception

    try:
        user = await client.auth.get_user(token)
    except SupabaseError as e:
        logger.warning(f"Session rejected by identity provider: {e.message}")
        raise credentials_exception

    request.state.user = user
    return user


async def get_optional_current_user(
    request: Request,
    client: SupabaseClient = Depends(get_supabase_client),
) -> Optional[AuthUser]:
    """
    OPTIONAL dependency.
    Returns the user for a valid cookie, None when it is missing or invalid.
    """
    token = request.cookies.get(settings.ACCESS_TOKEN_COOKIE)
    if not token:
        return None

    try:
        user = await client.auth.get_user(token)
    except SupabaseError as e:
        logger.info(f"Optional session is invalid, treating viewer as guest: {e.message}")
        return None

    request.state.user = user
    return user


def get_guest_id(request: Request, response: Response) -> str:
    """Guest id from its cookie; a new one is issued when missing or malformed."""
    guest_id = request.cookies.get(settings.GUEST_COOKIE)
    if guest_id and GUEST_ID_PATTERN.match(guest_id):
        return guest_id

    guest_id = uuid.uuid4().hex
    response.set_cookie(
        settings.GUEST_COOKIE,
        guest_id,
        max_age=settings.GUEST_CART_TTL_SECONDS,
        httponly=True,
        secure=True,
        samesite="strict",
    )
    return guest_id


# --- Cart ---

async def get_cart_session(
    request: Request,
    response: Response,
    user: Optional[AuthUser] = Depends(get_optional_current_user),
    client: SupabaseClient = Depends(get_supabase_client),
    redis: Redis = Depends(get_redis_client),
) -> CartSession:
    """Loaded cart of the current viewer (signed-in user, else guest)."""
    guest_id = None if user else get_guest_id(request, response)
    cart = CartSession(client, GuestCartStore(redis), user=user, guest_id=guest_id)
    return await cart.load()
