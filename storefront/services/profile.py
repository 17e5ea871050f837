# storefront/services/profile.py

import logging

from fastapi import HTTPException, status

from storefront.clients.supabase import SupabaseClient, SupabaseError
from storefront.core import locales
from storefront.crud import profile as crud_profile
from storefront.schemas.user import AuthUser, ProfileResponse

logger = logging.getLogger(__name__)


async def get_user_profile(client: SupabaseClient, user: AuthUser) -> ProfileResponse:
    try:
        profile = await crud_profile.get_profile(client, user.id)
        addresses = await crud_profile.get_user_addresses(client, user.id)
    except SupabaseError:
        logger.error(f"Failed to load profile of user {user.id}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=locales.ERROR_PROFILE_LOAD_FAILED)
    return ProfileResponse(profile=profile, addresses=addresses)
