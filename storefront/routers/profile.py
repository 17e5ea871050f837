# storefront/routers/profile.py

from fastapi import APIRouter, Depends

from storefront.clients.supabase import SupabaseClient, get_supabase_client
from storefront.dependencies import get_current_user
from storefront.schemas.user import AuthUser, ProfileResponse
from storefront.services import profile as profile_service

router = APIRouter()


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    current_user: AuthUser = Depends(get_current_user),
    client: SupabaseClient = Depends(get_supabase_client),
):
    """Profile row and saved addresses of the signed-in user."""
    return await profile_service.get_user_profile(client, current_user)
