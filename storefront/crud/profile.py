# storefront/crud/profile.py
from typing import List, Optional

from storefront.clients.supabase import PostgrestError, SupabaseClient
from storefront.schemas.user import Profile, UserAddress

PROFILES_TABLE = "profiles"
ADDRESSES_TABLE = "user_addresses"


async def get_profile(client: SupabaseClient, user_id: str) -> Optional[Profile]:
    try:
        row = await client.select(PROFILES_TABLE, filters={"id": user_id}, single=True)
    except PostgrestError as e:
        if e.is_no_rows:
            return None
        raise
    return Profile.model_validate(row)


async def get_user_addresses(client: SupabaseClient, user_id: str) -> List[UserAddress]:
    """Saved addresses, default one first."""
    rows = await client.select(
        ADDRESSES_TABLE, filters={"user_id": user_id}, order="is_default.desc.nullslast,created_at.asc"
    )
    return [UserAddress.model_validate(r) for r in rows]


async def get_user_address(client: SupabaseClient, user_id: str, address_id: str) -> Optional[UserAddress]:
    rows = await client.select(
        ADDRESSES_TABLE, filters={"id": address_id, "user_id": user_id}, limit=1
    )
    return UserAddress.model_validate(rows[0]) if rows else None
