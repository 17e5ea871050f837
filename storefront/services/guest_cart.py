# storefront/services/guest_cart.py

import json
import logging
from typing import List

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from storefront.core.config import settings
from storefront.schemas.cart import CartItem, GuestCartEntry

logger = logging.getLogger(__name__)


class GuestCartStore:
    """
    Cart of an anonymous visitor: a JSON array of GuestCartEntry kept
    under one Redis key per guest id. There is no remote identity here.
    """
    def __init__(
        self,
        redis: Redis,
        key_prefix: str = settings.CART_STORAGE_KEY,
        ttl_seconds: int = settings.GUEST_CART_TTL_SECONDS,
    ):
        self.redis = redis
        self.key_prefix = key_prefix
        self.ttl_seconds = ttl_seconds

    def key(self, guest_id: str) -> str:
        return f"{self.key_prefix}:{guest_id}"

    async def read(self, guest_id: str) -> List[CartItem]:
        """Stored items; an absent or unreadable entry is an empty cart."""
        raw = await self.redis.get(self.key(guest_id))
        if not raw:
            return []
        try:
            entries = [GuestCartEntry.model_validate(e) for e in json.loads(raw)]
        except (ValueError, TypeError, ValidationError):
            logger.warning(f"Discarding unreadable guest cart for guest {guest_id}", exc_info=True)
            return []
        return [e.to_cart_item() for e in entries]

    async def write(self, guest_id: str, items: List[CartItem]) -> None:
        # Fire-and-forget: a failed write is logged, the in-memory cart stays as is
        payload = json.dumps(
            [GuestCartEntry.from_cart_item(i).model_dump(mode="json") for i in items],
            ensure_ascii=False,
        )
        try:
            await self.redis.set(self.key(guest_id), payload, ex=self.ttl_seconds)
        except RedisError:
            logger.error(f"Failed to persist guest cart for guest {guest_id}", exc_info=True)
