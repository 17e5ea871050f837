# storefront/core/redis.py
import redis.asyncio as redis
from storefront.core.config import settings

# Guest carts and the catalog cache share this connection pool.
# Values are JSON text, so responses are decoded to str.
redis_client = redis.Redis.from_url(
    settings.REDIS_URL,
    decode_responses=True,
    socket_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
    socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
    health_check_interval=30,
)

async def get_redis_client() -> redis.Redis:
    return redis_client
