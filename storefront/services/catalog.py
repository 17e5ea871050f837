# storefront/services/catalog.py

import logging
from typing import Optional

from fastapi import HTTPException, status
from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from storefront.clients.supabase import SupabaseClient, SupabaseError
from storefront.core import locales
from storefront.core.config import settings
from storefront.crud import product as crud_product
from storefront.schemas.product import Product, ProductPage

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = settings.CATALOG_CACHE_TTL_SECONDS


async def _cache_get(redis: Redis, key: str) -> Optional[str]:
    try:
        return await redis.get(key)
    except RedisError:
        logger.warning(f"Cache read failed for key {key}", exc_info=True)
        return None


async def _cache_set(redis: Redis, key: str, value: str) -> None:
    try:
        await redis.set(key, value, ex=CACHE_TTL_SECONDS)
    except RedisError:
        logger.warning(f"Cache write failed for key {key}", exc_info=True)


async def get_products(
    client: SupabaseClient,
    redis: Redis,
    page: int = 1,
    size: int = 20,
    category: Optional[str] = None,
    featured: Optional[bool] = None,
) -> ProductPage:
    """
    One page of available products, newest first.
    Fetches one extra row to know whether another page exists.
    """
    cache_key = f"products:page:{page}:size:{size}:category:{category or 'all'}:featured:{featured}"

    cached = await _cache_get(redis, cache_key)
    if cached:
        try:
            return ProductPage.model_validate_json(cached)
        except ValidationError:
            logger.warning(f"Invalid cached product page under {cache_key}. Fetching fresh data.")

    try:
        products = await crud_product.get_products(
            client, category=category, featured=featured, limit=size + 1, offset=(page - 1) * size
        )
    except SupabaseError:
        logger.error(f"Failed to fetch products (page {page}, category {category})", exc_info=True)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=locales.ERROR_PRODUCTS_LOAD_FAILED)

    product_page = ProductPage(items=products[:size], page=page, size=size, has_more=len(products) > size)
    await _cache_set(redis, cache_key, product_page.model_dump_json())
    return product_page


async def get_product_by_id(client: SupabaseClient, redis: Redis, product_id: int) -> Optional[Product]:
    """Available product by id, or None when it does not exist or is hidden."""
    cache_key = f"product:{product_id}"

    cached = await _cache_get(redis, cache_key)
    if cached:
        try:
            return Product.model_validate_json(cached)
        except ValidationError:
            logger.warning(f"Invalid cached product under {cache_key}. Fetching fresh data.")

    try:
        product = await crud_product.get_available_product(client, product_id)
    except SupabaseError:
        logger.error(f"Failed to fetch product ID {product_id}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=locales.ERROR_PRODUCT_LOAD_FAILED)

    if product:
        await _cache_set(redis, cache_key, product.model_dump_json())
    return product
