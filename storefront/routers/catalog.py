# storefront/routers/catalog.py

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from redis.asyncio import Redis

from storefront.clients.supabase import SupabaseClient, get_supabase_client
from storefront.core import locales
from storefront.core.redis import get_redis_client
from storefront.schemas.product import Product, ProductPage
from storefront.services import catalog as catalog_service

router = APIRouter()


@router.get("/products", response_model=ProductPage)
async def list_products(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    category: Optional[str] = None,
    featured: Optional[bool] = None,
    client: SupabaseClient = Depends(get_supabase_client),
    redis: Redis = Depends(get_redis_client),
):
    """Available products, newest first."""
    return await catalog_service.get_products(
        client, redis, page=page, size=size, category=category, featured=featured
    )


@router.get("/products/{product_id}", response_model=Product)
async def get_product(
    product_id: int,
    client: SupabaseClient = Depends(get_supabase_client),
    redis: Redis = Depends(get_redis_client),
):
    product = await catalog_service.get_product_by_id(client, redis, product_id)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_PRODUCT_NOT_FOUND)
    return product
