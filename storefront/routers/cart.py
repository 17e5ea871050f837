# storefront/routers/cart.py

from fastapi import APIRouter, Depends, HTTPException, status
from redis.asyncio import Redis

from storefront.clients.supabase import SupabaseClient, get_supabase_client
from storefront.core import locales
from storefront.core.redis import get_redis_client
from storefront.dependencies import get_cart_session
from storefront.schemas.cart import CartItemAdd, CartQuantityUpdate, CartResponse
from storefront.services import catalog as catalog_service
from storefront.services.cart import CartSession

router = APIRouter()

# Every endpoint answers with the cart as it stands after the operation.
# Remote failures show up in `notifications`, not as error statuses.


@router.get("/cart", response_model=CartResponse)
async def get_cart(cart: CartSession = Depends(get_cart_session)):
    return cart.snapshot()


@router.post("/cart/items", response_model=CartResponse)
async def add_cart_item(
    item_data: CartItemAdd,
    cart: CartSession = Depends(get_cart_session),
    client: SupabaseClient = Depends(get_supabase_client),
    redis: Redis = Depends(get_redis_client),
):
    product = await catalog_service.get_product_by_id(client, redis, item_data.product_id)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_PRODUCT_NOT_FOUND)

    await cart.add(product, item_data.quantity)
    return cart.snapshot()


@router.put("/cart/items/{product_id}", response_model=CartResponse)
async def set_cart_item_quantity(
    product_id: int,
    item_data: CartQuantityUpdate,
    cart: CartSession = Depends(get_cart_session),
):
    """A quantity of 0 or less removes the item."""
    await cart.set_quantity(product_id, item_data.quantity)
    return cart.snapshot()


@router.delete("/cart/items/{product_id}", response_model=CartResponse)
async def remove_cart_item(product_id: int, cart: CartSession = Depends(get_cart_session)):
    await cart.remove(product_id)
    return cart.snapshot()


@router.delete("/cart", response_model=CartResponse)
async def clear_cart(cart: CartSession = Depends(get_cart_session)):
    await cart.clear()
    return cart.snapshot()
