# storefront/routers/order.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from storefront.clients.supabase import SupabaseClient, get_supabase_client
from storefront.dependencies import get_cart_session, get_current_user, get_optional_current_user
from storefront.schemas.order import CartOrderCreate, DirectOrderCreate, Order, OrderResponse
from storefront.schemas.user import AuthUser
from storefront.services import order as order_service
from storefront.services.cart import CartSession

router = APIRouter()


@router.post("/orders/direct", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_direct_order(
    order_data: DirectOrderCreate,
    user: Optional[AuthUser] = Depends(get_optional_current_user),
    client: SupabaseClient = Depends(get_supabase_client),
):
    """Order a single product without going through the cart."""
    return await order_service.place_direct_order(client, user, order_data)


@router.post("/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order_from_cart(
    order_data: CartOrderCreate,
    cart: CartSession = Depends(get_cart_session),
    client: SupabaseClient = Depends(get_supabase_client),
):
    return await order_service.place_cart_order(client, cart, order_data)


@router.get("/orders", response_model=List[Order])
async def get_orders_history(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(get_current_user),
    client: SupabaseClient = Depends(get_supabase_client),
):
    return await order_service.get_user_orders(client, current_user, page, size)
