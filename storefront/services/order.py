# storefront/services/order.py

import logging
import uuid
from typing import List, Optional

from fastapi import HTTPException, status

from storefront.clients.supabase import SupabaseClient, SupabaseError
from storefront.core import locales
from storefront.crud import order as crud_order
from storefront.crud import product as crud_product
from storefront.crud import profile as crud_profile
from storefront.schemas.order import (
    CartOrderCreate, DirectOrderCreate, Order, OrderInsert, OrderItemInsert, OrderLine, OrderResponse
)
from storefront.schemas.user import AuthUser
from storefront.services.cart import CartSession

logger = logging.getLogger(__name__)


def _new_order_number() -> str:
    return uuid.uuid4().hex[:12].upper()


def _require_user(user: Optional[AuthUser]) -> AuthUser:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=locales.ERROR_LOGIN_REQUIRED_FOR_ORDER,
        )
    return user


async def _resolve_shipping_address(
    client: SupabaseClient, user: AuthUser, shipping_address: str, address_id: Optional[str]
) -> str:
    """
    Free-text address first; a saved address is looked up only when the text
    is blank. A blank result is rejected before anything is written.
    """
    address = (shipping_address or "").strip()
    if not address and address_id:
        try:
            saved = await crud_profile.get_user_address(client, user.id, address_id)
        except SupabaseError:
            logger.error(f"Failed to load address {address_id} for user {user.id}", exc_info=True)
            saved = None
        address = saved.one_line() if saved else ""
    if not address:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=locales.ERROR_SHIPPING_ADDRESS_REQUIRED,
        )
    return address


async def _discard_order(client: SupabaseClient, order: Order) -> None:
    try:
        await crud_order.delete_order(client, order.id)
        logger.info(f"Order {order.id} rolled back after its items failed to save.")
    except SupabaseError:
        logger.critical(f"Order {order.id} (number {order.order_number}) is orphaned: rollback failed.", exc_info=True)


async def _find_replay(
    client: SupabaseClient, user: AuthUser, idempotency_key: Optional[str]
) -> Optional[OrderResponse]:
    if not idempotency_key:
        return None
    existing = await crud_order.get_order_by_number(client, user.id, idempotency_key)
    if not existing:
        return None
    logger.info(f"Order {existing.id} already placed with key {idempotency_key}, returning it.")
    items = await crud_order.get_order_items(client, existing.id)
    return OrderResponse(order=existing, items=items, replayed=True)


async def place_order(
    client: SupabaseClient,
    user: AuthUser,
    lines: List[OrderLine],
    shipping_address: str,
    notes: str = "",
    idempotency_key: Optional[str] = None,
) -> OrderResponse:
    """
    Writes an order and its items as one operation.

    - With an idempotency key, the key is the order number and a repeated
      call returns the order already stored under it,
      flagged with `replayed=True`.
    - If the items cannot be written the order row is deleted again, so a
      failure never leaves an order without items behind.
    Remote failures propagate as SupabaseError.
    """
    replay = await _find_replay(client, user, idempotency_key)
    if replay:
        return replay

    order = await crud_order.insert_order(client, OrderInsert(
        user_id=user.id,
        total_amount=round(sum(line.total_price for line in lines), 2),
        shipping_address=shipping_address,
        notes=notes,
        order_number=idempotency_key or _new_order_number(),
    ))

    try:
        items = await crud_order.insert_order_items(client, [
            OrderItemInsert(
                order_id=order.id,
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
            )
            for line in lines
        ])
    except SupabaseError:
        logger.error(f"Failed to save items of order {order.id}. Rolling back.", exc_info=True)
        await _discard_order(client, order)
        raise

    logger.info(f"Order {order.id} placed by user {user.id} with {len(items)} item(s).")
    return OrderResponse(order=order, items=items)


async def place_direct_order(
    client: SupabaseClient,
    user: Optional[AuthUser],
    order_data: DirectOrderCreate,
) -> OrderResponse:
    """Direct "buy now" order of one product, bypassing the cart."""
    user = _require_user(user)
    shipping_address = await _resolve_shipping_address(
        client, user, order_data.shipping_address, order_data.address_id
    )
    quantity = max(1, order_data.quantity)

    try:
        product = await crud_product.get_available_product(client, order_data.product_id)
    except SupabaseError:
        logger.error(f"Failed to fetch product ID {order_data.product_id} for a direct order", exc_info=True)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=locales.ERROR_ORDER_FAILED)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_PRODUCT_NOT_FOUND)

    line = OrderLine(product_id=product.id, quantity=quantity, unit_price=product.price)
    try:
        result = await place_order(
            client, user, [line], shipping_address,
            notes=order_data.notes, idempotency_key=order_data.idempotency_key,
        )
    except SupabaseError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=locales.ERROR_ORDER_FAILED)

    result.message = locales.SUCCESS_ORDER_PLACED.format(name=product.localized_name("ar"))
    return result


async def place_cart_order(
    client: SupabaseClient,
    cart: CartSession,
    order_data: CartOrderCreate,
) -> OrderResponse:
    """
    Checks out a signed-in user's loaded cart and empties it on success.
    A repeated idempotency key returns the earlier order and leaves the cart alone.
    """
    user = _require_user(cart.user)
    shipping_address = await _resolve_shipping_address(
        client, user, order_data.shipping_address, order_data.address_id
    )
    try:
        # a retry after a successful checkout finds the cart already emptied
        replay = await _find_replay(client, user, order_data.idempotency_key)
    except SupabaseError:
        logger.error(f"Failed to look up order key {order_data.idempotency_key}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=locales.ERROR_ORDER_FAILED)
    if replay:
        return replay

    if not cart.items:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_CART_EMPTY)

    lines = [
        OrderLine(product_id=item.id, quantity=item.quantity, unit_price=item.price)
        for item in cart.items
    ]
    try:
        result = await place_order(
            client, user, lines, shipping_address,
            notes=order_data.notes, idempotency_key=order_data.idempotency_key,
        )
    except SupabaseError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=locales.ERROR_ORDER_FAILED)

    if not result.replayed:
        await cart.clear()
    return result


async def get_user_orders(client: SupabaseClient, user: AuthUser, page: int = 1, size: int = 20) -> List[Order]:
    try:
        return await crud_order.get_user_orders(client, user.id, limit=size, offset=(page - 1) * size)
    except SupabaseError:
        logger.error(f"Failed to fetch orders of user {user.id}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=locales.ERROR_ORDERS_LOAD_FAILED)
