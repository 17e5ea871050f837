# storefront/crud/order.py
from typing import List, Optional

from storefront.clients.supabase import SupabaseClient
from storefront.schemas.order import Order, OrderInsert, OrderItem, OrderItemInsert

ORDERS_TABLE = "orders"
ORDER_ITEMS_TABLE = "order_items"


async def insert_order(client: SupabaseClient, data: OrderInsert) -> Order:
    row = await client.insert(ORDERS_TABLE, data.model_dump(mode="json"), single=True)
    return Order.model_validate(row)


async def insert_order_items(client: SupabaseClient, items: List[OrderItemInsert]) -> List[OrderItem]:
    """Bulk insert: PostgREST writes the whole batch in one statement."""
    rows = await client.insert(ORDER_ITEMS_TABLE, [i.model_dump(mode="json") for i in items])
    return [OrderItem.model_validate(r) for r in rows]


async def delete_order(client: SupabaseClient, order_id: str) -> None:
    await client.delete(ORDERS_TABLE, filters={"id": order_id})


async def get_order_by_number(client: SupabaseClient, user_id: str, order_number: str) -> Optional[Order]:
    rows = await client.select(
        ORDERS_TABLE, filters={"user_id": user_id, "order_number": order_number}, limit=1
    )
    return Order.model_validate(rows[0]) if rows else None


async def get_order_items(client: SupabaseClient, order_id: str) -> List[OrderItem]:
    rows = await client.select(ORDER_ITEMS_TABLE, filters={"order_id": order_id})
    return [OrderItem.model_validate(r) for r in rows]


async def get_user_orders(client: SupabaseClient, user_id: str, limit: int = 20, offset: int = 0) -> List[Order]:
    rows = await client.select(
        ORDERS_TABLE, filters={"user_id": user_id}, order="created_at.desc", limit=limit, offset=offset
    )
    return [Order.model_validate(r) for r in rows]
