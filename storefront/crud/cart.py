# storefront/crud/cart.py
import logging
from typing import List, Optional

from pydantic import ValidationError

from storefront.clients.supabase import PostgrestError, SupabaseClient
from storefront.schemas.cart import CartItem, CartItemInsert, CartItemRow, CartItemUpdate

logger = logging.getLogger(__name__)

CART_TABLE = "cart_items"
CART_WITH_PRODUCT = "id,quantity,unit_price,products(id,name,name_ar,description_ar,price,image_url)"


async def get_cart_items(client: SupabaseClient, user_id: str) -> List[CartItem]:
    """
    Cart of a user joined with product data.
    Rows whose product no longer resolves are dropped.
    """
    rows = await client.select(CART_TABLE, columns=CART_WITH_PRODUCT, filters={"user_id": user_id})
    items = []
    for row in rows:
        product = row.get("products")
        if isinstance(product, list):
            product = product[0] if product else None
        if not product:
            continue
        try:
            items.append(CartItem(
                id=product["id"],
                cart_item_id=row["id"],
                name_ar=product.get("name_ar") or product.get("name") or "",
                description_ar=product.get("description_ar"),
                price=product.get("price"),
                image_url=product.get("image_url") or "",
                quantity=row["quantity"],
            ))
        except (KeyError, ValidationError):
            logger.warning(f"Skipping malformed cart row {row.get('id')} for user {user_id}", exc_info=True)
    return items


async def find_cart_row(client: SupabaseClient, user_id: str, product_id: int) -> Optional[CartItemRow]:
    """The (user, product) row, or None. Only "no row" is swallowed."""
    try:
        row = await client.select(
            CART_TABLE, filters={"user_id": user_id, "product_id": product_id}, single=True
        )
    except PostgrestError as e:
        if e.is_no_rows:
            return None
        raise
    return CartItemRow.model_validate(row)


async def insert_cart_row(client: SupabaseClient, data: CartItemInsert) -> CartItemRow:
    row = await client.insert(CART_TABLE, data.model_dump(mode="json"), single=True)
    return CartItemRow.model_validate(row)


async def update_cart_row(client: SupabaseClient, row_id: str, data: CartItemUpdate) -> None:
    await client.update(CART_TABLE, data.model_dump(mode="json"), filters={"id": row_id})


async def delete_cart_row(client: SupabaseClient, row_id: str) -> None:
    await client.delete(CART_TABLE, filters={"id": row_id})


async def delete_user_cart(client: SupabaseClient, user_id: str) -> None:
    """Removes every cart row of the user."""
    await client.delete(CART_TABLE, filters={"user_id": user_id})
