# storefront/crud/product.py
import logging
from typing import List, Optional

from pydantic import ValidationError

from storefront.clients.supabase import PostgrestError, SupabaseClient
from storefront.schemas.product import Product

logger = logging.getLogger(__name__)

PRODUCTS_TABLE = "products"


async def get_products(
    client: SupabaseClient,
    category: Optional[str] = None,
    featured: Optional[bool] = None,
    limit: int = 20,
    offset: int = 0,
) -> List[Product]:
    filters = {"available": True}
    if category:
        filters["category"] = category
    if featured is not None:
        filters["featured"] = featured

    rows = await client.select(
        PRODUCTS_TABLE, filters=filters, order="created_at.desc", limit=limit, offset=offset
    )
    products = []
    for row in rows:
        try:
            products.append(Product.model_validate(row))
        except ValidationError:
            logger.warning(f"Skipping product ID {row.get('id')}: invalid row", exc_info=True)
    return products


async def get_available_product(client: SupabaseClient, product_id: int) -> Optional[Product]:
    try:
        row = await client.select(
            PRODUCTS_TABLE, filters={"id": product_id, "available": True}, single=True
        )
    except PostgrestError as e:
        if e.is_no_rows:
            return None
        raise
    return Product.model_validate(row)
