# storefront/services/cart.py

import logging
from typing import List, Optional

from redis.exceptions import RedisError

from storefront.clients.supabase import SupabaseClient, SupabaseError
from storefront.core import locales
from storefront.core.locks import KeyedLocks, cart_locks
from storefront.crud import cart as crud_cart
from storefront.schemas.cart import (
    CartItem, CartItemInsert, CartItemUpdate, CartResponse, CartStatusNotification
)
from storefront.schemas.product import Product
from storefront.schemas.user import AuthUser
from storefront.services.guest_cart import GuestCartStore

logger = logging.getLogger(__name__)


class CartSession:
    """
    One cart for one viewer, guest or signed-in.

    The viewer is passed in explicitly: `user` for a signed-in customer,
    otherwise `guest_id`. Guest carts live in the GuestCartStore; signed-in
    carts live in the `cart_items` table and are mirrored into `items` by
    `load()`.

    For signed-in users every mutation writes remotely first and only then
    touches `items`; a failed write leaves `items` unchanged and adds an
    error notification. Nothing here raises on a remote failure.
    """

    def __init__(
        self,
        client: SupabaseClient,
        guest_store: GuestCartStore,
        user: Optional[AuthUser] = None,
        guest_id: Optional[str] = None,
        locks: KeyedLocks = cart_locks,
    ):
        if user is None and not guest_id:
            raise ValueError("CartSession needs either a user or a guest id")
        self.client = client
        self.guest_store = guest_store
        self.user = user
        self.guest_id = guest_id
        self.locks = locks

        self.items: List[CartItem] = []
        self.loading = False
        self.notifications: List[CartStatusNotification] = []

    # --- Derived values (recomputed on every access) ---

    @property
    def count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total(self) -> float:
        return round(sum(item.price * item.quantity for item in self.items), 2)

    @property
    def is_guest(self) -> bool:
        return self.user is None

    @property
    def owner_key(self) -> str:
        return f"guest:{self.guest_id}" if self.is_guest else f"user:{self.user.id}"

    def snapshot(self) -> CartResponse:
        return CartResponse(
            items=list(self.items),
            count=self.count,
            total=self.total,
            loading=self.loading,
            notifications=list(self.notifications),
        )

    # --- Helpers ---

    def _find(self, product_id: int) -> Optional[CartItem]:
        return next((item for item in self.items if item.id == product_id), None)

    def _put(self, new_item: CartItem) -> None:
        """Replaces the line of the same product in place, or appends it."""
        for index, item in enumerate(self.items):
            if item.id == new_item.id:
                self.items[index] = new_item
                return
        self.items.append(new_item)

    def _drop(self, product_id: int) -> None:
        self.items = [item for item in self.items if item.id != product_id]

    def _notify(self, level: str, message: str) -> None:
        self.notifications.append(CartStatusNotification(level=level, message=message))

    async def _persist_guest(self) -> None:
        await self.guest_store.write(self.guest_id, self.items)

    # --- Loading ---

    async def load(self) -> "CartSession":
        """
        Replaces `items` with the viewer's stored cart.
        A signed-in load never merges a previous guest cart: the remote cart wins.
        """
        self.loading = True
        try:
            if self.is_guest:
                self.items = await self.guest_store.read(self.guest_id)
            else:
                self.items = await crud_cart.get_cart_items(self.client, self.user.id)
        except (SupabaseError, RedisError):
            logger.error(f"Failed to load cart for {self.owner_key}", exc_info=True)
            self._notify("error", locales.ERROR_CART_LOAD_FAILED)
        finally:
            self.loading = False
        return self

    # --- Mutations ---

    async def add(self, product: Product, quantity: int = 1) -> None:
        quantity = max(1, int(quantity))
        added_message = locales.SUCCESS_ADDED_TO_CART.format(name=product.localized_name("ar"))

        if self.is_guest:
            existing = self._find(product.id)
            if existing:
                self._put(existing.model_copy(update={"quantity": existing.quantity + quantity}))
            else:
                self.items.append(CartItem.from_product(product, quantity))
            await self._persist_guest()
            self._notify("success", added_message)
            return

        self.loading = True
        try:
            async with self.locks.hold((self.owner_key, product.id)):
                # Fresh lookup under the lock: exactly one row per (user, product)
                row = await crud_cart.find_cart_row(self.client, self.user.id, product.id)
                if row:
                    new_quantity = row.quantity + quantity
                    await crud_cart.update_cart_row(
                        self.client, row.id, CartItemUpdate.for_quantity(new_quantity, product.price)
                    )
                    self._put(CartItem.from_product(product, new_quantity, cart_item_id=row.id))
                else:
                    created = await crud_cart.insert_cart_row(self.client, CartItemInsert(
                        user_id=self.user.id,
                        product_id=product.id,
                        quantity=quantity,
                        unit_price=product.price,
                    ))
                    self._put(CartItem.from_product(product, quantity, cart_item_id=created.id))
            self._notify("success", added_message)
        except SupabaseError:
            logger.error(f"Error adding product {product.id} to cart of {self.owner_key}", exc_info=True)
            self._notify("error", locales.ERROR_ADD_TO_CART_FAILED)
        finally:
            self.loading = False

    async def remove(self, product_id: int) -> None:
        item = self._find(product_id)
        if item is None:
            return

        if self.is_guest:
            self._drop(product_id)
            await self._persist_guest()
            self._notify("success", locales.SUCCESS_REMOVED_FROM_CART)
            return

        self.loading = True
        try:
            async with self.locks.hold((self.owner_key, product_id)):
                # Without a remote id the line only ever existed locally
                if item.cart_item_id:
                    await crud_cart.delete_cart_row(self.client, item.cart_item_id)
            self._drop(product_id)
            self._notify("success", locales.SUCCESS_REMOVED_FROM_CART)
        except SupabaseError:
            logger.error(f"Error removing product {product_id} from cart of {self.owner_key}", exc_info=True)
            self._notify("error", locales.ERROR_REMOVE_FROM_CART_FAILED)
        finally:
            self.loading = False

    async def set_quantity(self, product_id: int, quantity: int) -> None:
        if quantity <= 0:
            await self.remove(product_id)
            return

        item = self._find(product_id)
        if item is None:
            return

        if self.is_guest:
            self._put(item.model_copy(update={"quantity": quantity}))
            await self._persist_guest()
            return

        self.loading = True
        try:
            async with self.locks.hold((self.owner_key, product_id)):
                if item.cart_item_id:
                    await crud_cart.update_cart_row(
                        self.client, item.cart_item_id, CartItemUpdate.for_quantity(quantity, item.price)
                    )
            self._put(item.model_copy(update={"quantity": quantity}))
        except SupabaseError:
            logger.error(f"Error updating quantity of product {product_id} for {self.owner_key}", exc_info=True)
            self._notify("error", locales.ERROR_UPDATE_QUANTITY_FAILED)
        finally:
            self.loading = False

    async def clear(self) -> None:
        if self.is_guest:
            self.items = []
            await self._persist_guest()
            self._notify("success", locales.SUCCESS_CART_CLEARED)
            return

        self.loading = True
        try:
            await crud_cart.delete_user_cart(self.client, self.user.id)
            self.items = []
            self._notify("success", locales.SUCCESS_CART_CLEARED)
        except SupabaseError:
            logger.error(f"Error clearing cart of {self.owner_key}", exc_info=True)
            self._notify("error", locales.ERROR_CLEAR_CART_FAILED)
        finally:
            self.loading = False
