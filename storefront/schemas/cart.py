# storefront/schemas/cart.py
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, computed_field, model_validator

from .product import Product


def line_total(quantity: int, unit_price: float) -> float:
    return round(quantity * unit_price, 2)


# --- Table: cart_items (read / insert / update) ---

class CartItemRow(BaseModel):
    id: str
    user_id: str
    product_id: int
    quantity: int
    unit_price: Optional[float] = None  # numeric column, may arrive as a string
    total_price: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CartItemInsert(BaseModel):
    user_id: str
    product_id: int
    quantity: int = Field(1, ge=1)
    unit_price: float = Field(..., ge=0)
    total_price: Optional[float] = None

    @model_validator(mode="after")
    def compute_total(self):
        self.total_price = line_total(self.quantity, self.unit_price)
        return self


class CartItemUpdate(BaseModel):
    # unit_price is rewritten with every update so the row always
    # satisfies total_price == quantity * unit_price
    quantity: int = Field(..., ge=1)
    unit_price: float = Field(..., ge=0)
    total_price: float

    @classmethod
    def for_quantity(cls, quantity: int, unit_price: float) -> "CartItemUpdate":
        return cls(quantity=quantity, unit_price=unit_price, total_price=line_total(quantity, unit_price))


# --- Cart view model ---

class CartItem(BaseModel):
    id: int  # product id
    name_ar: str = ""
    description_ar: Optional[str] = None
    price: float = Field(..., ge=0)
    image_url: Optional[str] = ""
    quantity: int = Field(..., ge=1)
    cart_item_id: Optional[str] = None  # cart_items.id, set only for signed-in users

    @computed_field
    @property
    def total_price(self) -> float:
        return line_total(self.quantity, self.price)

    @classmethod
    def from_product(
        cls, product: Product, quantity: int, cart_item_id: Optional[str] = None
    ) -> "CartItem":
        return cls(
            id=product.id,
            name_ar=product.localized_name("ar"),
            description_ar=product.localized_description("ar") or None,
            price=product.price,
            image_url=product.image_url or "",
            quantity=quantity,
            cart_item_id=cart_item_id,
        )


class GuestCartEntry(BaseModel):
    """One element of the JSON array kept in the guest cart store."""
    id: int
    name: str = ""
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    image: Optional[str] = ""
    quantity: int = Field(..., ge=1)

    def to_cart_item(self) -> CartItem:
        return CartItem(
            id=self.id,
            name_ar=self.name,
            description_ar=self.description,
            price=self.price,
            image_url=self.image,
            quantity=self.quantity,
        )

    @classmethod
    def from_cart_item(cls, item: CartItem) -> "GuestCartEntry":
        return cls(
            id=item.id,
            name=item.name_ar,
            description=item.description_ar,
            price=item.price,
            image=item.image_url,
            quantity=item.quantity,
        )


class CartStatusNotification(BaseModel):
    level: str  # "success" | "error" | "warning"
    message: str


class CartResponse(BaseModel):
    items: List[CartItem]
    count: int
    total: float
    loading: bool = False
    notifications: List[CartStatusNotification] = []


# --- Requests ---

class CartItemAdd(BaseModel):
    product_id: int
    quantity: int = Field(1, gt=0)


class CartQuantityUpdate(BaseModel):
    quantity: int  # <= 0 removes the item
