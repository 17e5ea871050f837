# storefront/schemas/order.py
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional
from pydantic import BaseModel, Field, computed_field, model_validator

from .cart import line_total


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


# --- Table: orders ---

class Order(BaseModel):
    id: str
    user_id: str
    order_number: Optional[str] = None
    status: OrderStatus
    payment_status: PaymentStatus
    total_amount: float
    shipping_address: Any = None  # json column
    notes: Optional[str] = None
    tracking_number: Optional[str] = None
    delivery_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrderInsert(BaseModel):
    user_id: str
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    total_amount: float = Field(..., ge=0)
    shipping_address: str = Field(..., min_length=1)
    notes: str = ""
    order_number: Optional[str] = None


# --- Table: order_items ---

class OrderItem(BaseModel):
    id: str
    order_id: str
    product_id: int
    quantity: int
    unit_price: float
    total_price: float
    created_at: Optional[datetime] = None


class OrderItemInsert(BaseModel):
    order_id: str
    product_id: int
    quantity: int = Field(..., ge=1)
    unit_price: float = Field(..., ge=0)
    total_price: Optional[float] = None

    @model_validator(mode="after")
    def compute_total(self):
        self.total_price = line_total(self.quantity, self.unit_price)
        return self


class OrderLine(BaseModel):
    """A product/quantity pair about to become an order item."""
    product_id: int
    quantity: int = Field(..., ge=1)
    unit_price: float = Field(..., ge=0)

    @computed_field
    @property
    def total_price(self) -> float:
        return line_total(self.quantity, self.unit_price)


# --- Requests / responses ---

class DirectOrderCreate(BaseModel):
    product_id: int
    quantity: int = 1  # clamped to >= 1 by the service
    shipping_address: str = ""
    address_id: Optional[str] = None  # saved address, used when shipping_address is blank
    notes: str = ""
    idempotency_key: Optional[str] = Field(None, max_length=64)


class CartOrderCreate(BaseModel):
    shipping_address: str = ""
    address_id: Optional[str] = None
    notes: str = ""
    idempotency_key: Optional[str] = Field(None, max_length=64)


class OrderResponse(BaseModel):
    order: Order
    items: List[OrderItem]
    message: Optional[str] = None
    replayed: bool = False  # true when an idempotency key matched an earlier order
