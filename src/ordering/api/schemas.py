"""Pydantic request/response schemas for the Ordering API.

These are external contracts, kept separate from the internal aggregates.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from ordering.cart.cart import ShoppingCart
from ordering.order.order import Order


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class CreateCartRequest(BaseModel):
    user_id: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "user_id": "U1",
                }
            ]
        }
    }


class AddToCartRequest(BaseModel):
    product_id: int
    quantity: int = 1


class UpdateCartQuantityRequest(BaseModel):
    quantity: int


class CheckoutRequest(BaseModel):
    shipping_address: str
    billing_address: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "shipping_address": "123 Main St",
                    "billing_address": None,
                }
            ]
        }
    }


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class UpdateStatusRequest(BaseModel):
    status: str


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CartItemSchema(BaseModel):
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class CartResponse(BaseModel):
    cart_id: int
    user_id: str | None
    status: str
    items: list[CartItemSchema]
    total: Decimal
    item_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_cart(cls, cart: ShoppingCart) -> "CartResponse":
        return cls(
            cart_id=cart.id,
            user_id=cart.user_id,
            status=cart.status,
            items=[
                CartItemSchema(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    subtotal=item.subtotal,
                )
                for item in cart.items
            ],
            total=cart.get_total(),
            item_count=cart.total_item_count(),
            created_at=cart.created_at,
            updated_at=cart.updated_at,
        )


class OrderItemSchema(BaseModel):
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class OrderResponse(BaseModel):
    order_id: int
    user_id: str | None
    status: str
    items: list[OrderItemSchema]
    shipping_address: str
    billing_address: str | None
    subtotal: Decimal
    discount: Decimal
    total_amount: Decimal
    total_items: int
    is_priority: bool
    order_date: datetime
    estimated_delivery: datetime
    delivery_date: datetime | None

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            order_id=order.id,
            user_id=order.user_id,
            status=order.status,
            items=[
                OrderItemSchema(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    subtotal=item.subtotal,
                )
                for item in order.items
            ],
            shipping_address=order.shipping_address,
            billing_address=order.billing_address,
            subtotal=order.pricing.subtotal,
            discount=order.pricing.discount,
            total_amount=order.total_amount,
            total_items=order.total_items,
            is_priority=order.is_priority,
            order_date=order.order_date,
            estimated_delivery=order.estimated_delivery,
            delivery_date=order.delivery_date,
        )


class CancelResponse(BaseModel):
    order_id: int
    cancelled: bool


class AmountResponse(BaseModel):
    amount: Decimal


class PurgeResponse(BaseModel):
    purged: int = Field(ge=0)


class StatusResponse(BaseModel):
    status: str = "ok"
