"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer): separate from the
Cart and Order aggregates and the internal commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from ordering.cart.cart import MAX_QUANTITY, Cart
from ordering.order.order import Order, OrderStatus, PaymentMethod
from shared.pagination import PaginationSchema


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    full_name: str = Field(min_length=2, max_length=100)
    street: str = Field(min_length=5, max_length=200)
    city: str = Field(min_length=2, max_length=50)
    state: str = Field(min_length=2, max_length=50)
    zip_code: str = Field(min_length=5, max_length=10)
    country: str = Field(default="USA", min_length=2, max_length=50)
    phone: str | None = None


class TrackingSchema(BaseModel):
    carrier: str | None = None
    tracking_number: str | None = None
    tracking_url: str | None = None


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1, le=MAX_QUANTITY)


class UpdateCartQuantityRequest(BaseModel):
    # 0 removes the line item
    quantity: int = Field(ge=0, le=MAX_QUANTITY)


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    shipping_address: AddressSchema
    payment_method: PaymentMethod = PaymentMethod.CASH_ON_DELIVERY
    notes: str | None = Field(default=None, max_length=500)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "shipping_address": {
                        "full_name": "Jane Doe",
                        "street": "123 Main St",
                        "city": "Springfield",
                        "state": "IL",
                        "zip_code": "62701",
                        "country": "USA",
                    },
                    "payment_method": "cash_on_delivery",
                }
            ]
        }
    }


class CancelOrderRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus
    note: str | None = Field(default=None, max_length=500)
    tracking: TrackingSchema | None = None


# ---------------------------------------------------------------------------
# Cart Response Schemas
# ---------------------------------------------------------------------------
class CartItemSchema(BaseModel):
    product_id: str
    quantity: int
    price: float
    line_total: float
    added_at: datetime | None = None


class CartSchema(BaseModel):
    id: str
    user_id: str
    items: list[CartItemSchema]
    total_items: int
    total_amount: float
    last_modified: datetime | None = None

    @classmethod
    def from_cart(cls, cart: Cart) -> "CartSchema":
        return cls(
            id=str(cart.id),
            user_id=str(cart.user_id),
            items=[
                CartItemSchema(
                    product_id=str(item.product_id),
                    quantity=item.quantity,
                    price=item.price,
                    line_total=item.line_total,
                    added_at=item.added_at,
                )
                for item in cart.items
            ],
            total_items=cart.total_items,
            total_amount=cart.total_amount,
            last_modified=cart.last_modified,
        )


class CartIssueSchema(BaseModel):
    product_id: str
    issue: str
    action: str
    max_quantity: int | None = None
    old_price: float | None = None
    new_price: float | None = None


class CartResponse(BaseModel):
    success: bool = True
    message: str | None = None
    data: CartSchema
    issues: list[CartIssueSchema] = Field(default_factory=list)


class CartValidationResponse(BaseModel):
    success: bool = True
    is_valid: bool
    issues: list[CartIssueSchema]
    data: CartSchema


# ---------------------------------------------------------------------------
# Order Response Schemas
# ---------------------------------------------------------------------------
class OrderItemSchema(BaseModel):
    product_id: str
    name: str
    image: str | None = None
    price: float
    quantity: int
    total: float


class PaymentInfoSchema(BaseModel):
    method: str
    status: str
    transaction_id: str | None = None
    paid_at: datetime | None = None


class PricingSchema(BaseModel):
    subtotal: float
    tax: float
    shipping: float
    discount: float
    total: float


class StatusEntrySchema(BaseModel):
    status: str
    timestamp: datetime
    note: str | None = None
    updated_by: str | None = None


class CancellationSchema(BaseModel):
    reason: str
    at: datetime
    by: str | None = None


class OrderSchema(BaseModel):
    id: str
    order_number: str
    user_id: str
    items: list[OrderItemSchema]
    shipping_address: AddressSchema
    payment_info: PaymentInfoSchema
    pricing: PricingSchema
    status: str
    status_history: list[StatusEntrySchema]
    tracking: TrackingSchema | None = None
    estimated_delivery: datetime | None = None
    actual_delivery: datetime | None = None
    notes: str | None = None
    cancellation: CancellationSchema | None = None
    can_be_cancelled: bool
    item_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_order(cls, order: Order) -> "OrderSchema":
        return cls(
            id=str(order.id),
            order_number=order.order_number,
            user_id=str(order.user_id),
            items=[OrderItemSchema(**item.to_dict()) for item in order.items],
            shipping_address=AddressSchema(**order.shipping_address.to_dict()),
            payment_info=PaymentInfoSchema(**order.payment_info.to_dict()),
            pricing=PricingSchema(**order.pricing.to_dict()),
            status=order.status,
            status_history=[StatusEntrySchema(**entry.to_dict()) for entry in order.status_history],
            tracking=TrackingSchema(**order.tracking.to_dict()) if order.tracking else None,
            estimated_delivery=order.estimated_delivery,
            actual_delivery=order.actual_delivery,
            notes=order.notes,
            cancellation=CancellationSchema(**order.cancellation.to_dict()) if order.cancellation else None,
            can_be_cancelled=order.can_be_cancelled,
            item_count=order.item_count,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderResponse(BaseModel):
    success: bool = True
    message: str | None = None
    data: OrderSchema


class OrderListResponse(BaseModel):
    success: bool = True
    data: list[OrderSchema]
    pagination: PaginationSchema
