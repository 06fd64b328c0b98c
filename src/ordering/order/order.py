"""Order aggregate: an immutable snapshot of a checked-out cart with a status lifecycle.

Line items and pricing are fixed at creation and never re-synced with the
catalogue. Status only moves through ``_VALID_TRANSITIONS``, and every move
is appended to ``status_history``.

State Machine:
    PENDING → CONFIRMED → PROCESSING → SHIPPED → DELIVERED
    PENDING → PROCESSING (confirmation is optional)
    CANCELLED (from PENDING or CONFIRMED)
"""

from datetime import UTC, datetime
from enum import Enum

from protean import Index, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, List, String, ValueObject

from shared.domain import storefront
from shared.errors import InvalidStateError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(Enum):
    CASH_ON_DELIVERY = "cash_on_delivery"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"


class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

# States from which cancellation is allowed
_CANCELLABLE_STATES = {
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
}


def allowed_transitions(status) -> set[OrderStatus]:
    return _VALID_TRANSITIONS.get(OrderStatus(status), set())


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class OrderItem:
    """A catalogue line copied at checkout time."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=100)
    image = String(max_length=500, default="")
    price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    total = Float(required=True, min_value=0.0)


@storefront.value_object(part_of="Order")
class ShippingAddress:
    """Where the order ships, as entered at checkout."""

    full_name = String(required=True, min_length=2, max_length=100)
    street = String(required=True, min_length=5, max_length=200)
    city = String(required=True, min_length=2, max_length=50)
    state = String(required=True, min_length=2, max_length=50)
    zip_code = String(required=True, min_length=5, max_length=10)
    country = String(max_length=50, default="USA")
    phone = String(max_length=20)


@storefront.value_object(part_of="Order")
class PaymentInfo:
    """Payment is recorded as a label only; no gateway is involved."""

    method = String(max_length=20, choices=PaymentMethod, default=PaymentMethod.CASH_ON_DELIVERY.value)
    status = String(max_length=20, choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    transaction_id = String(max_length=100)
    paid_at = DateTime()


@storefront.value_object(part_of="Order")
class OrderPricing:
    subtotal = Float(required=True, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    shipping = Float(default=0.0, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0)
    total = Float(required=True, min_value=0.0)

    @invariant.post
    def total_must_balance(self):
        expected = round(self.subtotal + self.tax + self.shipping - self.discount, 2)
        if abs(self.total - expected) > 0.005:
            raise ValidationError(
                {"total": [f"Total {self.total} does not equal subtotal + tax + shipping - discount ({expected})"]}
            )


@storefront.value_object(part_of="Order")
class StatusEntry:
    status = String(required=True, max_length=20, choices=OrderStatus)
    timestamp = DateTime(required=True)
    note = String(max_length=500)
    updated_by = Identifier()


@storefront.value_object(part_of="Order")
class Tracking:
    carrier = String(max_length=100)
    tracking_number = String(max_length=100)
    tracking_url = String(max_length=500)


@storefront.value_object(part_of="Order")
class Cancellation:
    reason = String(required=True, max_length=500)
    at = DateTime(required=True)
    by = Identifier()


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------
@storefront.aggregate(
    schema_name="orders",
    limit=-1,
    indexes=[
        Index("order_number", unique=True),
        Index("user_id", "created_at", desc=["created_at"]),
        Index("status"),
    ],
)
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    user_id = Identifier(required=True)
    items = List(content_type=ValueObject(OrderItem))
    shipping_address = ValueObject(ShippingAddress, required=True)
    payment_info = ValueObject(PaymentInfo)
    pricing = ValueObject(OrderPricing, required=True)
    status = String(max_length=20, choices=OrderStatus, default=OrderStatus.PENDING.value)
    status_history = List(content_type=ValueObject(StatusEntry))
    tracking = ValueObject(Tracking)
    estimated_delivery = DateTime()
    actual_delivery = DateTime()
    notes = String(max_length=500)
    cancellation = ValueObject(Cancellation)
    created_by = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def order_must_have_items(self):
        if not self.items:
            raise ValidationError({"items": ["An order must contain at least one item"]})

    @invariant.post
    def subtotal_must_match_items(self):
        if self.pricing is None:
            return
        expected = round(sum(item.total for item in self.items), 2)
        if abs(self.pricing.subtotal - expected) > 0.005:
            raise ValidationError(
                {"pricing": [f"Subtotal {self.pricing.subtotal} does not equal the sum of line totals ({expected})"]}
            )

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        user_id,
        order_number,
        items,
        shipping_address,
        pricing,
        payment_method=PaymentMethod.CASH_ON_DELIVERY.value,
        notes=None,
        created_by=None,
    ):
        now = datetime.now(UTC)
        actor = str(created_by or user_id)
        return cls(
            order_number=order_number,
            user_id=str(user_id),
            items=items,
            shipping_address=shipping_address,
            payment_info=PaymentInfo(method=PaymentMethod(payment_method).value),
            pricing=pricing,
            status=OrderStatus.PENDING.value,
            status_history=[
                StatusEntry(status=OrderStatus.PENDING.value, timestamp=now, note="Order placed", updated_by=actor)
            ],
            notes=notes,
            created_by=actor,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------
    @property
    def can_be_cancelled(self) -> bool:
        return OrderStatus(self.status) in _CANCELLABLE_STATES

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def summary(self) -> dict:
        return {
            "order_number": self.order_number,
            "status": self.status,
            "total": self.pricing.total,
            "item_count": self.item_count,
            "created_at": self.created_at,
        }

    # -------------------------------------------------------------------
    # State transition helper
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidStateError(
                f"Cannot transition order from {current.value} to {target_status.value}",
                current_status=current.value,
            )

    def _record(self, status, note=None, actor=None):
        now = datetime.now(UTC)
        self.status = status.value
        self.status_history = [
            *self.status_history,
            StatusEntry(status=status.value, timestamp=now, note=note, updated_by=str(actor) if actor else None),
        ]
        self.updated_at = now
        return now

    # -------------------------------------------------------------------
    # Order lifecycle transitions
    # -------------------------------------------------------------------
    def update_status(self, new_status, note=None, actor=None, tracking=None):
        """Move the order along the lifecycle.

        ``cancelled`` is routed through ``cancel`` so cancellation metadata is
        always captured, with ``note`` as the reason.
        """
        new_status = OrderStatus(new_status)
        if new_status == OrderStatus.CANCELLED:
            self.cancel(note or "Cancelled by administrator", actor=actor)
            return

        self._assert_can_transition(new_status)

        if tracking is not None:
            self.tracking = tracking
        now = self._record(new_status, note=note, actor=actor)
        if new_status == OrderStatus.DELIVERED:
            self.actual_delivery = now

    def cancel(self, reason, actor=None):
        if not self.can_be_cancelled:
            raise InvalidStateError("Order cannot be cancelled at this stage", current_status=self.status)

        now = self._record(OrderStatus.CANCELLED, note=f"Order cancelled: {reason}", actor=actor)
        self.cancellation = Cancellation(reason=reason, at=now, by=str(actor) if actor else None)
