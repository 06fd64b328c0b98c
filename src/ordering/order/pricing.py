"""Checkout pricing policy."""

from protean.exceptions import ValidationError

from ordering.order.order import OrderItem, OrderPricing

FREE_SHIPPING_THRESHOLD = 50.0
FLAT_SHIPPING_FEE = 10.0
# No tax engine yet; every order is taxed at zero.
TAX_RATE = 0.0


def shipping_for(subtotal: float) -> float:
    """Free shipping strictly above the threshold, flat fee otherwise."""
    return 0.0 if subtotal > FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING_FEE


def calculate_pricing(items: list[OrderItem], discount: float = 0.0) -> OrderPricing:
    subtotal = round(sum(item.total for item in items), 2)
    shipping = shipping_for(subtotal)
    tax = round(subtotal * TAX_RATE, 2)

    if discount < 0:
        raise ValidationError({"discount": ["Discount cannot be negative"]})
    if discount > subtotal + tax + shipping:
        raise ValidationError({"discount": ["Discount cannot exceed the order total"]})

    return OrderPricing(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        discount=round(discount, 2),
        total=round(subtotal + tax + shipping - discount, 2),
    )
