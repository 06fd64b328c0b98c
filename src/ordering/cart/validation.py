"""Cart validation: compare cart lines with the live catalogue.

Read-only: the cart is never modified here. Each discrepancy carries an
action hint so the caller can decide how to reconcile it.
"""

from collections.abc import Callable
from enum import Enum

from pydantic import BaseModel

from ordering.cart.cart import Cart


class CartIssueAction(Enum):
    REMOVE = "remove"
    UPDATE_QUANTITY = "update_quantity"
    UPDATE_PRICE = "update_price"


class CartIssue(BaseModel):
    product_id: str
    issue: str
    action: CartIssueAction
    max_quantity: int | None = None
    old_price: float | None = None
    new_price: float | None = None


def validate_items(cart: Cart, find_product: Callable) -> list[CartIssue]:
    """Return one issue per stale line item, in cart order.

    ``find_product`` returns the live product for an id, or None when it
    does not exist or has been soft-deleted. Only the first failing check
    is reported for a line: missing, inactive, stock, then price.
    """
    issues = []

    for item in cart.items:
        product = find_product(item.product_id)

        if product is None:
            issues.append(
                CartIssue(product_id=item.product_id, issue="Product not found", action=CartIssueAction.REMOVE)
            )
            continue

        if not product.is_active:
            issues.append(
                CartIssue(
                    product_id=item.product_id,
                    issue="Product is no longer available",
                    action=CartIssueAction.REMOVE,
                )
            )
            continue

        if product.stock < item.quantity:
            issues.append(
                CartIssue(
                    product_id=item.product_id,
                    issue=f"Only {product.stock} items available",
                    action=CartIssueAction.UPDATE_QUANTITY,
                    max_quantity=product.stock,
                )
            )
            continue

        if product.price != item.price:
            issues.append(
                CartIssue(
                    product_id=item.product_id,
                    issue="Price has changed",
                    action=CartIssueAction.UPDATE_PRICE,
                    old_price=item.price,
                    new_price=product.price,
                )
            )

    return issues
