"""Shopping Cart aggregate: one mutable cart per user, snapshotting prices on add.

Totals are never set directly: every mutation recomputes ``total_items``
and ``total_amount`` from the line items. Line items are value objects,
so a change to a line replaces it in ``items``.
"""

from datetime import UTC, datetime

from protean import Index, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, List, ValueObject

from shared.domain import storefront
from shared.errors import InvalidQuantityError, NotFoundError

MIN_QUANTITY = 1
MAX_QUANTITY = 100


@storefront.value_object(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=MIN_QUANTITY, max_value=MAX_QUANTITY)
    price = Float(required=True, min_value=0.0)
    added_at = DateTime()

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)


def check_quantity(quantity):
    if quantity < MIN_QUANTITY or quantity > MAX_QUANTITY:
        raise InvalidQuantityError(f"Quantity must be between {MIN_QUANTITY} and {MAX_QUANTITY}")


@storefront.aggregate(schema_name="carts", limit=-1, indexes=[Index("user_id", unique=True)])
class Cart:
    user_id = Identifier(required=True)
    items = List(content_type=ValueObject(CartItem))
    total_items = Integer(default=0, min_value=0)
    total_amount = Float(default=0.0, min_value=0.0)
    last_modified = DateTime()

    @invariant.post
    def product_appears_once(self):
        product_ids = [str(item.product_id) for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValidationError({"items": ["A product can appear only once in the cart"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id):
        return cls(user_id=str(user_id), items=[], last_modified=datetime.now(UTC))

    def find_item(self, product_id) -> CartItem | None:
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    @property
    def is_empty(self) -> bool:
        return not self.items

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, quantity, price):
        """Add a line item, or grow an existing one and refresh its price snapshot."""
        check_quantity(quantity)

        existing = self.find_item(product_id)
        if existing is not None:
            new_quantity = existing.quantity + quantity
            if new_quantity > MAX_QUANTITY:
                raise InvalidQuantityError(
                    f"Cannot have more than {MAX_QUANTITY} of a product in the cart",
                    current_quantity=existing.quantity,
                )
            self._replace(existing.replace(quantity=new_quantity, price=price))
        else:
            item = CartItem(product_id=str(product_id), quantity=quantity, price=price, added_at=datetime.now(UTC))
            self._set_items([*self.items, item])

    def update_item_quantity(self, product_id, quantity, price=None):
        """Set a line item's quantity. ``quantity <= 0`` removes the line."""
        item = self.find_item(product_id)
        if item is None:
            raise NotFoundError("Item not found in cart", product_id=str(product_id))

        if quantity <= 0:
            self._set_items(self._without(product_id))
            return

        check_quantity(quantity)
        self._replace(item.replace(quantity=quantity, price=item.price if price is None else price))

    def remove_item(self, product_id):
        """Remove a line item. Removing an absent product is a no-op."""
        item = self.find_item(product_id)
        if item is None:
            return

        self._set_items(self._without(product_id))

    def clear(self):
        self._set_items([])

    # -------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------
    def _without(self, product_id):
        return [i for i in self.items if str(i.product_id) != str(product_id)]

    def _replace(self, item):
        self._set_items([item if str(i.product_id) == str(item.product_id) else i for i in self.items])

    def _set_items(self, items):
        self.items = items
        self.total_items = sum(i.quantity for i in items)
        self.total_amount = round(sum(i.price * i.quantity for i in items), 2)
        self.last_modified = datetime.now(UTC)
