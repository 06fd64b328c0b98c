"""Cart persistence: one cart per user."""

from protean.exceptions import ValidationError

from ordering.cart.cart import Cart
from ordering.domain import logger
from shared.domain import storefront


@storefront.repository(part_of=Cart)
class CartRepository:
    def get_for_user(self, user_id) -> Cart | None:
        results = self.query.filter(user_id=str(user_id)).limit(1).all()
        return results.first

    def get_or_create(self, user_id) -> Cart:
        cart = self.get_for_user(user_id)
        if cart is not None:
            return cart

        cart = Cart.create(user_id)
        try:
            self.add(cart)
        except ValidationError:
            # Another request created the cart between our read and insert
            logger.debug("cart_create_race", user_id=str(user_id))
            existing = self.get_for_user(user_id)
            if existing is None:
                raise
            return existing
        return cart
