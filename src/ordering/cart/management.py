"""Cart lifecycle: clear, plus the read-only validation against the catalogue."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from catalogue.product.product import Product
from ordering.cart.cart import Cart
from ordering.cart.validation import CartIssue, validate_items
from ordering.domain import logger
from shared.domain import storefront


@storefront.command(part_of="Cart")
class ClearCart:
    user_id = Identifier(required=True)


@storefront.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.user_id)
        cart.clear()
        repo.add(cart)

        logger.info("cart_cleared", user_id=command.user_id)
        return str(cart.id)


def validate_cart(user_id) -> tuple[Cart, list[CartIssue]]:
    """Return the user's cart together with its discrepancies against the live catalogue."""
    cart = current_domain.repository_for(Cart).get_or_create(user_id)
    return cart, validate_items(cart, current_domain.repository_for(Product).find_product)
