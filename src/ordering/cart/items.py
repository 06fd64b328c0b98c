"""Cart item management: commands and handler.

Every command re-reads the product so stock and availability are checked
against the live catalogue at the moment of the change.
"""

from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from catalogue.product.product import Product
from ordering.cart.cart import Cart, check_quantity
from ordering.domain import logger
from shared.domain import storefront
from shared.errors import InsufficientStockError, UnavailableError


@storefront.command(part_of="Cart")
class AddToCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(default=1)


@storefront.command(part_of="Cart")
class UpdateCartQuantity:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)


@storefront.command(part_of="Cart")
class RemoveFromCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        check_quantity(command.quantity)

        product = current_domain.repository_for(Product).get_product(command.product_id)
        if not product.is_active:
            raise UnavailableError(str(product.id))
        if product.stock < command.quantity:
            raise InsufficientStockError(str(product.id), available=product.stock)

        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.user_id)
        cart.add_item(product.id, command.quantity, product.price)
        repo.add(cart)

        logger.info(
            "cart_item_added",
            user_id=command.user_id,
            product_id=str(product.id),
            quantity=command.quantity,
            total_items=cart.total_items,
        )
        return str(cart.id)

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.user_id)

        if command.quantity > 0 and cart.find_item(command.product_id) is not None:
            product = current_domain.repository_for(Product).find_product(command.product_id)
            if product is None or not product.is_active:
                raise UnavailableError(command.product_id)
            if product.stock < command.quantity:
                raise InsufficientStockError(str(product.id), available=product.stock)

        cart.update_item_quantity(command.product_id, command.quantity)
        repo.add(cart)

        logger.info(
            "cart_item_quantity_updated",
            user_id=command.user_id,
            product_id=command.product_id,
            quantity=command.quantity,
        )
        return str(cart.id)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create(command.user_id)
        if cart.find_item(command.product_id) is None:
            return str(cart.id)

        cart.remove_item(command.product_id)
        repo.add(cart)

        logger.info("cart_item_removed", user_id=command.user_id, product_id=command.product_id)
        return str(cart.id)
