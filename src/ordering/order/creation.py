"""Order creation (checkout): command and handler.

The cart is re-validated line by line before anything is written; if any
product is missing, inactive or short on stock the whole checkout is
rejected. Stock is then taken product by product with version-guarded
saves, and every reservation already made is given back if a later step
fails.

Clearing the cart is left to the caller once the order exists.
"""

from protean import handle
from protean.exceptions import ExpectedVersionError, ValidationError
from protean.fields import Dict, Float, Identifier, String
from protean.utils.globals import current_domain

from catalogue.product.product import Product
from ordering.cart.cart import Cart
from ordering.domain import logger
from ordering.order.numbering import OrderNumberGenerator
from ordering.order.order import Order, OrderItem, PaymentMethod, ShippingAddress
from ordering.order.pricing import calculate_pricing
from shared.domain import storefront
from shared.errors import (
    ConcurrencyConflictError,
    EmptyCartError,
    InsufficientStockError,
    UnavailableError,
)

MAX_ORDER_NUMBER_ATTEMPTS = 3
MAX_STOCK_ATTEMPTS = 3


@storefront.command(part_of="Order")
class CreateOrder:
    user_id = Identifier(required=True)
    shipping_address = Dict(required=True)
    payment_method = String(max_length=20, choices=PaymentMethod, default=PaymentMethod.CASH_ON_DELIVERY.value)
    discount = Float(default=0.0, min_value=0.0)
    notes = String(max_length=500)
    placed_by = Identifier()


def _is_order_number_collision(exc: ValidationError) -> bool:
    messages = exc.messages if isinstance(exc.messages, dict) else {}
    return "order_number" in messages or "unique" in messages


@storefront.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        cart = current_domain.repository_for(Cart).get_for_user(command.user_id)
        if cart is None or cart.is_empty:
            raise EmptyCartError()

        shipping_address = ShippingAddress(**command.shipping_address)
        items = self._snapshot_items(cart)
        pricing = calculate_pricing(items, command.discount)

        reserved = self._reserve_stock(items)
        try:
            order = self._persist(command, items, shipping_address, pricing)
        except Exception:
            self._release_stock(reserved)
            raise

        logger.info(
            "order_created",
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=order.user_id,
            item_count=order.item_count,
            total=order.pricing.total,
        )
        return str(order.id)

    # -------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------
    def _snapshot_items(self, cart) -> list[OrderItem]:
        """Copy name, image and current price of every cart line."""
        products = current_domain.repository_for(Product)
        items = []
        for line in cart.items:
            product = products.find_product(line.product_id)
            if product is None or not product.is_active:
                raise UnavailableError(str(line.product_id), "A product in your cart is no longer available")
            if product.stock < line.quantity:
                raise InsufficientStockError(str(product.id), available=product.stock)

            items.append(
                OrderItem(
                    product_id=str(product.id),
                    name=product.name,
                    image=product.primary_image,
                    price=product.price,
                    quantity=line.quantity,
                    total=round(product.price * line.quantity, 2),
                )
            )
        return items

    def _reserve_stock(self, items: list[OrderItem]) -> list[OrderItem]:
        reserved = []
        for item in items:
            try:
                self._reserve(item)
            except Exception:
                # Lost a race with another checkout (or an admin edit) since validation
                self._release_stock(reserved)
                raise
            reserved.append(item)
        return reserved

    def _reserve(self, item: OrderItem) -> None:
        products = current_domain.repository_for(Product)
        for _ in range(MAX_STOCK_ATTEMPTS):
            product = products.find_product(item.product_id)
            if product is None:
                raise UnavailableError(str(item.product_id), "A product in your cart is no longer available")
            product.reserve_stock(item.quantity)
            try:
                products.add(product)
                return
            except ExpectedVersionError:
                logger.debug("stock_reservation_retry", product_id=str(item.product_id))

        raise ConcurrencyConflictError("Stock changed while placing the order; please retry")

    def _release_stock(self, items: list[OrderItem]) -> None:
        for item in items:
            release_stock(item.product_id, item.quantity)

    def _persist(self, command, items, shipping_address, pricing) -> Order:
        repo = current_domain.repository_for(Order)
        order_numbers = OrderNumberGenerator()
        for attempt in range(1, MAX_ORDER_NUMBER_ATTEMPTS + 1):
            order = Order.create(
                user_id=command.user_id,
                order_number=order_numbers.next(),
                items=items,
                shipping_address=shipping_address,
                pricing=pricing,
                payment_method=command.payment_method,
                notes=command.notes,
                created_by=command.placed_by,
            )
            try:
                repo.add(order)
                return order
            except ValidationError as exc:
                if not _is_order_number_collision(exc):
                    raise
                logger.warning("order_number_collision", order_number=order.order_number, attempt=attempt)

        raise ConcurrencyConflictError("Could not allocate a unique order number; please retry")


def release_stock(product_id, quantity) -> bool:
    """Give ``quantity`` units back to a product. Returns False when the product no longer exists."""
    products = current_domain.repository_for(Product)
    for _ in range(MAX_STOCK_ATTEMPTS):
        product = products.get_or_none(product_id)
        if product is None:
            return False
        product.release_stock(quantity)
        try:
            products.add(product)
            return True
        except ExpectedVersionError:
            logger.debug("stock_release_retry", product_id=str(product_id))

    raise ConcurrencyConflictError("Stock changed while releasing it; please retry")
