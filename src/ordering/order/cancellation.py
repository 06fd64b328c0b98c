"""Order cancellation: command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import logger
from ordering.order.creation import release_stock
from ordering.order.order import Order
from shared.domain import storefront


@storefront.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(required=True, min_length=1, max_length=500)
    cancelled_by = Identifier()


@storefront.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_order(command.order_id)
        order.cancel(command.reason, actor=command.cancelled_by)
        repo.add(order)

        restock(order)
        logger.info(
            "order_cancelled",
            order_id=str(order.id),
            order_number=order.order_number,
            cancelled_by=command.cancelled_by,
        )
        return str(order.id)


def restock(order: Order) -> None:
    """Give the stock taken at checkout back to the catalogue."""
    for item in order.items:
        if not release_stock(item.product_id, item.quantity):
            logger.warning("restock_skipped_missing_product", order_id=str(order.id), product_id=item.product_id)
