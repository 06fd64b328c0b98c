"""Order status management (admin): command and handler."""

from protean import handle
from protean.fields import Dict, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import logger
from ordering.order.cancellation import restock
from ordering.order.order import Order, OrderStatus, Tracking
from shared.domain import storefront


@storefront.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20, choices=OrderStatus)
    note = String(max_length=500)
    tracking = Dict()
    updated_by = Identifier()


@storefront.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_order(command.order_id)
        previous_status = order.status

        tracking = Tracking(**command.tracking) if command.tracking else None
        order.update_status(command.status, note=command.note, actor=command.updated_by, tracking=tracking)
        repo.add(order)

        if order.status == OrderStatus.CANCELLED.value:
            restock(order)

        logger.info(
            "order_status_updated",
            order_id=str(order.id),
            order_number=order.order_number,
            from_status=previous_status,
            to_status=order.status,
            updated_by=command.updated_by,
        )
        return str(order.id)
