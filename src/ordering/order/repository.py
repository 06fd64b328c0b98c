"""Order persistence."""

from protean.utils.query import Q

from ordering.order.order import Order
from shared.domain import storefront
from shared.errors import NotFoundError


@storefront.repository(part_of=Order)
class OrderRepository:
    def get_order(self, order_id: str) -> Order:
        order = self.get_or_none(order_id)
        if order is None:
            raise NotFoundError("Order not found", order_id=order_id)
        return order

    def find_by_number(self, order_number: str) -> Order | None:
        return self.query.filter(order_number=order_number).limit(1).all().first

    def find_page(self, criteria: Q, offset: int = 0, limit: int | None = None) -> tuple[list[Order], int]:
        """Newest orders first."""
        results = self.query.filter(criteria).order_by("-created_at").offset(offset).limit(limit).all()
        return results.items, results.total
