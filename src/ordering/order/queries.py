"""Order read side: single order lookups and paginated listings."""

from dataclasses import dataclass

from protean.utils.globals import current_domain
from protean.utils.query import Q

from identity.access import ensure_can_access, require_permission
from ordering.order.order import Order, OrderStatus
from shared.dates import DateRange
from shared.pagination import Pagination


@dataclass(frozen=True)
class OrderPage:
    orders: list[Order]
    pagination: Pagination


def get_order(principal, order_id) -> Order:
    """The order, provided the caller owns it or is an admin."""
    order = current_domain.repository_for(Order).get_order(order_id)
    ensure_can_access(order.user_id, principal)
    return order


def list_my_orders(principal, page=1, limit=10, status=None) -> OrderPage:
    criteria = Q(user_id=str(principal.id))
    if status:
        criteria &= Q(status=OrderStatus(status).value)
    return _page(criteria, page, limit)


def list_all_orders(
    principal,
    page=1,
    limit=10,
    status=None,
    user_id=None,
    date_range: DateRange | None = None,
) -> OrderPage:
    require_permission(principal, "read:all_orders")

    criteria = Q()
    if status:
        criteria &= Q(status=OrderStatus(status).value)
    if user_id:
        criteria &= Q(user_id=str(user_id))
    if date_range is not None:
        criteria &= date_range.to_criteria("created_at")
    return _page(criteria, page, limit)


def _page(criteria: Q, page, limit) -> OrderPage:
    pagination = Pagination.build(page, limit)
    orders, total = current_domain.repository_for(Order).find_page(
        criteria, offset=pagination.skip, limit=pagination.limit
    )
    return OrderPage(orders=orders, pagination=pagination.with_total(total))
