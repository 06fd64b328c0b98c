"""Reporting views for the admin dashboard.

Runs the pipelines from ``analytics.pipelines`` through the MongoDB
provider and reshapes the raw rows into report dicts. Read-only; every
view requires ``read:analytics``.
"""

from protean.utils.globals import current_domain
from protean.utils.query import Q

from analytics import pipelines
from analytics.domain import logger
from analytics.pipelines import SalesPeriod
from catalogue.product.product import Product
from identity.access import require_permission
from identity.user.user import User
from ordering.order.order import Order
from shared.dates import DateRange


def _period_label(key: dict) -> str:
    """``{"year": 2024, "month": 5, "day": 3}`` → ``"2024-05-03"``; weeks as ``"2024-W18"``."""
    if "week" in key:
        return f"{key['year']}-W{key['week']:02d}"
    label = f"{key['year']}-{key['month']:02d}"
    if "day" in key:
        label += f"-{key['day']:02d}"
    return label


def _money(value) -> float:
    return round(value or 0.0, 2)


class ReportingService:
    def __init__(self, provider=None):
        self.provider = provider or current_domain.providers["default"]

    def _aggregate(self, aggregate_cls, pipeline: list[dict]) -> list[dict]:
        return self.provider.aggregate(aggregate_cls.meta_.schema_name, pipeline)

    @staticmethod
    def _count(aggregate_cls, criteria: Q) -> int:
        return current_domain.repository_for(aggregate_cls).query.filter(criteria).all().total

    # -------------------------------------------------------------------
    # Dashboard
    # -------------------------------------------------------------------
    def dashboard(self, principal, date_range: DateRange | None = None) -> dict:
        require_permission(principal, "read:analytics")
        date_range = date_range or DateRange()
        match = date_range.to_match()

        revenue = self._aggregate(Order, pipelines.revenue_summary(match))
        totals = revenue[0] if revenue else {}

        report = {
            "overview": {
                "total_users": self._count(User, Q(is_deleted=False)),
                "total_products": self._count(Product, Q(is_deleted=False)),
                "total_orders": self._count(Order, date_range.to_criteria()),
                "total_revenue": _money(totals.get("total_revenue")),
                "average_order_value": _money(totals.get("average_order_value")),
            },
            "orders_by_status": {
                row["_id"]: {"count": row["count"], "revenue": _money(row["revenue"])}
                for row in self._aggregate(Order, pipelines.orders_by_status(match))
            },
            "top_products": [
                {
                    "product_id": str(row["_id"]),
                    "name": row["name"],
                    "total_sold": row["total_sold"],
                    "total_revenue": _money(row["total_revenue"]),
                }
                for row in self._aggregate(Order, pipelines.top_products(match))
            ],
            "user_trends": [
                {"date": _period_label(row["_id"]), "count": row["count"]}
                for row in self._aggregate(User, pipelines.registration_trend(match, limit=30))
            ],
            "revenue_trends": [
                {"date": _period_label(row["_id"]), "revenue": _money(row["revenue"]), "orders": row["orders"]}
                for row in self._aggregate(Order, pipelines.revenue_trend(match, limit=30))
            ],
            "stock_alerts": [self._product_row(row) for row in self._aggregate(Product, pipelines.stock_alerts())],
            "recent_orders": self._recent_orders(date_range),
        }

        logger.debug("dashboard_report_built", total_orders=report["overview"]["total_orders"])
        return report

    @staticmethod
    def _recent_orders(date_range: DateRange, limit: int = 10) -> list[dict]:
        orders, _ = current_domain.repository_for(Order).find_page(date_range.to_criteria(), limit=limit)
        return [
            {
                "id": str(order.id),
                "order_number": order.order_number,
                "user_id": str(order.user_id),
                "total": order.pricing.total,
                "status": order.status,
                "created_at": order.created_at,
            }
            for order in orders
        ]

    @staticmethod
    def _product_row(row: dict) -> dict:
        row = dict(row)
        row["id"] = str(row.pop("_id"))
        return row

    # -------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------
    def users(self, principal, date_range: DateRange | None = None) -> dict:
        require_permission(principal, "read:analytics")
        match = date_range.to_match() if date_range else {}

        return {
            "user_stats": [
                {"role": row["_id"], "count": row["count"], "active": row["active"], "inactive": row["inactive"]}
                for row in self._aggregate(User, pipelines.users_by_role())
            ],
            "registration_trends": [
                {"month": _period_label(row["_id"]), "count": row["count"]}
                for row in self._aggregate(User, pipelines.registration_trend(match, SalesPeriod.MONTHLY))
            ],
            "top_customers": [
                {
                    "user_id": str(row["_id"]),
                    "name": row.get("name"),
                    "email": row.get("email"),
                    "total_spent": _money(row["total_spent"]),
                    "order_count": row["order_count"],
                }
                for row in self._aggregate(Order, pipelines.top_customers(users_collection=User.meta_.schema_name))
            ],
        }

    # -------------------------------------------------------------------
    # Products
    # -------------------------------------------------------------------
    def products(self, principal) -> dict:
        require_permission(principal, "read:analytics")

        top_rated = (
            current_domain.repository_for(Product)
            .query.filter(is_deleted=False, rating_count__gte=1)
            .order_by(["-rating_average", "-rating_count"])
            .limit(10)
            .all()
        )

        return {
            "products_by_category": [
                {
                    "category": row["_id"],
                    "count": row["count"],
                    "average_price": _money(row["average_price"]),
                    "total_stock": row["total_stock"],
                }
                for row in self._aggregate(Product, pipelines.products_by_category())
            ],
            "stock_status": {
                row["_id"]: row["count"] for row in self._aggregate(Product, pipelines.stock_status_distribution())
            },
            "top_rated_products": [
                {
                    "id": str(p.id),
                    "name": p.name,
                    "category": p.category,
                    "price": p.price,
                    "rating": {"average": p.rating.average, "count": p.rating.count},
                }
                for p in top_rated
            ],
            "products_needing_attention": [
                self._product_row(row) for row in self._aggregate(Product, pipelines.products_needing_attention())
            ],
        }

    # -------------------------------------------------------------------
    # Sales
    # -------------------------------------------------------------------
    def sales(self, principal, period=SalesPeriod.DAILY, date_range: DateRange | None = None) -> dict:
        require_permission(principal, "read:analytics")
        period = SalesPeriod(period)
        match = date_range.to_match() if date_range else {}

        return {
            "period": period.value,
            "sales_trends": [
                {
                    "period": _period_label(row["_id"]),
                    "revenue": _money(row["revenue"]),
                    "orders": row["orders"],
                    "average_order_value": _money(row["average_order_value"]),
                }
                for row in self._aggregate(Order, pipelines.revenue_trend(match, period))
            ],
            "payment_methods": [
                {"method": row["_id"], "count": row["count"], "revenue": _money(row["revenue"])}
                for row in self._aggregate(Order, pipelines.payment_methods(match))
            ],
        }
