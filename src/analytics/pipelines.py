"""Aggregation pipeline builders for the reporting views.

Pure functions: each returns a MongoDB pipeline and never touches the
database. Field names are the stored ones, so value objects appear as
their flattened shadow fields (``pricing_total``). ``match`` arguments
are fragments such as the one produced by ``DateRange.to_match()``.
"""

from enum import Enum

NOT_CANCELLED = {"status": {"$ne": "cancelled"}}
NOT_DELETED = {"is_deleted": {"$ne": True}}

# stock <= low_stock_threshold (covers stock == 0 for any non-negative threshold)
_LOW_STOCK_EXPR = {"$expr": {"$lte": ["$stock", "$low_stock_threshold"]}}


class SalesPeriod(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


def _date_parts(period: SalesPeriod) -> dict:
    if period == SalesPeriod.MONTHLY:
        return {"year": {"$year": "$created_at"}, "month": {"$month": "$created_at"}}
    if period == SalesPeriod.WEEKLY:
        return {"year": {"$year": "$created_at"}, "week": {"$week": "$created_at"}}
    return {
        "year": {"$year": "$created_at"},
        "month": {"$month": "$created_at"},
        "day": {"$dayOfMonth": "$created_at"},
    }


def _chronological(parts: dict) -> dict:
    return {f"_id.{part}": 1 for part in parts}


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
def revenue_summary(match: dict) -> list[dict]:
    return [
        {"$match": {**match, **NOT_CANCELLED}},
        {
            "$group": {
                "_id": None,
                "total_revenue": {"$sum": "$pricing_total"},
                "average_order_value": {"$avg": "$pricing_total"},
            }
        },
    ]


def orders_by_status(match: dict) -> list[dict]:
    return [
        {"$match": match},
        {"$group": {"_id": "$status", "count": {"$sum": 1}, "revenue": {"$sum": "$pricing_total"}}},
    ]


def top_products(match: dict, limit: int = 10) -> list[dict]:
    return [
        {"$match": {**match, **NOT_CANCELLED}},
        {"$unwind": "$items"},
        {
            "$group": {
                "_id": "$items.product_id",
                "name": {"$first": "$items.name"},
                "total_sold": {"$sum": "$items.quantity"},
                "total_revenue": {"$sum": "$items.total"},
            }
        },
        {"$sort": {"total_sold": -1}},
        {"$limit": limit},
    ]


def revenue_trend(match: dict, period: SalesPeriod = SalesPeriod.DAILY, limit: int | None = None) -> list[dict]:
    parts = _date_parts(period)
    pipeline = [
        {"$match": {**match, **NOT_CANCELLED}},
        {
            "$group": {
                "_id": parts,
                "revenue": {"$sum": "$pricing_total"},
                "orders": {"$sum": 1},
                "average_order_value": {"$avg": "$pricing_total"},
            }
        },
        {"$sort": _chronological(parts)},
    ]
    if limit:
        pipeline.append({"$limit": limit})
    return pipeline


def payment_methods(match: dict) -> list[dict]:
    return [
        {"$match": {**match, **NOT_CANCELLED}},
        {"$group": {"_id": "$payment_info_method", "count": {"$sum": 1}, "revenue": {"$sum": "$pricing_total"}}},
    ]


def top_customers(limit: int = 10, users_collection: str = "users") -> list[dict]:
    return [
        {"$match": NOT_CANCELLED},
        {"$group": {"_id": "$user_id", "total_spent": {"$sum": "$pricing_total"}, "order_count": {"$sum": 1}}},
        {"$sort": {"total_spent": -1}},
        {"$limit": limit},
        {"$lookup": {"from": users_collection, "localField": "_id", "foreignField": "_id", "as": "user"}},
        {"$unwind": "$user"},
        {"$project": {"name": "$user.name", "email": "$user.email", "total_spent": 1, "order_count": 1}},
    ]


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
def registration_trend(match: dict, period: SalesPeriod = SalesPeriod.DAILY, limit: int | None = None) -> list[dict]:
    parts = _date_parts(period)
    pipeline = [
        {"$match": {**match, **NOT_DELETED}},
        {"$group": {"_id": parts, "count": {"$sum": 1}}},
        {"$sort": _chronological(parts)},
    ]
    if limit:
        pipeline.append({"$limit": limit})
    return pipeline


def users_by_role() -> list[dict]:
    return [
        {"$match": NOT_DELETED},
        {
            "$group": {
                "_id": "$role",
                "count": {"$sum": 1},
                "active": {"$sum": {"$cond": ["$is_active", 1, 0]}},
                "inactive": {"$sum": {"$cond": ["$is_active", 0, 1]}},
            }
        },
    ]


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
def products_by_category() -> list[dict]:
    return [
        {"$match": NOT_DELETED},
        {
            "$group": {
                "_id": "$category",
                "count": {"$sum": 1},
                "average_price": {"$avg": "$price"},
                "total_stock": {"$sum": "$stock"},
            }
        },
        {"$sort": {"count": -1}},
    ]


def stock_status_distribution() -> list[dict]:
    return [
        {"$match": NOT_DELETED},
        {
            "$group": {
                "_id": {
                    "$cond": [
                        {"$eq": ["$stock", 0]},
                        "out_of_stock",
                        {"$cond": [{"$lte": ["$stock", "$low_stock_threshold"]}, "low_stock", "in_stock"]},
                    ]
                },
                "count": {"$sum": 1},
            }
        },
    ]


def stock_alerts(limit: int = 20) -> list[dict]:
    return [
        {"$match": {**NOT_DELETED, **_LOW_STOCK_EXPR}},
        {"$project": {"name": 1, "stock": 1, "low_stock_threshold": 1, "category": 1}},
        {"$limit": limit},
    ]


def products_needing_attention(limit: int = 20) -> list[dict]:
    """Low or no stock, or never reviewed."""
    return [
        {"$match": {**NOT_DELETED, "$or": [_LOW_STOCK_EXPR, {"rating_count": 0}]}},
        {
            "$project": {
                "name": 1,
                "stock": 1,
                "low_stock_threshold": 1,
                "rating_average": 1,
                "rating_count": 1,
                "category": 1,
            }
        },
        {"$limit": limit},
    ]
