"""Reporting views computed over a seeded store."""

from datetime import UTC, datetime

import pytest

from analytics.reports import ReportingService
from shared.dates import DateRange, parse_date_range
from shared.errors import ForbiddenError


class TestDashboard:
    def test_overview_excludes_cancelled_revenue(self, store_history, admin):
        overview = ReportingService().dashboard(admin)["overview"]

        assert overview == {
            "total_users": 3,
            "total_products": 3,
            "total_orders": 4,
            "total_revenue": 240.0,
            "average_order_value": 80.0,
        }

    def test_orders_by_status_includes_cancelled(self, store_history, admin):
        report = ReportingService().dashboard(admin)

        assert report["orders_by_status"] == {
            "pending": {"count": 3, "revenue": 240.0},
            "cancelled": {"count": 1, "revenue": 90.0},
        }

    def test_top_products_sum_line_items(self, store_history, admin):
        top = ReportingService().dashboard(admin)["top_products"]

        assert top == [
            {"product_id": store_history.lamp.id, "name": "Lamp", "total_sold": 4, "total_revenue": 200.0},
            {"product_id": store_history.mug.id, "name": "Mug", "total_sold": 3, "total_revenue": 30.0},
        ]

    def test_daily_trends(self, store_history, admin):
        report = ReportingService().dashboard(admin)

        assert report["revenue_trends"] == [
            {"date": "2024-03-01", "revenue": 90.0, "orders": 2},
            {"date": "2024-04-10", "revenue": 150.0, "orders": 1},
        ]
        assert report["user_trends"] == [
            {"date": "2024-01-15", "count": 1},
            {"date": "2024-02-10", "count": 1},
            {"date": "2024-02-20", "count": 1},
        ]

    def test_stock_alerts_use_each_products_threshold(self, store_history, admin):
        alerts = ReportingService().dashboard(admin)["stock_alerts"]

        assert {row["name"] for row in alerts} == {"Kettle", "Mug"}
        mug = next(row for row in alerts if row["name"] == "Mug")
        assert mug == {
            "id": store_history.mug.id,
            "name": "Mug",
            "stock": 5,
            "low_stock_threshold": 10,
            "category": "Home & Garden",
        }

    def test_recent_orders_newest_first(self, store_history, admin):
        recent = ReportingService().dashboard(admin)["recent_orders"]

        assert [row["order_number"] for row in recent] == ["ORD-1-0004", "ORD-1-0003", "ORD-1-0002", "ORD-1-0001"]
        assert recent[0]["status"] == "cancelled"
        assert recent[1]["total"] == 150.0

    def test_date_range_narrows_every_order_figure(self, store_history, admin):
        report = ReportingService().dashboard(admin, parse_date_range("2024-04-01", None))

        assert report["overview"]["total_orders"] == 2
        assert report["overview"]["total_revenue"] == 150.0
        assert report["orders_by_status"] == {
            "pending": {"count": 1, "revenue": 150.0},
            "cancelled": {"count": 1, "revenue": 90.0},
        }
        assert [row["name"] for row in report["top_products"]] == ["Lamp"]
        assert report["user_trends"] == []
        assert [row["order_number"] for row in report["recent_orders"]] == ["ORD-1-0004", "ORD-1-0003"]

    def test_empty_store(self, admin):
        report = ReportingService().dashboard(admin)

        assert report["overview"]["total_revenue"] == 0.0
        assert report["overview"]["average_order_value"] == 0.0
        assert report["orders_by_status"] == {}
        assert report["top_products"] == []
        assert report["recent_orders"] == []

    def test_requires_analytics_permission(self, customer):
        with pytest.raises(ForbiddenError):
            ReportingService().dashboard(customer)


class TestUserReport:
    def test_roles_skip_deleted_users(self, store_history, admin):
        stats = ReportingService().users(admin)["user_stats"]

        assert sorted(stats, key=lambda row: row["role"]) == [
            {"role": "admin", "count": 1, "active": 1, "inactive": 0},
            {"role": "user", "count": 2, "active": 1, "inactive": 1},
        ]

    def test_monthly_registrations(self, store_history, admin):
        trends = ReportingService().users(admin)["registration_trends"]

        # Dave registered in January too, but has been deleted
        assert trends == [{"month": "2024-01", "count": 1}, {"month": "2024-02", "count": 2}]

    def test_registrations_within_range(self, store_history, admin):
        report = ReportingService().users(admin, DateRange(start=datetime(2024, 2, 1, tzinfo=UTC)))

        assert report["registration_trends"] == [{"month": "2024-02", "count": 2}]

    def test_top_customers_joined_with_accounts(self, store_history, admin):
        customers = ReportingService().users(admin)["top_customers"]

        assert customers == [
            {
                "user_id": store_history.bob.id,
                "name": "Bob",
                "email": "bob@example.com",
                "total_spent": 150.0,
                "order_count": 1,
            },
            {
                "user_id": store_history.alice.id,
                "name": "Alice",
                "email": "alice@example.com",
                "total_spent": 90.0,
                "order_count": 2,
            },
        ]


class TestProductReport:
    def test_categories(self, store_history, admin):
        categories = ReportingService().products(admin)["products_by_category"]

        assert categories == [
            {"category": "Home & Garden", "count": 2, "average_price": 20.0, "total_stock": 5},
            {"category": "Electronics", "count": 1, "average_price": 50.0, "total_stock": 40},
        ]

    def test_stock_status_buckets(self, store_history, admin):
        stock_status = ReportingService().products(admin)["stock_status"]

        assert stock_status == {"out_of_stock": 1, "low_stock": 1, "in_stock": 1}

    def test_top_rated_requires_reviews(self, store_history, admin):
        top_rated = ReportingService().products(admin)["top_rated_products"]

        assert top_rated == [
            {
                "id": store_history.lamp.id,
                "name": "Lamp",
                "category": "Electronics",
                "price": 50.0,
                "rating": {"average": 5.0, "count": 1},
            }
        ]

    def test_needing_attention(self, store_history, admin):
        rows = ReportingService().products(admin)["products_needing_attention"]

        assert {row["name"] for row in rows} == {"Kettle", "Mug"}

    def test_threshold_is_inclusive(self, make_product, admin):
        make_product(name="Edge", stock=5, low_stock_threshold=5)
        make_product(name="Above", stock=6, low_stock_threshold=5)
        make_product(name="Strict", stock=15, low_stock_threshold=20)

        report = ReportingService().products(admin)
        alerts = ReportingService().dashboard(admin)["stock_alerts"]

        assert {row["name"] for row in alerts} == {"Edge", "Strict"}
        assert report["stock_status"] == {"low_stock": 2, "in_stock": 1}


class TestSalesReport:
    def test_monthly(self, store_history, admin):
        report = ReportingService().sales(admin, "monthly")

        assert report["period"] == "monthly"
        assert report["sales_trends"] == [
            {"period": "2024-03", "revenue": 90.0, "orders": 2, "average_order_value": 45.0},
            {"period": "2024-04", "revenue": 150.0, "orders": 1, "average_order_value": 150.0},
        ]

    def test_weekly_labels(self, store_history, admin):
        trends = ReportingService().sales(admin, "weekly")["sales_trends"]

        assert [row["period"] for row in trends] == ["2024-W08", "2024-W14"]

    def test_payment_methods(self, store_history, admin):
        methods = ReportingService().sales(admin)["payment_methods"]

        assert sorted(methods, key=lambda row: row["method"]) == [
            {"method": "cash_on_delivery", "count": 2, "revenue": 220.0},
            {"method": "credit_card", "count": 1, "revenue": 20.0},
        ]

    def test_range_excluding_everything(self, store_history, admin):
        report = ReportingService().sales(admin, "daily", parse_date_range("2023-01-01", "2023-12-31"))

        assert report["sales_trends"] == []
        assert report["payment_methods"] == []

    def test_unknown_period(self, admin):
        with pytest.raises(ValueError):
            ReportingService().sales(admin, "hourly")
