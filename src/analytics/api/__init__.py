"""Analytics domain API package."""

from analytics.api.routes import analytics_router

__all__ = ["analytics_router"]
