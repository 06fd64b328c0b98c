"""Analytics bounded context: read-only reporting over orders, products and users."""

from shared.utils.logging import get_logger

logger = get_logger(__name__)
