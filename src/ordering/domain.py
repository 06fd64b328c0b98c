"""Ordering bounded context: Shopping Cart and Order Management.

Handles per-user carts validated against the live catalogue, the checkout
that snapshots a cart into an immutable order, and the order status
lifecycle.
"""

from shared.utils.logging import get_logger

logger = get_logger(__name__)

