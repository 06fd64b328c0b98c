"""Catalogue bounded context: products, reviews and search."""

from shared.utils.logging import get_logger

logger = get_logger(__name__)
