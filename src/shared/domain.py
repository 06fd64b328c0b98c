"""The storefront domain.

Catalogue, ordering and identity elements all register against this single
domain so that checkout can reserve stock and place the order in the same
unit of work. Configuration is read from ``[tool.protean]`` in
``pyproject.toml``; ``PROTEAN_ENV`` selects an overlay such as
``[tool.protean.test]``.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)

# Modules holding aggregates, commands, handlers and repositories. The domain
# is initialised with ``traverse=False``, so each module is imported here.
ELEMENT_MODULES = (
    "identity.user.user",
    "identity.user.management",
    "identity.user.repository",
    "catalogue.product.product",
    "catalogue.product.repository",
    "catalogue.product.management",
    "catalogue.product.reviews",
    "ordering.cart.cart",
    "ordering.cart.repository",
    "ordering.cart.items",
    "ordering.cart.management",
    "ordering.order.order",
    "ordering.order.repository",
    "ordering.order.creation",
    "ordering.order.cancellation",
    "ordering.order.status",
)

_initialized = False


def init_domain() -> Domain:
    """Register the MongoDB provider, load every element module and initialise the domain. Idempotent."""
    global _initialized
    if _initialized:
        return storefront

    from importlib import import_module

    from shared.store import mongo

    mongo.register()
    for module in ELEMENT_MODULES:
        import_module(module)

    storefront.init(traverse=False)
    _initialized = True
    logger.info("domain_initialized", domain=storefront.name, elements=len(ELEMENT_MODULES))
    return storefront
