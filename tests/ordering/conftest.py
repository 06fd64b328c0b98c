import pytest


@pytest.fixture()
def add_to_cart():
    """Factory: put ``quantity`` units of a product in a user's cart."""
    from protean.utils.globals import current_domain

    from ordering.cart.items import AddToCart

    def _add(user_id, product, quantity=1):
        return current_domain.process(
            AddToCart(user_id=user_id, product_id=product.id, quantity=quantity), asynchronous=False
        )

    return _add


@pytest.fixture()
def checkout(shipping_address):
    """Factory: place an order from the user's cart and return it as stored."""
    from protean.utils.globals import current_domain

    from ordering.order.creation import CreateOrder
    from ordering.order.order import Order

    def _checkout(user_id, **overrides):
        fields = {"user_id": user_id, "shipping_address": shipping_address}
        fields.update(overrides)
        order_id = current_domain.process(CreateOrder(**fields), asynchronous=False)
        return current_domain.repository_for(Order).get(order_id)

    return _checkout
