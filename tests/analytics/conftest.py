from datetime import UTC, datetime
from types import SimpleNamespace

import pytest


def _at(*parts):
    return datetime(*parts, tzinfo=UTC)


@pytest.fixture()
def store_history(make_product, shipping_address):
    """A small, fixed trading history spread over early 2024.

    Three live users (one of them deactivated) plus one deleted user, three live
    products plus one deleted product, and four orders of which the last is cancelled.
    """
    from protean.utils.globals import current_domain

    from catalogue.product.product import Product, ProductCategory
    from identity.user.user import User
    from ordering.order.order import Order, OrderItem, PaymentMethod, ShippingAddress
    from ordering.order.pricing import calculate_pricing

    users = current_domain.repository_for(User)

    def _user(name, email, created_at, role=None):
        user = User.create(name=name, email=email, role=role)
        user.created_at = created_at
        return user

    alice = _user("Alice", "alice@example.com", _at(2024, 1, 15))
    bob = _user("Bob", "bob@example.com", _at(2024, 2, 10))
    carol = _user("Carol", "carol@example.com", _at(2024, 2, 20), role="admin")
    dave = _user("Dave", "dave@example.com", _at(2024, 1, 5))
    bob.toggle_status(updated_by=carol.id)
    dave.soft_delete(deleted_by=carol.id)
    for user in (alice, bob, carol, dave):
        users.add(user)

    home = ProductCategory.HOME_AND_GARDEN.value
    kettle = make_product(name="Kettle", price=30.0, stock=0, category=home)
    mug = make_product(name="Mug", price=10.0, stock=5, category=home)
    lamp = make_product(name="Lamp", price=50.0, stock=40, category=ProductCategory.ELECTRONICS.value)
    make_product(name="Retired", price=5.0, stock=0, is_deleted=True, is_active=False)

    lamp.add_review(alice.id, 5, "Bright")
    current_domain.repository_for(Product).add(lamp)

    orders = current_domain.repository_for(Order)

    def _order(user, number, created_at, lines, payment_method=PaymentMethod.CASH_ON_DELIVERY.value):
        items = [
            OrderItem(product_id=p.id, name=p.name, price=p.price, quantity=qty, total=p.price * qty)
            for p, qty in lines
        ]
        order = Order.create(
            user_id=user.id,
            order_number=number,
            items=items,
            shipping_address=ShippingAddress(**shipping_address),
            pricing=calculate_pricing(items),
            payment_method=payment_method,
        )
        order.created_at = created_at
        return order

    first = _order(alice, "ORD-1-0001", _at(2024, 3, 1, 9), [(mug, 2), (lamp, 1)])
    second = _order(
        alice, "ORD-1-0002", _at(2024, 3, 1, 17), [(mug, 1)], payment_method=PaymentMethod.CREDIT_CARD.value
    )
    third = _order(bob, "ORD-1-0003", _at(2024, 4, 10, 12), [(lamp, 3)])
    cancelled = _order(bob, "ORD-1-0004", _at(2024, 4, 11, 12), [(kettle, 3)])
    cancelled.cancel("Changed my mind", actor=bob.id)
    for order in (first, second, third, cancelled):
        orders.add(order)

    return SimpleNamespace(
        alice=alice,
        bob=bob,
        carol=carol,
        kettle=kettle,
        mug=mug,
        lamp=lamp,
        orders=[first, second, third, cancelled],
    )
