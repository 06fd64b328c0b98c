"""Application tests for checkout: cart → order."""

from unittest.mock import patch

import pytest
from protean.exceptions import ExpectedVersionError, ValidationError
from protean.utils.globals import current_domain

from catalogue.product.management import DeleteProduct, UpdateProduct
from catalogue.product.product import Product, ProductImage
from ordering.cart.cart import Cart
from ordering.cart.management import ClearCart
from ordering.order.order import Order, PaymentMethod
from shared.errors import (
    ConcurrencyConflictError,
    EmptyCartError,
    InsufficientStockError,
    UnavailableError,
)


def _stock(product):
    return current_domain.repository_for(Product).get(product.id).stock


def _update_product(product, **changes):
    current_domain.process(UpdateProduct(product_id=product.id, changes=changes), asynchronous=False)


class TestCreateOrder:
    def test_order_snapshots_cart(self, make_product, customer, add_to_cart, checkout):
        product = make_product(name="Mug", price=10.0, stock=10, images=[ProductImage(url="https://cdn/mug.jpg")])
        add_to_cart(customer.id, product, 2)

        order = checkout(customer.id)

        assert order.status == "pending"
        assert order.order_number.startswith("ORD-")
        assert order.user_id == customer.id
        item = order.items[0]
        assert (item.name, item.image, item.price, item.quantity, item.total) == (
            "Mug",
            "https://cdn/mug.jpg",
            10.0,
            2,
            20.0,
        )

    def test_snapshot_survives_catalogue_edits(self, make_product, customer, add_to_cart, checkout):
        product = make_product(name="Mug", price=10.0, stock=10)
        add_to_cart(customer.id, product, 2)
        placed = checkout(customer.id)

        _update_product(product, name="Renamed Mug", price=99.0)

        reloaded = current_domain.repository_for(Order).get(placed.id)
        item = reloaded.items[0]
        assert (item.name, item.price, item.total) == ("Mug", 10.0, 20.0)
        assert reloaded.pricing.subtotal == 20.0
        assert reloaded.pricing.total == placed.pricing.total

    def test_small_order_pricing(self, make_product, customer, add_to_cart, checkout):
        product = make_product(price=10.0, stock=10)
        add_to_cart(customer.id, product, 2)

        pricing = checkout(customer.id).pricing

        assert (pricing.subtotal, pricing.shipping, pricing.tax, pricing.total) == (20.0, 10.0, 0.0, 30.0)

    def test_free_shipping_above_threshold(self, make_product, customer, add_to_cart, checkout):
        product = make_product(price=25.5, stock=10)
        add_to_cart(customer.id, product, 2)

        pricing = checkout(customer.id).pricing

        assert pricing.shipping == 0.0
        assert pricing.total == 51.0

    def test_discount(self, make_product, customer, add_to_cart, checkout):
        product = make_product(price=60.0, stock=10)
        add_to_cart(customer.id, product, 1)

        pricing = checkout(customer.id, discount=10.0).pricing

        assert (pricing.discount, pricing.total) == (10.0, 50.0)

    def test_uses_current_catalogue_price(self, make_product, customer, add_to_cart, checkout):
        product = make_product(price=10.0, stock=10)
        add_to_cart(customer.id, product, 1)
        _update_product(product, price=12.0)

        order = checkout(customer.id)

        assert order.items[0].price == 12.0

    def test_payment_method_and_notes(self, make_product, customer, add_to_cart, checkout):
        product = make_product()
        add_to_cart(customer.id, product, 1)

        order = checkout(customer.id, payment_method=PaymentMethod.CREDIT_CARD.value, notes="Leave at door")

        assert order.payment_info.method == "credit_card"
        assert order.payment_info.status == "pending"
        assert order.notes == "Leave at door"

    def test_placed_by_is_recorded(self, make_product, customer, add_to_cart, checkout):
        product = make_product()
        add_to_cart(customer.id, product, 1)

        order = checkout(customer.id, placed_by="admin-001")

        assert order.created_by == "admin-001"
        assert order.status_history[0].updated_by == "admin-001"

    def test_order_is_findable_by_number(self, make_product, customer, add_to_cart, checkout):
        product = make_product()
        add_to_cart(customer.id, product, 1)

        order = checkout(customer.id)

        stored = current_domain.repository_for(Order).find_by_number(order.order_number)
        assert stored.id == order.id

    def test_order_numbers_are_unique(self, make_product, customer, add_to_cart, checkout):
        product = make_product(stock=50)
        numbers = set()
        for _ in range(5):
            add_to_cart(customer.id, product, 1)
            numbers.add(checkout(customer.id).order_number)

        assert len(numbers) == 5

    def test_cart_is_left_for_the_caller_to_clear(self, make_product, customer, add_to_cart, checkout):
        product = make_product()
        add_to_cart(customer.id, product, 2)

        checkout(customer.id)

        assert current_domain.repository_for(Cart).get_for_user(customer.id).total_items == 2

    def test_invalid_shipping_address(self, make_product, customer, add_to_cart, checkout, shipping_address):
        product = make_product(stock=5)
        add_to_cart(customer.id, product, 1)

        with pytest.raises(ValidationError) as exc:
            checkout(customer.id, shipping_address={**shipping_address, "zip_code": "123"})

        assert "zip_code" in exc.value.messages
        assert _stock(product) == 5


class TestStockReservation:
    def test_stock_is_decremented(self, make_product, customer, add_to_cart, checkout):
        product = make_product(stock=10)
        add_to_cart(customer.id, product, 3)

        checkout(customer.id)

        assert _stock(product) == 7

    def test_insufficient_stock_rejects_whole_order(
        self, make_product, customer, other_customer, add_to_cart, checkout
    ):
        plenty = make_product(name="Plenty", stock=10)
        scarce = make_product(name="Scarce", stock=2)
        add_to_cart(customer.id, plenty, 1)
        add_to_cart(customer.id, scarce, 2)
        # Someone else buys one of the last units first
        add_to_cart(other_customer.id, scarce, 1)
        checkout(other_customer.id)

        with pytest.raises(InsufficientStockError) as exc:
            checkout(customer.id)

        assert exc.value.available == 1
        assert _stock(plenty) == 10
        assert current_domain.repository_for(Order).query.filter(user_id=customer.id).all().total == 0
        assert current_domain.repository_for(Cart).get_for_user(customer.id).total_items == 3

    def test_reservation_conflict_releases_taken_stock(self, make_product, customer, add_to_cart, checkout):
        first = make_product(name="First", stock=5)
        second = make_product(name="Second", stock=5)
        add_to_cart(customer.id, first, 2)
        add_to_cart(customer.id, second, 2)

        repository_cls = type(current_domain.repository_for(Product))
        original_add = repository_cls.add

        def conflict_on_second(self, item):
            if str(item.id) == str(second.id):
                raise ExpectedVersionError("Wrong version")
            return original_add(self, item)

        with patch.object(repository_cls, "add", conflict_on_second):
            with pytest.raises(ConcurrencyConflictError):
                checkout(customer.id)

        assert _stock(first) == 5
        assert _stock(second) == 5

    def test_order_number_collision_is_retried(self, make_product, customer, add_to_cart, checkout):
        product = make_product(stock=10)
        add_to_cart(customer.id, product, 1)
        existing = checkout(customer.id)

        add_to_cart(customer.id, product, 1)
        numbers = iter([existing.order_number, "ORD-1-9999"])
        with patch("ordering.order.creation.OrderNumberGenerator") as generator:
            generator.return_value.next.side_effect = lambda: next(numbers)
            order = checkout(customer.id)

        assert order.order_number == "ORD-1-9999"
        assert _stock(product) == 8

    def test_persist_failure_releases_stock(self, make_product, customer, add_to_cart, checkout):
        product = make_product(stock=5)
        add_to_cart(customer.id, product, 2)

        repository_cls = type(current_domain.repository_for(Order))
        collision = ValidationError({"order_number": ["Order with this order_number already exists"]})
        with patch.object(repository_cls, "add", side_effect=collision):
            with pytest.raises(ConcurrencyConflictError):
                checkout(customer.id)

        assert _stock(product) == 5


class TestCheckoutRejections:
    def test_empty_cart(self, make_product, customer, add_to_cart, checkout):
        product = make_product()
        add_to_cart(customer.id, product, 1)
        current_domain.process(ClearCart(user_id=customer.id), asynchronous=False)

        with pytest.raises(EmptyCartError):
            checkout(customer.id)

    def test_no_cart_at_all(self, other_customer, checkout):
        with pytest.raises(EmptyCartError):
            checkout(other_customer.id)

    def test_product_deactivated_after_add(self, make_product, customer, add_to_cart, checkout):
        product = make_product()
        add_to_cart(customer.id, product, 1)
        _update_product(product, is_active=False)

        with pytest.raises(UnavailableError) as exc:
            checkout(customer.id)

        assert exc.value.message == "A product in your cart is no longer available"

    def test_product_deleted_after_add(self, make_product, customer, add_to_cart, checkout):
        product = make_product()
        add_to_cart(customer.id, product, 1)
        current_domain.process(DeleteProduct(product_id=product.id), asynchronous=False)

        with pytest.raises(UnavailableError):
            checkout(customer.id)
