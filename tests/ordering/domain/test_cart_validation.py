"""Tests for comparing cart lines with the live catalogue."""

from catalogue.product.product import Product
from ordering.cart.cart import Cart
from ordering.cart.validation import CartIssueAction, validate_items


def _catalogue(*products):
    by_id = {p.id: p for p in products}
    return by_id.get


def _product(product_id, **overrides):
    fields = {"id": product_id, "name": f"Product {product_id}", "price": 10.0, "stock": 10}
    fields.update(overrides)
    return Product(**fields)


class TestValidateItems:
    def test_clean_cart(self):
        cart = Cart.create("u1")
        cart.add_item("p1", 2, 10.0)

        assert validate_items(cart, _catalogue(_product("p1"))) == []

    def test_each_kind_of_issue(self):
        cart = Cart.create("u1")
        cart.add_item("gone", 1, 10.0)
        cart.add_item("inactive", 1, 10.0)
        cart.add_item("short", 5, 10.0)
        cart.add_item("repriced", 1, 10.0)

        issues = validate_items(
            cart,
            _catalogue(
                _product("inactive", is_active=False),
                _product("short", stock=3),
                _product("repriced", price=12.5),
            ),
        )

        assert [(i.product_id, i.action) for i in issues] == [
            ("gone", CartIssueAction.REMOVE),
            ("inactive", CartIssueAction.REMOVE),
            ("short", CartIssueAction.UPDATE_QUANTITY),
            ("repriced", CartIssueAction.UPDATE_PRICE),
        ]
        assert issues[0].issue == "Product not found"
        assert issues[1].issue == "Product is no longer available"
        assert issues[2].issue == "Only 3 items available"
        assert issues[2].max_quantity == 3
        assert (issues[3].old_price, issues[3].new_price) == (10.0, 12.5)

    def test_only_first_failing_check_reported(self):
        cart = Cart.create("u1")
        cart.add_item("p1", 5, 10.0)

        issues = validate_items(cart, _catalogue(_product("p1", stock=1, price=99.0)))

        assert len(issues) == 1
        assert issues[0].action == CartIssueAction.UPDATE_QUANTITY

    def test_cart_is_not_modified(self):
        cart = Cart.create("u1")
        cart.add_item("p1", 1, 10.0)

        validate_items(cart, _catalogue())

        assert cart.total_items == 1
