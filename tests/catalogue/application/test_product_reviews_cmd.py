import pytest
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from catalogue.product.product import Product
from catalogue.product.reviews import AddReview
from shared.errors import NotFoundError


def _review(product_id, user_id, rating, comment=None):
    return current_domain.process(
        AddReview(product_id=product_id, user_id=user_id, rating=rating, comment=comment),
        asynchronous=False,
    )


class TestAddReview:
    def test_review_updates_rating(self, make_product):
        product = make_product()

        _review(product.id, "user-001", 5, "Love it")
        _review(product.id, "user-002", 2)

        stored = current_domain.repository_for(Product).get(product.id)
        assert stored.rating.count == 2
        assert stored.rating.average == 3.5
        assert stored.reviews[0].user_id == "user-001"
        assert stored.reviews[0].comment == "Love it"

    def test_duplicate_review_rejected(self, make_product):
        product = make_product()
        _review(product.id, "user-001", 5)

        with pytest.raises(ValidationError) as exc:
            _review(product.id, "user-001", 3)

        assert exc.value.messages == {"review": ["You have already reviewed this product"]}
        assert current_domain.repository_for(Product).get(product.id).rating.count == 1

    def test_rating_out_of_range(self, make_product):
        product = make_product()
        with pytest.raises(ValidationError):
            _review(product.id, "user-001", 6)

    def test_unknown_product(self):
        with pytest.raises(NotFoundError):
            _review("nope", "user-001", 4)
