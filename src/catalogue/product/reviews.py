"""Product reviews: command and handler."""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from catalogue.domain import logger
from catalogue.product.product import Product
from shared.domain import storefront


@storefront.command(part_of="Product")
class AddReview:
    product_id = Identifier(required=True)
    user_id = Identifier(required=True)
    rating = Integer(required=True, min_value=1, max_value=5)
    comment = String(max_length=500)


@storefront.command_handler(part_of=Product)
class ProductReviewHandler:
    @handle(AddReview)
    def add_review(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get_product(command.product_id)
        product.add_review(command.user_id, command.rating, command.comment)
        repo.add(product)

        logger.info(
            "review_added",
            product_id=str(product.id),
            rating=command.rating,
            average=product.rating.average,
        )
        return str(product.id)
