"""Product lookups: live, deleted and listing queries."""

from protean.utils.query import Q

from catalogue.product.product import Product
from shared.domain import storefront
from shared.errors import NotFoundError


def available() -> Q:
    """Criteria every customer-facing read starts from."""
    return Q(is_active=True, is_deleted=False)


@storefront.repository(part_of=Product)
class ProductRepository:
    def get_product(self, product_id: str) -> Product:
        """Return a live product. Soft-deleted products are reported as missing."""
        product = self.find_product(product_id)
        if product is None:
            raise NotFoundError("Product not found", product_id=product_id)
        return product

    def find_product(self, product_id: str) -> Product | None:
        product = self.get_or_none(product_id)
        if product is None or product.is_deleted:
            return None
        return product

    def get_any(self, product_id: str) -> Product:
        """Return the product whether or not it has been soft-deleted."""
        product = self.get_or_none(product_id)
        if product is None:
            raise NotFoundError("Product not found", product_id=product_id)
        return product

    def get_deleted(self, product_id: str) -> Product:
        product = self.get_or_none(product_id)
        if product is None or not product.is_deleted:
            raise NotFoundError("Deleted product not found", product_id=product_id)
        return product

    # -------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------
    def search(self, criteria: Q, order_by: list[str], offset: int = 0, limit: int | None = None):
        """Returns ``(products, total)``."""
        results = self.query.filter(criteria).order_by(order_by).offset(offset).limit(limit).all()
        return results.items, results.total

    def categories(self) -> list[str]:
        records = self.query.filter(available()).only("category").all()
        return sorted({record.category for record in records if record.category})

    def brands(self) -> list[str]:
        records = self.query.filter(available()).only("brand").all()
        return sorted({record.brand for record in records if record.brand})
