"""Product management (admin): commands and handler."""

from protean import handle
from protean.fields import Boolean, Dict, Float, Identifier, Integer, List, String
from protean.utils.globals import current_domain
from protean.utils.query import Q

from catalogue.domain import logger
from catalogue.product.product import Product
from catalogue.product.repository import ProductRepository
from catalogue.product.search import text_search
from shared.domain import storefront
from shared.pagination import Pagination


@storefront.command(part_of="Product")
class CreateProduct:
    name = String(required=True, max_length=100)
    description = String(max_length=2000)
    price = Float(required=True)
    category = String(max_length=50, sanitize=False)
    subcategory = String(max_length=100)
    brand = String(max_length=100)
    tags = List(String(max_length=50))
    features = List(String(max_length=200))
    images = List()
    stock = Integer(default=0)
    low_stock_threshold = Integer(default=10)
    is_active = Boolean(default=True)
    is_featured = Boolean(default=False)
    created_by = Identifier()


@storefront.command(part_of="Product")
class UpdateProduct:
    product_id = Identifier(required=True)
    changes = Dict(required=True)
    updated_by = Identifier()


@storefront.command(part_of="Product")
class DeleteProduct:
    product_id = Identifier(required=True)
    deleted_by = Identifier()


@storefront.command(part_of="Product")
class RestoreProduct:
    product_id = Identifier(required=True)
    restored_by = Identifier()


_OPTIONAL_ATTRIBUTES = ("description", "category", "subcategory", "brand")


@storefront.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        attributes = {field: getattr(command, field) for field in _OPTIONAL_ATTRIBUTES if getattr(command, field)}
        product = Product.create(
            name=command.name,
            price=command.price,
            created_by=command.created_by,
            tags=command.tags,
            features=command.features,
            images=command.images,
            stock=command.stock,
            low_stock_threshold=command.low_stock_threshold,
            is_active=command.is_active,
            is_featured=command.is_featured,
            **attributes,
        )
        current_domain.repository_for(Product).add(product)

        logger.info("product_created", product_id=str(product.id), name=product.name, price=product.price)
        return str(product.id)

    @handle(UpdateProduct)
    def update_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get_product(command.product_id)
        product.update_details(updated_by=command.updated_by, **command.changes)
        repo.add(product)

        logger.info("product_updated", product_id=str(product.id), fields=sorted(command.changes))
        return str(product.id)

    @handle(DeleteProduct)
    def delete_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get_product(command.product_id)
        product.soft_delete(deleted_by=command.deleted_by)
        repo.add(product)

        logger.info("product_deleted", product_id=str(product.id))
        return str(product.id)

    @handle(RestoreProduct)
    def restore_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get_deleted(command.product_id)
        product.restore(restored_by=command.restored_by)
        repo.add(product)

        logger.info("product_restored", product_id=str(product.id))
        return str(product.id)


def list_deleted(repository: ProductRepository, page=1, limit=10, search=None, category=None):
    """Soft-deleted products, most recently deleted first. Returns ``(products, pagination)``."""
    criteria = Q(is_deleted=True)
    if search and search.strip():
        criteria &= text_search(search)
    if category:
        criteria &= Q(category=category)

    pagination = Pagination.build(page, limit)
    products, total = repository.search(criteria, ["-deleted_at"], offset=pagination.skip, limit=pagination.limit)
    return products, pagination.with_total(total)
