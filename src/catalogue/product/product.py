"""Product aggregate: the catalog entity carts and orders are validated against."""

from datetime import UTC, datetime
from enum import Enum

from protean import Index
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    Identifier,
    Integer,
    List,
    String,
    ValueObject,
)

from shared.domain import storefront
from shared.errors import InsufficientStockError, NotFoundError, UnavailableError


class ProductCategory(Enum):
    ELECTRONICS = "Electronics"
    CLOTHING = "Clothing"
    BOOKS = "Books"
    HOME_AND_GARDEN = "Home & Garden"
    SPORTS_AND_OUTDOORS = "Sports & Outdoors"
    HEALTH_AND_BEAUTY = "Health & Beauty"
    TOYS_AND_GAMES = "Toys & Games"
    AUTOMOTIVE = "Automotive"
    FOOD_AND_BEVERAGES = "Food & Beverages"
    OTHER = "Other"


class StockStatus(Enum):
    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    IN_STOCK = "in_stock"


@storefront.value_object(part_of="Product")
class ProductImage:
    url = String(required=True, max_length=500)
    alt = String(max_length=255)


@storefront.value_object(part_of="Product")
class Rating:
    average = Float(default=0.0, min_value=0.0, max_value=5.0)
    count = Integer(default=0, min_value=0)


@storefront.value_object(part_of="Product")
class Review:
    user_id = Identifier(required=True)
    rating = Integer(required=True, min_value=1, max_value=5)
    comment = String(max_length=500)
    created_at = DateTime()


# Fields an admin may change through update_details
_EDITABLE_FIELDS = {
    "name",
    "description",
    "price",
    "category",
    "subcategory",
    "brand",
    "tags",
    "features",
    "images",
    "stock",
    "low_stock_threshold",
    "is_active",
    "is_featured",
}


@storefront.aggregate(
    schema_name="products",
    limit=-1,
    indexes=[Index("category"), Index("is_active", "is_deleted")],
)
class Product:
    name = String(required=True, min_length=2, max_length=100)
    description = String(max_length=2000, default="")
    price = Float(required=True, min_value=0.0)
    category = String(max_length=50, choices=ProductCategory, default=ProductCategory.OTHER.value, sanitize=False)
    subcategory = String(max_length=100)
    brand = String(max_length=100)
    tags = List(String(max_length=50))
    features = List(String(max_length=200))
    images = List(content_type=ValueObject(ProductImage))
    stock = Integer(default=0, min_value=0)
    low_stock_threshold = Integer(default=10, min_value=0)
    is_active = Boolean(default=True)
    is_featured = Boolean(default=False)
    is_deleted = Boolean(default=False)
    deleted_at = DateTime()
    rating = ValueObject(Rating)
    reviews = List(content_type=ValueObject(Review))
    created_by = Identifier()
    updated_by = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, name, price, created_by=None, **attributes):
        now = datetime.now(UTC)
        return cls(
            name=name,
            price=price,
            rating=Rating(average=0.0, count=0),
            created_by=created_by,
            updated_by=created_by,
            created_at=now,
            updated_at=now,
            **attributes,
        )

    # -------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------
    @property
    def is_available(self) -> bool:
        """Visible to customers and purchasable."""
        return self.is_active and not self.is_deleted

    @property
    def stock_status(self) -> str:
        if self.stock == 0:
            return StockStatus.OUT_OF_STOCK.value
        if self.stock <= self.low_stock_threshold:
            return StockStatus.LOW_STOCK.value
        return StockStatus.IN_STOCK.value

    @property
    def primary_image(self) -> str:
        return self.images[0].url if self.images else ""

    # -------------------------------------------------------------------
    # Admin edits
    # -------------------------------------------------------------------
    def update_details(self, updated_by=None, **changes):
        """Apply an admin edit. Unknown fields are rejected."""
        if self.is_deleted:
            raise NotFoundError("Product not found")

        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError({field: ["Field cannot be updated"] for field in sorted(unknown)})

        for field, value in changes.items():
            setattr(self, field, value)
        self.updated_by = updated_by
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Soft delete / restore
    # -------------------------------------------------------------------
    def soft_delete(self, deleted_by=None):
        if self.is_deleted:
            raise NotFoundError("Product not found")

        now = datetime.now(UTC)
        self.is_deleted = True
        self.is_active = False
        self.deleted_at = now
        self.updated_by = deleted_by
        self.updated_at = now

    def restore(self, restored_by=None):
        if not self.is_deleted:
            raise NotFoundError("Deleted product not found")

        self.is_deleted = False
        self.is_active = True
        self.deleted_at = None
        self.updated_by = restored_by
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Stock
    # -------------------------------------------------------------------
    def reserve_stock(self, quantity: int):
        """Take ``quantity`` units for an order line."""
        if not self.is_available:
            raise UnavailableError(str(self.id), f"Product {self.name} is not available")
        if self.stock < quantity:
            raise InsufficientStockError(str(self.id), self.stock)

        self.stock = self.stock - quantity
        self.updated_at = datetime.now(UTC)

    def release_stock(self, quantity: int):
        """Return ``quantity`` units, whether or not the product is still listed."""
        self.stock = self.stock + quantity
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Reviews
    # -------------------------------------------------------------------
    def add_review(self, user_id, rating, comment=None):
        if any(str(review.user_id) == str(user_id) for review in self.reviews):
            raise ValidationError({"review": ["You have already reviewed this product"]})

        review = Review(user_id=str(user_id), rating=rating, comment=comment, created_at=datetime.now(UTC))
        self.reviews = [*self.reviews, review]
        self._recalculate_rating()
        self.updated_at = datetime.now(UTC)

    def _recalculate_rating(self):
        count = len(self.reviews)
        average = round(sum(r.rating for r in self.reviews) / count, 1) if count else 0.0
        self.rating = Rating(average=average, count=count)
