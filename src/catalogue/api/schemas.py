"""Pydantic request/response schemas for the Catalogue API.

These are external contracts: separate from the Product aggregate and the
internal commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from catalogue.product.product import Product, ProductCategory
from shared.pagination import PaginationSchema


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ImageSchema(BaseModel):
    url: str = Field(min_length=1, max_length=500)
    alt: str | None = None


class RatingSchema(BaseModel):
    average: float
    count: int


class ReviewSchema(BaseModel):
    user_id: str
    rating: int
    comment: str | None = None
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class CreateProductRequest(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    description: str = Field(min_length=10, max_length=2000)
    price: float = Field(ge=0)
    category: ProductCategory
    subcategory: str | None = None
    brand: str | None = None
    tags: list[str] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    images: list[ImageSchema] = Field(min_length=1)
    stock: int = Field(ge=0)
    low_stock_threshold: int = Field(default=10, ge=0)
    is_active: bool = True
    is_featured: bool = False

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Wireless Headphones",
                    "description": "Over-ear headphones with noise cancellation",
                    "price": 129.99,
                    "category": "Electronics",
                    "brand": "SoundCo",
                    "images": [{"url": "https://cdn.example.com/headphones.jpg"}],
                    "stock": 40,
                }
            ]
        }
    }


class UpdateProductRequest(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    description: str | None = Field(default=None, min_length=10, max_length=2000)
    price: float | None = Field(default=None, ge=0)
    category: ProductCategory | None = None
    subcategory: str | None = None
    brand: str | None = None
    tags: list[str] | None = None
    features: list[str] | None = None
    images: list[ImageSchema] | None = Field(default=None, min_length=1)
    stock: int | None = Field(default=None, ge=0)
    low_stock_threshold: int | None = Field(default=None, ge=0)
    is_active: bool | None = None
    is_featured: bool | None = None


class AddReviewRequest(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: str | None = Field(default=None, max_length=500)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class ProductSchema(BaseModel):
    id: str
    name: str
    description: str
    price: float
    category: str
    subcategory: str | None = None
    brand: str | None = None
    tags: list[str]
    features: list[str]
    images: list[ImageSchema]
    stock: int
    stock_status: str
    low_stock_threshold: int
    is_active: bool
    is_featured: bool
    is_deleted: bool
    deleted_at: datetime | None = None
    rating: RatingSchema
    reviews: list[ReviewSchema]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_product(cls, product: Product) -> "ProductSchema":
        rating = product.rating
        return cls(
            id=str(product.id),
            name=product.name,
            description=product.description or "",
            price=product.price,
            category=product.category,
            subcategory=product.subcategory,
            brand=product.brand,
            tags=product.tags,
            features=product.features,
            images=[ImageSchema(url=image.url, alt=image.alt) for image in product.images],
            stock=product.stock,
            stock_status=product.stock_status,
            low_stock_threshold=product.low_stock_threshold,
            is_active=product.is_active,
            is_featured=product.is_featured,
            is_deleted=product.is_deleted,
            deleted_at=product.deleted_at,
            rating=RatingSchema(average=rating.average if rating else 0.0, count=rating.count if rating else 0),
            reviews=[
                ReviewSchema(
                    user_id=str(review.user_id),
                    rating=review.rating,
                    comment=review.comment,
                    created_at=review.created_at,
                )
                for review in product.reviews
            ],
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


class ProductResponse(BaseModel):
    success: bool = True
    message: str | None = None
    data: ProductSchema


class ProductListResponse(BaseModel):
    success: bool = True
    data: list[ProductSchema]
    pagination: PaginationSchema


class ValuesResponse(BaseModel):
    success: bool = True
    data: list[str]
