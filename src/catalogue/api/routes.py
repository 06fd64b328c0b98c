"""FastAPI endpoints for the Catalogue domain."""

from typing import Literal

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from catalogue.api.schemas import (
    AddReviewRequest,
    CreateProductRequest,
    ProductListResponse,
    ProductResponse,
    ProductSchema,
    UpdateProductRequest,
    ValuesResponse,
)
from catalogue.product.management import (
    CreateProduct,
    DeleteProduct,
    RestoreProduct,
    UpdateProduct,
    list_deleted,
)
from catalogue.product.product import Product
from catalogue.product.reviews import AddReview
from catalogue.product.search import DEFAULT_PAGE_SIZE, ProductQuery, SortBy, search_products
from identity.access import require_admin, require_permission
from identity.principal import Principal, current_principal, optional_principal

product_router = APIRouter(prefix="/products", tags=["products"])


def _product_response(product_id: str, message: str | None = None) -> ProductResponse:
    product = current_domain.repository_for(Product).get_any(product_id)
    return ProductResponse(message=message, data=ProductSchema.from_product(product))


# --- Public reads ---


@product_router.get("", response_model=ProductListResponse)
async def list_products(
    search: str | None = None,
    category: str | None = None,
    subcategory: str | None = None,
    brand: str | None = None,
    min_price: float | None = Query(default=None, ge=0),
    max_price: float | None = Query(default=None, ge=0),
    min_rating: float | None = Query(default=None, ge=0, le=5),
    in_stock: bool = False,
    featured: bool = False,
    tags: list[str] = Query(default=[]),
    include_inactive: bool = False,
    sort_by: SortBy | None = None,
    sort_order: Literal["asc", "desc"] = "asc",
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=100),
    principal: Principal | None = Depends(optional_principal),
) -> ProductListResponse:
    """Inactive products are listed only for signed-in admins who ask for them."""
    query = ProductQuery(
        search=search,
        category=category,
        subcategory=subcategory,
        brand=brand,
        min_price=min_price,
        max_price=max_price,
        min_rating=min_rating,
        in_stock=in_stock,
        featured=featured,
        tags=tags,
        include_inactive=include_inactive and principal is not None and principal.is_admin,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    products, pagination = search_products(current_domain.repository_for(Product), query)
    return ProductListResponse(
        data=[ProductSchema.from_product(p) for p in products],
        pagination=pagination.to_dict(),
    )


@product_router.get("/categories", response_model=ValuesResponse)
async def list_categories() -> ValuesResponse:
    return ValuesResponse(data=current_domain.repository_for(Product).categories())


@product_router.get("/brands", response_model=ValuesResponse)
async def list_brands() -> ValuesResponse:
    return ValuesResponse(data=current_domain.repository_for(Product).brands())


@product_router.get("/deleted/all", response_model=ProductListResponse)
async def list_deleted_products(
    search: str | None = None,
    category: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    principal: Principal = Depends(current_principal),
) -> ProductListResponse:
    require_admin(principal)
    products, pagination = list_deleted(
        current_domain.repository_for(Product), page=page, limit=limit, search=search, category=category
    )
    return ProductListResponse(
        data=[ProductSchema.from_product(p) for p in products],
        pagination=pagination.to_dict(),
    )


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str,
    principal: Principal | None = Depends(optional_principal),
) -> ProductResponse:
    """Soft-deleted products are visible to admins only."""
    repo = current_domain.repository_for(Product)
    if principal is not None and principal.is_admin:
        product = repo.get_any(product_id)
    else:
        product = repo.get_product(product_id)
    return ProductResponse(data=ProductSchema.from_product(product))


# --- Admin writes ---


@product_router.post("", status_code=201, response_model=ProductResponse)
async def create_product(
    body: CreateProductRequest,
    principal: Principal = Depends(current_principal),
) -> ProductResponse:
    require_admin(principal)
    command = CreateProduct(created_by=principal.id, **body.model_dump(mode="json"))
    product_id = current_domain.process(command, asynchronous=False)
    return _product_response(product_id, "Product created successfully")


@product_router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    body: UpdateProductRequest,
    principal: Principal = Depends(current_principal),
) -> ProductResponse:
    require_admin(principal)
    command = UpdateProduct(
        product_id=product_id,
        changes=body.model_dump(mode="json", exclude_unset=True),
        updated_by=principal.id,
    )
    current_domain.process(command, asynchronous=False)
    return _product_response(product_id, "Product updated successfully")


@product_router.delete("/{product_id}", response_model=ProductResponse)
async def delete_product(product_id: str, principal: Principal = Depends(current_principal)) -> ProductResponse:
    require_admin(principal)
    current_domain.process(DeleteProduct(product_id=product_id, deleted_by=principal.id), asynchronous=False)
    return _product_response(product_id, "Product deleted successfully")


@product_router.put("/{product_id}/restore", response_model=ProductResponse)
async def restore_product(product_id: str, principal: Principal = Depends(current_principal)) -> ProductResponse:
    require_admin(principal)
    current_domain.process(RestoreProduct(product_id=product_id, restored_by=principal.id), asynchronous=False)
    return _product_response(product_id, "Product restored successfully")


# --- Reviews ---


@product_router.post("/{product_id}/reviews", status_code=201, response_model=ProductResponse)
async def add_review(
    product_id: str,
    body: AddReviewRequest,
    principal: Principal = Depends(current_principal),
) -> ProductResponse:
    require_permission(principal, "read:products")
    command = AddReview(product_id=product_id, user_id=principal.id, rating=body.rating, comment=body.comment)
    current_domain.process(command, asynchronous=False)
    return _product_response(product_id, "Review added successfully")
