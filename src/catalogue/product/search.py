"""Product search: translate listing parameters into repository criteria."""

from enum import Enum

from protean.utils.query import Q
from pydantic import BaseModel, Field

from catalogue.product.repository import available
from shared.pagination import Pagination

DEFAULT_PAGE_SIZE = 12

_SEARCHABLE_FIELDS = ("name", "description", "brand", "category", "subcategory", "tags", "features")


class SortBy(Enum):
    PRICE = "price"
    RATING = "rating"
    NEWEST = "newest"
    OLDEST = "oldest"
    NAME = "name"
    POPULARITY = "popularity"
    RELEVANCE = "relevance"


class ProductQuery(BaseModel):
    search: str | None = None
    category: str | None = None
    subcategory: str | None = None
    brand: str | None = None
    min_price: float | None = Field(default=None, ge=0)
    max_price: float | None = Field(default=None, ge=0)
    min_rating: float | None = Field(default=None, ge=0, le=5)
    in_stock: bool = False
    featured: bool = False
    tags: list[str] = Field(default_factory=list)
    include_inactive: bool = False
    sort_by: SortBy | None = None
    sort_order: str = Field(default="asc", pattern="^(asc|desc)$")
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=100)


def text_search(term: str) -> Q:
    """Case-insensitive substring match of ``term`` against every searchable field."""
    term = term.strip()
    criteria = Q()
    for field in _SEARCHABLE_FIELDS:
        criteria |= Q(**{f"{field}__icontains": term})
    return criteria


def build_criteria(query: ProductQuery) -> Q:
    """Soft-deleted products never match; inactive ones only when ``include_inactive`` is set."""
    criteria = Q(is_deleted=False) if query.include_inactive else available()

    if (query.search or "").strip():
        criteria &= text_search(query.search)

    if query.category:
        criteria &= Q(category=query.category)
    if query.subcategory:
        criteria &= Q(subcategory=query.subcategory)
    if query.brand:
        criteria &= Q(brand=query.brand)

    if query.min_price is not None:
        criteria &= Q(price__gte=query.min_price)
    if query.max_price is not None:
        criteria &= Q(price__lte=query.max_price)

    if query.min_rating is not None:
        criteria &= Q(rating_average__gte=query.min_rating)
    if query.in_stock:
        criteria &= Q(stock__gt=0)
    if query.featured:
        criteria &= Q(is_featured=True)
    if query.tags:
        criteria &= Q(tags__in=query.tags)

    return criteria


def build_order(query: ProductQuery) -> list[str]:
    descending = "-" if query.sort_order == "desc" else ""
    sort_by = SortBy(query.sort_by) if query.sort_by else None
    searching = bool((query.search or "").strip())

    if sort_by is None or sort_by == SortBy.RELEVANCE:
        # Name order is the closest thing to relevance without a text index
        return ["name"] if searching else ["-created_at"]
    if sort_by == SortBy.PRICE:
        return [f"{descending}price", "-created_at"]
    if sort_by == SortBy.RATING:
        return [f"{descending}rating_average", "-created_at"]
    if sort_by == SortBy.NAME:
        return [f"{descending}name"]
    if sort_by == SortBy.OLDEST:
        return ["created_at"]
    if sort_by == SortBy.POPULARITY:
        return ["-rating_count", "-created_at"]
    return ["-created_at"]


def search_products(repository, query: ProductQuery):
    """Run ``query`` and return ``(products, pagination)``."""
    pagination = Pagination.build(query.page, query.limit, default_limit=DEFAULT_PAGE_SIZE)
    products, total = repository.search(
        build_criteria(query),
        build_order(query),
        offset=pagination.skip,
        limit=pagination.limit,
    )
    return products, pagination.with_total(total)
