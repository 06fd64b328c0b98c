"""Page/limit arithmetic shared by catalogue search and order listings."""

import math
from dataclasses import dataclass

from pydantic import BaseModel

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total: int = 0

    @classmethod
    def build(cls, page: int | None, limit: int | None, default_limit: int = 10) -> "Pagination":
        page = max(1, page or 1)
        limit = min(MAX_PAGE_SIZE, max(1, limit or default_limit))
        return cls(page=page, limit=limit)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    def with_total(self, total: int) -> "Pagination":
        return Pagination(page=self.page, limit=self.limit, total=total)

    def to_dict(self) -> dict:
        return {
            "current_page": self.page,
            "total_pages": self.pages,
            "total_items": self.total,
            "items_per_page": self.limit,
            "has_next": self.has_next,
            "has_prev": self.has_prev,
        }


class PaginationSchema(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next: bool
    has_prev: bool
