"""Query-string paging for the report, user and complaint lists."""

import math

from fastapi import Query
from pydantic import BaseModel
from pydantic.alias_generators import to_snake

MAX_PAGE_SIZE = 100


class PageMeta(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class PaginationParams:
    """FastAPI dependency for `?page=1&limit=20&sort=updatedAt&order=desc`.

    Clients send camelCase field names; `sort` is normalised to the snake_case
    column name. Unknown columns are ignored by the repository.
    """

    def __init__(
        self,
        page: int = Query(default=1, ge=1, description="Page number (1-based)"),
        limit: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE, description="Items per page"),
        sort: str = Query(
            default="created_at", max_length=50, pattern=r"^[A-Za-z_]+$", description="Sort field"
        ),
        order: str = Query(default="desc", pattern="^(asc|desc)$", description="Sort order"),
    ):
        self.page = page
        self.limit = limit
        self.sort = to_snake(sort)
        self.order = order

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def meta(self, total: int) -> PageMeta:
        return PageMeta(
            total=total, page=self.page, limit=self.limit, pages=math.ceil(total / self.limit)
        )
