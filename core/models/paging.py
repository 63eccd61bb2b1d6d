# =============================================================================
# core/models/paging.py - Paging Schemas
# =============================================================================
# Shared paging contract for list endpoints:
# - Pageable: anything exposing page / page_size (1-based page)
# - PageParams: query-parameter model implementing Pageable
# - Page: response envelope for one page of items
# - apply_paging(): OFFSET/LIMIT for a SQLAlchemy select
# =============================================================================

import math
from typing import Generic, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, Field, computed_field
from sqlalchemy import Select

from app.serialization import ApiModel

T = TypeVar("T")

MAX_PAGE_SIZE = 100


@runtime_checkable
class Pageable(Protocol):
    """A request for one page of results."""

    @property
    def page(self) -> int: ...

    @property
    def page_size(self) -> int: ...


class PageParams(BaseModel):
    """
    Paging query parameters.

    Example:
        GET /items?page=2&page_size=25
    """
    page: int = Field(default=1, ge=1, description="1-based page number")
    page_size: int = Field(default=20, ge=1, le=MAX_PAGE_SIZE, description="Items per page")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class Page(ApiModel, Generic[T]):
    """One page of results plus totals."""
    items: list[T]
    page: int
    page_size: int
    total: int

    @computed_field
    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.total else 0

    @classmethod
    def create(cls, items: list[T], pageable: Pageable, total: int) -> "Page[T]":
        return cls(items=items, page=pageable.page, page_size=pageable.page_size, total=total)


def apply_paging(statement: Select, pageable: Pageable) -> Select:
    """Restrict a select to the requested page."""
    return statement.offset((pageable.page - 1) * pageable.page_size).limit(pageable.page_size)
