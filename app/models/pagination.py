"""Paginated list envelope shared by every list endpoint."""

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class PageParams(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PageMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class Page(BaseModel, Generic[T]):
    data: list[T]
    pagination: PageMeta

    @classmethod
    def build(cls, items: list[T], params: PageParams, total: int) -> "Page[T]":
        return cls(
            data=items,
            pagination=PageMeta(
                page=params.page,
                limit=params.limit,
                total=total,
                total_pages=math.ceil(total / params.limit) if total else 0,
            ),
        )
