"""Listing and timestamp schemas shared by the pipeline endpoints."""

from datetime import datetime
from typing import Any, Callable, Generic, Sequence, Tuple, TypeVar
from pydantic import BaseModel, Field


T = TypeVar("T")


class PaginationParams(BaseModel):
    """Requested page of a listing; services take it as limit/offset."""

    page: int = Field(default=1, ge=1, description="Page number (1-indexed)")
    page_size: int = Field(default=20, ge=1, le=100, description="Items per page")

    @property
    def limit(self) -> int:
        return self.page_size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class PaginatedResponse(BaseModel, Generic[T]):
    """One page of a listing plus the total number of matches."""

    items: list[T]
    total: int = Field(ge=0, description="Matches across all pages")
    page: int = Field(ge=1)
    page_size: int = Field(ge=1)
    total_pages: int = Field(ge=0)

    @classmethod
    def from_listing(
        cls,
        listing: Tuple[Sequence[Any], int],
        pagination: PaginationParams,
        convert: Callable[[Any], T],
    ) -> "PaginatedResponse[T]":
        """
        Build a page from a service's `(rows, total)` result.

        Args:
            listing: Rows of the requested page and the total match count
            pagination: The page that was requested
            convert: Turns one row into its response item
        """
        rows, total = listing
        return cls(
            items=[convert(row) for row in rows],
            total=total,
            page=pagination.page,
            page_size=pagination.page_size,
            total_pages=-(-total // pagination.page_size),
        )


class TimestampMixin(BaseModel):
    created_at: datetime
    updated_at: datetime
