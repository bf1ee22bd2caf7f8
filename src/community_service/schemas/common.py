"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

import math
from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of results plus navigation metadata (pages are 0-based)."""

    content: list[T]
    page: int
    size: int
    total_elements: int
    total_pages: int
    first: bool
    last: bool
    has_next: bool
    has_previous: bool

    @classmethod
    def build(cls, content: list[T], *, page: int, size: int, total: int) -> Page[T]:
        """Derive the navigation flags from the page position and total count."""
        total_pages = math.ceil(total / size) if size > 0 else 0
        has_next = page + 1 < total_pages
        return cls(
            content=content,
            page=page,
            size=size,
            total_elements=total,
            total_pages=total_pages,
            first=page == 0,
            last=not has_next,
            has_next=has_next,
            has_previous=page > 0,
        )


class ErrorResponse(BaseModel):
    """Body returned for every handled service error."""

    success: bool = False
    code: str = Field(..., description="Stable machine-readable error code")
    message: str
    timestamp: datetime


class MessageResponse(BaseModel):
    """Plain acknowledgement for operations without a payload."""

    success: bool = True
    message: str
