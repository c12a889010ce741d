"""Shared typed models for the content API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

MAX_PAGE_SIZE = 100


@dataclass(frozen=True, slots=True)
class Entry:
    """One row of a content database, flattened to what the API serves."""

    title: str
    url: str
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class PaginationParams:
    """Validated pagination request. The cursor is the offset as a decimal string."""

    cursor: str
    page_size: int
    offset: int

    def __post_init__(self) -> None:
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {self.page_size}")
        if self.offset < 0:
            raise ValueError(f"offset must be non-negative, got {self.offset}")


@dataclass(frozen=True, slots=True)
class PaginatedResponse:
    entries: list[Entry] = field(default_factory=list)
    next_cursor: str = ""
    has_more: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "entries": [entry.to_dict() for entry in self.entries],
            "nextCursor": self.next_cursor,
            "hasMore": self.has_more,
        }


@dataclass(frozen=True, slots=True)
class Introduction:
    title: str
    description: str
    thesis: str
    github_link: str

    def to_dict(self) -> dict[str, str]:
        return {
            "title": self.title,
            "description": self.description,
            "thesis": self.thesis,
            "github_link": self.github_link,
        }
