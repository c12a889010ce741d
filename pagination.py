"""Offset pagination over an in-memory, already sorted entry list.

The cursor handed to clients is nothing more than the next offset written as a
decimal string, so a page can be re-requested with ``?cursor=<offset>``.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from models import MAX_PAGE_SIZE, Entry, PaginatedResponse, PaginationParams

_INTEGER_RE = re.compile(r"[+-]?\d+")


def parse_pagination_params(
    page_size: str | None,
    cursor: str | None,
    default_page_size: int,
) -> PaginationParams:
    """Turn raw query-string values into PaginationParams.

    ``page_size`` must be a positive integer and is capped at MAX_PAGE_SIZE;
    anything else falls back to ``default_page_size``. ``cursor`` must be a
    non-negative integer; anything else means offset 0.
    """
    effective_size = min(max(default_page_size, 1), MAX_PAGE_SIZE)
    size = _parse_int(page_size)
    if size is not None and size > 0:
        effective_size = min(size, MAX_PAGE_SIZE)

    offset = 0
    parsed_cursor = _parse_int(cursor)
    if parsed_cursor is not None and parsed_cursor >= 0:
        offset = parsed_cursor

    return PaginationParams(cursor=cursor or "", page_size=effective_size, offset=offset)


def apply_pagination(entries: Sequence[Entry], params: PaginationParams) -> PaginatedResponse:
    """Slice one page out of ``entries``. An offset past the end yields an empty last page."""
    total = len(entries)
    next_offset = params.offset + params.page_size
    has_more = next_offset < total

    page: list[Entry] = []
    if params.offset < total:
        page = list(entries[params.offset:min(next_offset, total)])

    return PaginatedResponse(
        entries=page,
        next_cursor=str(next_offset) if has_more else "",
        has_more=has_more,
    )


def _parse_int(raw: str | None) -> int | None:
    if raw is None:
        return None
    value = raw.strip()
    if not _INTEGER_RE.fullmatch(value):
        return None
    return int(value)
