"""Discovery-and-aggregation pipeline over the Notion page hierarchy.

The root page holds child pages, each child page holds databases, and each
database row becomes one Entry:

    root page -> child pages -> child databases -> rows

Stage 1 walks the root page sequentially and is fatal on failure. Stages 2
and 3 fan out one task per child page / database on a bounded thread pool;
a failing task is logged and contributes nothing. Each task returns its own
list and the lists are merged once after the stage has joined.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import UTC, datetime
from typing import Any, Protocol, TypeVar

from models import Entry
from notion_client import (
    CHILD_DATABASE,
    CHILD_PAGE,
    MAX_NOTION_PAGE_SIZE,
    BlockChildren,
    DatabaseQuery,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8
TITLE_PROPERTY = "Name"
LINK_PROPERTY = "Link"
UNKNOWN_CREATED_AT = datetime.min.replace(tzinfo=UTC)

T = TypeVar("T")
R = TypeVar("R")


class ContentClient(Protocol):
    def list_children(
        self,
        block_id: str,
        start_cursor: str | None = None,
        page_size: int = MAX_NOTION_PAGE_SIZE,
        cancel_event: threading.Event | None = None,
    ) -> BlockChildren: ...

    def query_database(
        self,
        database_id: str,
        page_size: int = MAX_NOTION_PAGE_SIZE,
        start_cursor: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> DatabaseQuery: ...


class ContentFetchError(RuntimeError):
    """The root page could not be walked, so no entries can be produced."""


def fetch_all_entries(
    client: ContentClient,
    root_page_id: str,
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
    follow_database_cursors: bool = False,
    cancel_event: threading.Event | None = None,
) -> list[Entry]:
    """Walk the whole hierarchy under ``root_page_id`` and return every entry.

    Raises ContentFetchError only when the root page listing fails. Failures
    inside individual child pages or databases shrink the result silently
    (apart from a warning log). The returned order is unspecified; callers sort.
    """
    page_ids = list_child_page_ids(client, root_page_id, cancel_event=cancel_event)
    database_ids = discover_database_ids(
        client, page_ids, max_workers=max_workers, cancel_event=cancel_event
    )
    return collect_entries(
        client,
        database_ids,
        max_workers=max_workers,
        follow_database_cursors=follow_database_cursors,
        cancel_event=cancel_event,
    )


def list_child_page_ids(
    client: ContentClient,
    root_page_id: str,
    *,
    cancel_event: threading.Event | None = None,
) -> list[str]:
    """Follow the root page's child cursor to the end, keeping child page ids in order."""
    page_ids: list[str] = []
    cursor: str | None = None

    while True:
        try:
            children = client.list_children(
                root_page_id,
                start_cursor=cursor,
                page_size=MAX_NOTION_PAGE_SIZE,
                cancel_event=cancel_event,
            )
        except Exception as exc:
            raise ContentFetchError(f"failed to get child pages: {exc}") from exc

        page_ids.extend(block.id for block in children.items if block.type == CHILD_PAGE)

        if not children.has_more or not children.next_cursor:
            break
        cursor = children.next_cursor

    LOGGER.info("Root page %s: found %s child pages", root_page_id, len(page_ids))
    return page_ids


def discover_database_ids(
    client: ContentClient,
    page_ids: Sequence[str],
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
    cancel_event: threading.Event | None = None,
) -> list[str]:
    """List each child page once and collect the databases nested directly under it."""

    def databases_in_page(page_id: str) -> list[str]:
        # Only the first page of children is read for each child page.
        children = client.list_children(page_id, cancel_event=cancel_event)
        return [block.id for block in children.items if block.type == CHILD_DATABASE]

    found = _fan_out(page_ids, databases_in_page, max_workers=max_workers, stage="child page")
    database_ids = list(dict.fromkeys(found))
    LOGGER.info(
        "Discovered %s databases across %s child pages", len(database_ids), len(page_ids)
    )
    return database_ids


def collect_entries(
    client: ContentClient,
    database_ids: Sequence[str],
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
    follow_database_cursors: bool = False,
    cancel_event: threading.Event | None = None,
) -> list[Entry]:
    """Query every database and turn each row into an Entry."""

    def entries_in_database(database_id: str) -> list[Entry]:
        rows: list[dict[str, Any]] = []
        cursor: str | None = None
        while True:
            result = client.query_database(
                database_id,
                page_size=MAX_NOTION_PAGE_SIZE,
                start_cursor=cursor,
                cancel_event=cancel_event,
            )
            rows.extend(result.rows)
            if not result.has_more or not result.next_cursor:
                break
            if not follow_database_cursors:
                LOGGER.warning(
                    "Database %s has more than %s rows; only the first page was read",
                    database_id,
                    len(rows),
                )
                break
            cursor = result.next_cursor
        return [entry_from_row(row) for row in rows]

    entries = _fan_out(
        database_ids, entries_in_database, max_workers=max_workers, stage="database"
    )
    LOGGER.info("Collected %s entries from %s databases", len(entries), len(database_ids))
    return entries


def entry_from_row(row: dict[str, Any]) -> Entry:
    """Normalize one database row. Missing Name/Link values become empty strings.

    A row never fails on its own: a missing or malformed created_time becomes
    UNKNOWN_CREATED_AT so the rest of the database is still served.
    """
    properties = row.get("properties") if isinstance(row.get("properties"), dict) else {}
    return Entry(
        title=_title_text(properties.get(TITLE_PROPERTY)),
        url=_url_value(properties.get(LINK_PROPERTY)),
        created_at=_parse_created_time(row.get("created_time")),
    )


def _fan_out(
    items: Iterable[T],
    task: Callable[[T], list[R]],
    *,
    max_workers: int,
    stage: str,
) -> list[R]:
    """Run ``task`` once per item on a bounded pool and merge the results after the join.

    A task that raises is logged and skipped; its siblings keep running.
    Results are concatenated in submission order.
    """
    items = list(items)
    if not items:
        return []

    merged: list[R] = []
    failed = 0
    with ThreadPoolExecutor(
        max_workers=max(1, min(max_workers, len(items))),
        thread_name_prefix=f"notion-{stage.replace(' ', '-')}",
    ) as executor:
        futures = [executor.submit(task, item) for item in items]
        wait(futures)

    for item, future in zip(items, futures):
        try:
            merged.extend(future.result())
        except Exception as exc:
            failed += 1
            LOGGER.warning("Skipping %s %s: %s", stage, item, exc)

    if failed:
        LOGGER.warning("%s of %s %s tasks failed", failed, len(items), stage)
    return merged


def _title_text(prop: Any) -> str:
    if not isinstance(prop, dict) or prop.get("type", "title") != "title":
        return ""
    segments = prop.get("title")
    if not isinstance(segments, list) or not segments or not isinstance(segments[0], dict):
        return ""
    text = segments[0].get("plain_text")
    return text if isinstance(text, str) else ""


def _url_value(prop: Any) -> str:
    if not isinstance(prop, dict) or prop.get("type", "url") != "url":
        return ""
    value = prop.get("url")
    return value if isinstance(value, str) else ""

def _parse_created_time(raw: Any) -> datetime:
    """Parse a row's created_time; unreadable values sort last as UNKNOWN_CREATED_AT."""
    if not isinstance(raw, str) or not raw:
        LOGGER.warning("Row has no created_time (%r), using %s", raw, UNKNOWN_CREATED_AT)
        return UNKNOWN_CREATED_AT

    # Notion returns ISO 8601 timestamps with a trailing Z.
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        LOGGER.warning("Row has unparseable created_time %r, using %s", raw, UNKNOWN_CREATED_AT)
        return UNKNOWN_CREATED_AT
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
