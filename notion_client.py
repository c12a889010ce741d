"""Notion API integration: block children listing and database queries."""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from typing import Any

import requests

from config import require

NOTION_API_BASE_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"
REQUEST_TIMEOUT_SECONDS = 30
MAX_NOTION_PAGE_SIZE = 100

CHILD_PAGE = "child_page"
CHILD_DATABASE = "child_database"


class NotionAPIError(RuntimeError):
    """A Notion request failed at the transport level or returned a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class FetchCancelledError(NotionAPIError):
    """The caller cancelled the fetch before the request was sent."""


@dataclass(frozen=True, slots=True)
class ChildBlock:
    id: str
    type: str


@dataclass(frozen=True, slots=True)
class BlockChildren:
    items: list[ChildBlock] = field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False


@dataclass(frozen=True, slots=True)
class DatabaseQuery:
    rows: list[dict[str, Any]] = field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False


class NotionClient:
    """Thin synchronous client for the two Notion endpoints the pipeline reads.

    Safe to share across worker threads: every call builds its own request and
    the underlying ``requests.Session`` only pools connections.
    """

    def __init__(
        self,
        api_key: str,
        *,
        session: requests.Session | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self._headers = {
            "Authorization": f"Bearer {require(api_key, 'NOTION_API_KEY')}",
            "Notion-Version": NOTION_VERSION,
            "Content-Type": "application/json",
        }
        self._session = session or requests.Session()
        self._timeout = timeout

    def list_children(
        self,
        block_id: str,
        start_cursor: str | None = None,
        page_size: int = MAX_NOTION_PAGE_SIZE,
        cancel_event: threading.Event | None = None,
    ) -> BlockChildren:
        """Return one page of the direct children of a block or page."""
        params: dict[str, Any] = {"page_size": page_size}
        if start_cursor:
            params["start_cursor"] = start_cursor

        body = self._request(
            "GET",
            f"{NOTION_API_BASE_URL}/blocks/{block_id}/children",
            params=params,
            cancel_event=cancel_event,
        )
        items = [
            ChildBlock(id=str(item.get("id", "")), type=str(item.get("type", "")))
            for item in body.get("results", [])
            if isinstance(item, dict)
        ]
        return BlockChildren(
            items=items,
            next_cursor=body.get("next_cursor"),
            has_more=bool(body.get("has_more")),
        )

    def query_database(
        self,
        database_id: str,
        page_size: int = MAX_NOTION_PAGE_SIZE,
        start_cursor: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> DatabaseQuery:
        """Return one page of rows from a database, unfiltered and unsorted."""
        payload: dict[str, Any] = {"page_size": page_size}
        if start_cursor:
            payload["start_cursor"] = start_cursor

        body = self._request(
            "POST",
            f"{NOTION_API_BASE_URL}/databases/{database_id}/query",
            json_payload=payload,
            cancel_event=cancel_event,
        )
        rows = [row for row in body.get("results", []) if isinstance(row, dict)]
        return DatabaseQuery(
            rows=rows,
            next_cursor=body.get("next_cursor"),
            has_more=bool(body.get("has_more")),
        )

    def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json_payload: dict[str, Any] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> dict[str, Any]:
        """Send one Notion request. Failures are raised, never retried."""
        if cancel_event is not None and cancel_event.is_set():
            raise FetchCancelledError(f"Notion request cancelled: {method} {url}")

        try:
            response = self._session.request(
                method=method,
                url=url,
                headers=self._headers,
                params=params,
                json=json_payload,
                timeout=self._timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            raise NotionAPIError(
                f"Notion API request failed: {exc} {_response_text(exc.response)}".rstrip(),
                status_code=status_code,
            ) from exc
        except requests.RequestException as exc:
            raise NotionAPIError(f"Notion API request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise NotionAPIError(f"Notion API returned invalid JSON for {url}") from exc
        if not isinstance(body, dict):
            raise NotionAPIError(f"Unexpected Notion payload shape for {url}: expected an object")
        return body


def _response_text(response: requests.Response | None) -> str:
    if response is None:
        return ""
    try:
        return json.dumps(response.json())
    except ValueError:
        return response.text
