import threading
from unittest.mock import MagicMock

import pytest
import requests

from notion_client import (
    CHILD_DATABASE,
    CHILD_PAGE,
    NOTION_VERSION,
    FetchCancelledError,
    NotionAPIError,
    NotionClient,
)


def _session_returning(body: dict) -> MagicMock:
    response = MagicMock()
    response.json.return_value = body
    response.raise_for_status.return_value = None
    session = MagicMock()
    session.request.return_value = response
    return session


def test_client_requires_api_key() -> None:
    with pytest.raises(RuntimeError, match="NOTION_API_KEY"):
        NotionClient("")


def test_list_children_parses_blocks_and_cursor() -> None:
    session = _session_returning({
        "results": [
            {"id": "page-1", "type": CHILD_PAGE},
            {"id": "db-1", "type": CHILD_DATABASE},
            {"id": "para", "type": "paragraph"},
        ],
        "next_cursor": "cursor-2",
        "has_more": True,
    })
    client = NotionClient("secret", session=session)

    children = client.list_children("root", start_cursor="cursor-1")

    assert [(b.id, b.type) for b in children.items] == [
        ("page-1", CHILD_PAGE),
        ("db-1", CHILD_DATABASE),
        ("para", "paragraph"),
    ]
    assert children.next_cursor == "cursor-2"
    assert children.has_more is True

    kwargs = session.request.call_args.kwargs
    assert kwargs["method"] == "GET"
    assert kwargs["url"].endswith("/blocks/root/children")
    assert kwargs["params"] == {"page_size": 100, "start_cursor": "cursor-1"}
    assert kwargs["headers"]["Authorization"] == "Bearer secret"
    assert kwargs["headers"]["Notion-Version"] == NOTION_VERSION


def test_list_children_omits_cursor_on_first_page() -> None:
    session = _session_returning({"results": [], "has_more": False})
    client = NotionClient("secret", session=session)

    children = client.list_children("root")

    assert children.items == []
    assert children.has_more is False
    assert session.request.call_args.kwargs["params"] == {"page_size": 100}


def test_query_database_posts_page_size_and_returns_rows() -> None:
    row = {"object": "page", "created_time": "2025-01-01T00:00:00.000Z", "properties": {}}
    session = _session_returning({"results": [row], "next_cursor": None, "has_more": False})
    client = NotionClient("secret", session=session)

    result = client.query_database("db-1")

    assert result.rows == [row]
    assert result.has_more is False
    kwargs = session.request.call_args.kwargs
    assert kwargs["method"] == "POST"
    assert kwargs["url"].endswith("/databases/db-1/query")
    assert kwargs["json"] == {"page_size": 100}


def test_http_error_is_wrapped_with_status_and_body() -> None:
    error_response = MagicMock()
    error_response.status_code = 404
    error_response.json.return_value = {"message": "Could not find block"}
    response = MagicMock()
    response.raise_for_status.side_effect = requests.HTTPError("404 Client Error", response=error_response)
    session = MagicMock()
    session.request.return_value = response
    client = NotionClient("secret", session=session)

    with pytest.raises(NotionAPIError, match="Could not find block") as exc_info:
        client.list_children("missing")

    assert exc_info.value.status_code == 404


def test_transport_error_is_wrapped() -> None:
    session = MagicMock()
    session.request.side_effect = requests.ConnectionError("connection reset")
    client = NotionClient("secret", session=session)

    with pytest.raises(NotionAPIError, match="connection reset"):
        client.query_database("db-1")

    assert session.request.call_count == 1


def test_non_object_payload_is_rejected() -> None:
    session = _session_returning({})
    session.request.return_value.json.return_value = ["not", "an", "object"]
    client = NotionClient("secret", session=session)

    with pytest.raises(NotionAPIError, match="expected an object"):
        client.list_children("root")


def test_cancelled_request_never_hits_the_network() -> None:
    session = _session_returning({"results": []})
    client = NotionClient("secret", session=session)
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(FetchCancelledError):
        client.list_children("root", cancel_event=cancel)

    session.request.assert_not_called()
