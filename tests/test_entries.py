from datetime import UTC, datetime, timedelta

import pytest

from entries import (
    classify_entries,
    filter_video_entries,
    filter_web_entries,
    is_video_url,
    sort_entries_by_creation_time,
)
from models import Entry

_BASE = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


def _entry(title: str, url: str = "https://example.com", hours: int = 0) -> Entry:
    return Entry(title=title, url=url, created_at=_BASE + timedelta(hours=hours))


def test_sort_entries_newest_first() -> None:
    entries = [_entry("old", hours=0), _entry("newest", hours=5), _entry("mid", hours=2)]

    ordered = sort_entries_by_creation_time(entries)

    assert [e.title for e in ordered] == ["newest", "mid", "old"]
    assert all(a.created_at >= b.created_at for a, b in zip(ordered, ordered[1:]))


def test_sort_entries_does_not_mutate_input_and_is_deterministic_on_ties() -> None:
    entries = [_entry("a", hours=1), _entry("b", hours=1), _entry("c", hours=3)]

    first = sort_entries_by_creation_time(entries)
    second = sort_entries_by_creation_time(entries)

    assert [e.title for e in entries] == ["a", "b", "c"]
    assert first == second
    assert [e.title for e in first] == ["c", "a", "b"]


def test_sort_entries_empty() -> None:
    assert sort_entries_by_creation_time([]) == []


@pytest.mark.parametrize("url", [
    "https://youtu.be/xyz",
    "https://www.youtube.com/watch?v=abc",
    "https://m.youtube.com/shorts/abc",
    "see youtube.com later",
])
def test_video_urls(url: str) -> None:
    assert is_video_url(url) is True


@pytest.mark.parametrize("url", [
    "https://example.com",
    "",
    "https://YOUTUBE.COM/watch?v=abc",
    "https://vimeo.com/123",
])
def test_non_video_urls(url: str) -> None:
    assert is_video_url(url) is False


def test_classify_entries_is_a_stable_partition() -> None:
    entries = [
        _entry("web-1", "https://example.com/a"),
        _entry("vid-1", "https://youtu.be/1"),
        _entry("web-2", ""),
        _entry("vid-2", "https://www.youtube.com/watch?v=2"),
        _entry("web-3", "https://blog.example.org"),
    ]

    video, other = classify_entries(entries)

    assert [e.title for e in video] == ["vid-1", "vid-2"]
    assert [e.title for e in other] == ["web-1", "web-2", "web-3"]
    assert len(video) + len(other) == len(entries)
    assert not set(video) & set(other)


def test_filter_helpers_match_classification() -> None:
    entries = [_entry("v", "https://youtu.be/xyz"), _entry("w", "https://example.com")]

    assert filter_video_entries(entries) == [entries[0]]
    assert filter_web_entries(entries) == [entries[1]]
