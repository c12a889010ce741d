"""Ordering and URL-based classification of content entries."""

from __future__ import annotations

from collections.abc import Iterable

from models import Entry

# Plain substring match, no URL parsing: covers www.youtube.com, m.youtube.com and youtu.be links.
_VIDEO_URL_MARKERS: tuple[str, ...] = ("youtube.com", "youtu.be")


def sort_entries_by_creation_time(entries: Iterable[Entry]) -> list[Entry]:
    """Return the entries newest first. Equal timestamps keep their input order."""
    return sorted(entries, key=lambda entry: entry.created_at, reverse=True)


def is_video_url(url: str) -> bool:
    return any(marker in url for marker in _VIDEO_URL_MARKERS)


def classify_entries(entries: Iterable[Entry]) -> tuple[list[Entry], list[Entry]]:
    """Split entries into (video, other), preserving relative order in both lists."""
    video: list[Entry] = []
    other: list[Entry] = []
    for entry in entries:
        (video if is_video_url(entry.url) else other).append(entry)
    return video, other


def filter_video_entries(entries: Iterable[Entry]) -> list[Entry]:
    return classify_entries(entries)[0]


def filter_web_entries(entries: Iterable[Entry]) -> list[Entry]:
    return classify_entries(entries)[1]
