"""HTTP surface: flattened, paginated views over the Notion content hierarchy."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
import time

from fastapi import APIRouter, FastAPI, HTTPException, Query, Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.concurrency import run_in_threadpool

from config import Settings, load_settings, require
from content_pipeline import ContentClient, ContentFetchError, fetch_all_entries
from entries import filter_video_entries, filter_web_entries, sort_entries_by_creation_time
from models import Entry, Introduction
from notion_client import NotionClient
from pagination import apply_pagination, parse_pagination_params

LOGGER = logging.getLogger(__name__)

DISCONNECT_POLL_SECONDS = 0.25

INTRODUCTION = Introduction(
    title="Open Source Content API",
    description=(
        "For the past three years, I've been tracking the content I consume. It began as a simple "
        "behavioral experiment aimed at predicting how my consumption shapes my thinking and "
        "problem-solving approaches.\n"
        "Over time, it evolved into a curious pursuit and a core thesis on how I operate, "
        "Personal Databases.\n"
        "This open API consolidates all the content I consume, making it embeddable and paving "
        "the way for innovative applications powered by this dataset—especially in an era "
        "dominated by LLMs."
    ),
    thesis="https://www.amantulsyan.com/personal-databases",
    github_link="https://github.com/amantulsyan35/open-source-content/tree/main",
)

router = APIRouter()


@router.get("/")
def introduction() -> dict:
    return INTRODUCTION.to_dict()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/v1")
async def list_entries(
    request: Request,
    page_size: str | None = Query(None, alias="pageSize"),
    cursor: str | None = None,
) -> dict:
    started = time.perf_counter()
    settings: Settings = request.app.state.settings
    params = parse_pagination_params(page_size, cursor, settings.default_page_size)

    response = apply_pagination(await _fetch_sorted_entries(request), params)

    LOGGER.info(
        "Total execution time: %.3fs (offset=%s page_size=%s returned=%s)",
        time.perf_counter() - started,
        params.offset,
        params.page_size,
        len(response.entries),
    )
    return response.to_dict()


@router.get("/v1/youtube")
async def list_youtube_entries(request: Request) -> dict:
    video = filter_video_entries(await _fetch_sorted_entries(request))
    return {"data": [entry.to_dict() for entry in video]}


@router.get("/v1/web")
async def list_web_entries(request: Request) -> dict:
    web = filter_web_entries(await _fetch_sorted_entries(request))
    return {"data": [entry.to_dict() for entry in web]}


async def _fetch_sorted_entries(request: Request) -> list[Entry]:
    """Run the pipeline on the threadpool, cancelling it if the client goes away."""
    settings: Settings = request.app.state.settings
    cancel_event = threading.Event()
    watcher = asyncio.create_task(watch_disconnect(request, cancel_event))
    try:
        entries = await run_in_threadpool(
            fetch_all_entries,
            request.app.state.content_client,
            settings.notion_root_page_id,
            max_workers=settings.max_workers,
            follow_database_cursors=settings.follow_database_cursors,
            cancel_event=cancel_event,
        )
    except ContentFetchError as exc:
        LOGGER.error("Fetching entries failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    finally:
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher
    return sort_entries_by_creation_time(entries)


async def watch_disconnect(
    request: Request,
    cancel_event: threading.Event,
    poll_seconds: float = DISCONNECT_POLL_SECONDS,
) -> None:
    """Set ``cancel_event`` once the client disconnects."""
    while not cancel_event.is_set():
        if await request.is_disconnected():
            LOGGER.info("Client disconnected from %s, cancelling fetch", request.url.path)
            cancel_event.set()
            return
        await asyncio.sleep(poll_seconds)


def create_app(settings: Settings | None = None, client: ContentClient | None = None) -> FastAPI:
    """Build the API. ``client`` defaults to a NotionClient built from ``settings``."""
    settings = settings or load_settings()
    require(settings.notion_root_page_id, "NOTION_ROOT_PAGE_ID")
    if client is None:
        client = NotionClient(settings.notion_api_key, timeout=settings.timeout_seconds)

    app = FastAPI(title=INTRODUCTION.title)
    app.state.settings = settings
    app.state.content_client = client

    # Per-client-IP limit shared by every route, kept in process memory.
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
        storage_uri="memory://",
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    app.include_router(router)
    return app
