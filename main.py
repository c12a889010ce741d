"""CLI entrypoint for the Open Source Content API."""

from __future__ import annotations

import argparse
import json
import logging

import uvicorn
from dotenv import load_dotenv

from api import create_app
from config import Settings, load_settings, require
from content_pipeline import fetch_all_entries
from entries import sort_entries_by_creation_time
from notion_client import NotionClient


def parse_args() -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Serve Notion databases as a flat, paginated content API")
    parser.add_argument("--host", default=None, help="Bind host (defaults to SERVER_HOST)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (defaults to SERVER_PORT)")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Root logging level",
    )
    parser.add_argument(
        "--dump",
        action="store_true",
        help="Walk the workspace once, print every entry as JSON (newest first) and exit",
    )
    return parser.parse_args()


def dump_entries(settings: Settings) -> None:
    """Run the pipeline once and print the sorted entries to stdout."""
    client = NotionClient(settings.notion_api_key, timeout=settings.timeout_seconds)
    entries = fetch_all_entries(
        client,
        require(settings.notion_root_page_id, "NOTION_ROOT_PAGE_ID"),
        max_workers=settings.max_workers,
        follow_database_cursors=settings.follow_database_cursors,
    )
    entries = sort_entries_by_creation_time(entries)
    logging.info("Fetched %s entries", len(entries))
    print(json.dumps([entry.to_dict() for entry in entries], indent=2, ensure_ascii=False))


def main() -> None:
    """Initialize config and serve the API (or dump entries once)."""
    load_dotenv()
    args = parse_args()
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(message)s")
    settings = load_settings()

    if args.dump:
        dump_entries(settings)
        return

    host = args.host or settings.server_host
    port = args.port or settings.server_port
    logging.info("Starting server on %s:%s", host, port)
    uvicorn.run(create_app(settings), host=host, port=port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
