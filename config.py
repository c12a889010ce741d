"""Environment-driven settings for the content API."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from models import MAX_PAGE_SIZE

LOGGER = logging.getLogger(__name__)

_DEFAULT_PAGE_SIZE = 20
_DEFAULT_MAX_WORKERS = 8
_DEFAULT_TIMEOUT_SECONDS = 30
# Notion allows roughly 3 requests per second with short bursts.
_DEFAULT_RATE_LIMIT = "9/3 seconds"


@dataclass(frozen=True, slots=True)
class Settings:
    notion_api_key: str = ""
    notion_root_page_id: str = ""
    server_host: str = "0.0.0.0"
    server_port: int = 1323
    default_page_size: int = _DEFAULT_PAGE_SIZE
    rate_limit: str = _DEFAULT_RATE_LIMIT
    max_workers: int = _DEFAULT_MAX_WORKERS
    timeout_seconds: int = _DEFAULT_TIMEOUT_SECONDS
    follow_database_cursors: bool = False


def load_settings() -> Settings:
    """Build Settings from the process environment.

    Call ``load_dotenv()`` first if values should come from a ``.env`` file.
    Malformed numbers fall back to their defaults instead of failing startup.
    """
    page_size = _env_int("DEFAULT_PAGE_SIZE", _DEFAULT_PAGE_SIZE)
    return Settings(
        notion_api_key=os.getenv("NOTION_API_KEY", ""),
        notion_root_page_id=os.getenv("NOTION_ROOT_PAGE_ID", ""),
        server_host=os.getenv("SERVER_HOST") or "0.0.0.0",
        server_port=_env_int("SERVER_PORT", 1323),
        default_page_size=min(max(page_size, 1), MAX_PAGE_SIZE),
        rate_limit=os.getenv("RATE_LIMIT") or _DEFAULT_RATE_LIMIT,
        max_workers=max(_env_int("NOTION_MAX_WORKERS", _DEFAULT_MAX_WORKERS), 1),
        timeout_seconds=max(_env_int("NOTION_TIMEOUT_SECONDS", _DEFAULT_TIMEOUT_SECONDS), 1),
        follow_database_cursors=_env_bool("NOTION_FOLLOW_DATABASE_CURSORS"),
    )


def require(value: str, name: str) -> str:
    if not value:
        raise RuntimeError(f"{name} environment variable is required")
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        LOGGER.warning("Ignoring invalid %s=%r, using default %s", name, raw, default)
        return default


def _env_bool(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}
