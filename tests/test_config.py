from unittest.mock import patch

import pytest

from config import Settings, load_settings, require


def test_load_settings_defaults() -> None:
    with patch.dict("os.environ", {}, clear=True):
        settings = load_settings()

    assert settings == Settings()
    assert settings.server_port == 1323
    assert settings.default_page_size == 20
    assert settings.follow_database_cursors is False


def test_load_settings_reads_environment() -> None:
    env = {
        "NOTION_API_KEY": "secret",
        "NOTION_ROOT_PAGE_ID": "root",
        "SERVER_PORT": "8080",
        "DEFAULT_PAGE_SIZE": "50",
        "RATE_LIMIT": "10/minute",
        "NOTION_MAX_WORKERS": "4",
        "NOTION_FOLLOW_DATABASE_CURSORS": "true",
    }
    with patch.dict("os.environ", env, clear=True):
        settings = load_settings()

    assert settings.notion_api_key == "secret"
    assert settings.notion_root_page_id == "root"
    assert settings.server_port == 8080
    assert settings.default_page_size == 50
    assert settings.rate_limit == "10/minute"
    assert settings.max_workers == 4
    assert settings.follow_database_cursors is True


def test_invalid_numbers_fall_back_to_defaults() -> None:
    env = {"SERVER_PORT": "http", "DEFAULT_PAGE_SIZE": "lots", "NOTION_MAX_WORKERS": "0"}
    with patch.dict("os.environ", env, clear=True):
        settings = load_settings()

    assert settings.server_port == 1323
    assert settings.default_page_size == 20
    assert settings.max_workers == 1


def test_default_page_size_is_clamped() -> None:
    with patch.dict("os.environ", {"DEFAULT_PAGE_SIZE": "1000"}, clear=True):
        assert load_settings().default_page_size == 100


def test_require() -> None:
    assert require("value", "NAME") == "value"
    with pytest.raises(RuntimeError, match="NAME environment variable is required"):
        require("", "NAME")
