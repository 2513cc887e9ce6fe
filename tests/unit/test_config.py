"""Tests for environment-driven settings."""

from pathlib import Path

import pytest

from cc_chats.config import DEFAULT_SEARCH_LIMIT, MEMORY_DB, Settings
from cc_chats.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "CC_CHATS_CLAUDE_DIR",
        "CC_CHATS_PROJECTS_DIR",
        "CC_CHATS_DB_PATH",
        "CC_CHATS_SEARCH_LIMIT",
        "CC_CHATS_CLAUDE_COMMAND",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_derive_from_claude_dir(monkeypatch, temp_dir):
    monkeypatch.setenv("CC_CHATS_CLAUDE_DIR", str(temp_dir))

    settings = Settings.from_env()

    assert settings.get_projects_dir() == temp_dir / "projects"
    assert settings.get_db_path() == temp_dir / "chat-search.db"
    assert settings.search_limit == DEFAULT_SEARCH_LIMIT
    assert settings.claude_command == "claude"


def test_explicit_paths_and_memory_db(monkeypatch):
    monkeypatch.setenv("CC_CHATS_PROJECTS_DIR", "/data/projects")
    monkeypatch.setenv("CC_CHATS_DB_PATH", MEMORY_DB)

    settings = Settings.from_env()

    assert settings.get_projects_dir() == Path("/data/projects")
    assert settings.get_db_path() == MEMORY_DB


def test_search_limit_from_env(monkeypatch):
    monkeypatch.setenv("CC_CHATS_SEARCH_LIMIT", "7")
    assert Settings.from_env().search_limit == 7


@pytest.mark.parametrize("value", ["ten", "2.5", "0", "-3"])
def test_invalid_search_limit_is_rejected(monkeypatch, value):
    monkeypatch.setenv("CC_CHATS_SEARCH_LIMIT", value)

    with pytest.raises(ConfigurationError, match="CC_CHATS_SEARCH_LIMIT"):
        Settings.from_env()
