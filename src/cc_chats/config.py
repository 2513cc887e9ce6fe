"""Configuration and logging setup for cc-chats."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from cc_chats.exceptions import ConfigurationError

# Claude Code data location
CLAUDE_DIR = Path.home() / ".claude"

DEFAULT_SEARCH_LIMIT = 50
MEMORY_DB = ":memory:"


@dataclass
class Settings:
    """Runtime configuration, loaded from CC_CHATS_* environment variables."""

    claude_dir: Path = field(default_factory=lambda: CLAUDE_DIR)
    projects_dir: Path | None = None
    db_path: Path | str | None = None
    search_limit: int = DEFAULT_SEARCH_LIMIT
    claude_command: str = "claude"

    @staticmethod
    def from_env() -> "Settings":
        s = Settings()
        if v := os.environ.get("CC_CHATS_CLAUDE_DIR"):
            s.claude_dir = Path(v).expanduser()
        if v := os.environ.get("CC_CHATS_PROJECTS_DIR"):
            s.projects_dir = Path(v).expanduser()
        if v := os.environ.get("CC_CHATS_DB_PATH"):
            s.db_path = v if v == MEMORY_DB else Path(v).expanduser()
        if v := os.environ.get("CC_CHATS_SEARCH_LIMIT"):
            s.search_limit = _parse_limit(v)
        if v := os.environ.get("CC_CHATS_CLAUDE_COMMAND"):
            s.claude_command = v
        return s

    def get_projects_dir(self) -> Path:
        if self.projects_dir:
            return self.projects_dir
        return self.claude_dir / "projects"

    def get_db_path(self) -> Path | str:
        if self.db_path:
            return self.db_path
        return self.claude_dir / "chat-search.db"


def _parse_limit(value: str) -> int:
    try:
        limit = int(value)
    except ValueError:
        raise ConfigurationError(
            f"CC_CHATS_SEARCH_LIMIT must be an integer, got {value!r}"
        ) from None
    if limit < 1:
        raise ConfigurationError(f"CC_CHATS_SEARCH_LIMIT must be positive, got {limit}")
    return limit


def configure_logging(verbose: bool = False) -> None:
    """Route library logging through rich; WARNING unless verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=verbose)
        ],
        force=True,
    )
