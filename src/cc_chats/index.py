"""The chat index: one object per process, passed to whoever needs it."""

import logging
import threading
from collections.abc import Callable
from pathlib import Path

from cc_chats import searcher, storage, summaries, viewer
from cc_chats.config import Settings
from cc_chats.indexer import sync_index
from cc_chats.models import (
    ChatSession,
    IndexStats,
    MemoryFile,
    ProjectStats,
    SearchResult,
    SessionListing,
    Summary,
    SummaryType,
    SyncResult,
)
from cc_chats.paths import decode_project_path, encode_project_path

logger = logging.getLogger(__name__)


class ChatIndex:
    """Full-text index and summary cache over a Claude projects directory.

    All access to the connection is serialised on the instance, so a sync
    in progress is never observed half-applied by another thread and two
    syncs never run at once.

    Args:
        db_path: SQLite file, or ``":memory:"``.
        projects_dir: Directory holding one subdirectory per project.
        decode: Maps an encoded project id to its absolute path.
    """

    def __init__(
        self,
        db_path: Path | str,
        projects_dir: Path,
        decode: Callable[[str], str] = decode_project_path,
    ):
        self.projects_dir = Path(projects_dir)
        self.decode = decode
        self.conn = storage.ensure_index_exists(db_path)
        self._lock = threading.RLock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChatIndex":
        return cls(settings.get_db_path(), settings.get_projects_dir())

    def __enter__(self) -> "ChatIndex":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        with self._lock:
            self.conn.close()

    def sync(self) -> SyncResult:
        """Bring the index in line with the transcripts on disk."""
        with self._lock:
            return sync_index(self.conn, self.projects_dir, self.decode)

    def rebuild(self) -> SyncResult:
        """Drop every indexed file and index the projects directory from scratch."""
        with self._lock:
            return sync_index(self.conn, self.projects_dir, self.decode, force=True)

    def search(
        self, query: str, limit: int = 50, project: str | None = None
    ) -> list[SearchResult]:
        with self._lock:
            return searcher.search(
                self.conn, query, limit=limit, project=project, decode=self.decode
            )

    def get_index_stats(self) -> IndexStats:
        with self._lock:
            return storage.get_index_stats(self.conn)

    def last_synced(self) -> str | None:
        with self._lock:
            return storage.get_metadata(self.conn, "last_synced")

    def get_project_stats(self) -> dict[str, ProjectStats]:
        """Per-project counts, syncing first if nothing has been indexed."""
        with self._lock:
            if storage.get_index_stats(self.conn).file_count == 0:
                self.sync()
            return storage.get_project_stats(self.conn)

    def get_session_summaries_from_db(self, project_path: str) -> list[SessionListing]:
        with self._lock:
            return storage.get_session_listings(self.conn, project_path)

    def get_session_message_count(self, project_path: str, session_id: str) -> int | None:
        with self._lock:
            return storage.get_session_message_count(self.conn, project_path, session_id)

    def get_summary(
        self, summary_type: SummaryType, target_id: str, project_path: str
    ) -> Summary | None:
        with self._lock:
            return summaries.get_summary(self.conn, summary_type, target_id, project_path)

    def save_summary(self, summary: Summary) -> Summary:
        with self._lock, storage.transaction(self.conn):
            return summaries.save_summary(self.conn, summary)

    def get_session_summaries(self, project_path: str) -> list[Summary]:
        with self._lock:
            return summaries.get_session_summaries(self.conn, project_path)

    def rename_project_in_index(self, old: str, new: str) -> None:
        """Move everything stored under one encoded project id to another."""
        with self._lock, storage.transaction(self.conn):
            storage.rename_project(self.conn, old, new)
        logger.info("Renamed project %s to %s in index", old, new)

    def get_session(self, project_path: str, session_id: str) -> ChatSession | None:
        """Load a full transcript from disk; the index is not consulted."""
        return viewer.load_session(self.projects_dir, project_path, session_id, self.decode)

    def get_project_memory(self, project_path: str) -> list[MemoryFile] | None:
        return viewer.list_memory_files(self.projects_dir, project_path)

    def session_path(self, project_path: str, session_id: str) -> Path:
        return self.projects_dir / project_path / f"{session_id}.jsonl"

    @staticmethod
    def encode(path: str) -> str:
        return encode_project_path(path)

    def decode_path(self, encoded: str) -> str:
        return self.decode(encoded)
