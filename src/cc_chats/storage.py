"""SQLite storage for the cc-chats index."""

import contextlib
import logging
import sqlite3
from collections.abc import Callable, Iterator
from pathlib import Path

from cc_chats.config import MEMORY_DB
from cc_chats.models import IndexStats, ProjectStats, SessionListing

logger = logging.getLogger(__name__)

FIRST_MESSAGE_CHARS = 500


def get_connection(db_path: Path | str) -> sqlite3.Connection:
    """Open the index database.

    The connection runs in autocommit mode; writes are grouped with
    :func:`transaction`.
    """
    if str(db_path) != MEMORY_DB:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), isolation_level=None, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


@contextlib.contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run a block atomically: commit on success, roll back on any error."""
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        # SQLite may already have rolled back on its own (SQLITE_FULL, ...)
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise
    conn.execute("COMMIT")


def _create_base_schema(conn: sqlite3.Connection) -> None:
    conn.execute("""
        CREATE TABLE IF NOT EXISTS indexed_files (
            path TEXT PRIMARY KEY,
            mtime INTEGER NOT NULL,
            session_id TEXT NOT NULL,
            project_path TEXT NOT NULL
        )
    """)
    conn.execute("""
        CREATE VIRTUAL TABLE IF NOT EXISTS messages_fts USING fts5(
            content,
            session_id,
            project_path,
            message_uuid,
            user_type,
            timestamp
        )
    """)
    conn.execute("""
        CREATE TABLE IF NOT EXISTS summaries (
            id TEXT PRIMARY KEY,
            type TEXT NOT NULL,
            target_id TEXT NOT NULL,
            project_path TEXT NOT NULL,
            content TEXT NOT NULL,
            created_at INTEGER NOT NULL,
            message_count INTEGER NOT NULL
        )
    """)
    conn.execute("""
        CREATE INDEX IF NOT EXISTS idx_summaries_lookup
            ON summaries(type, target_id, project_path)
    """)
    # Metadata table for tracking index state
    conn.execute("""
        CREATE TABLE IF NOT EXISTS metadata (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
    """)


def _add_file_metadata(conn: sqlite3.Connection) -> None:
    conn.execute(
        "ALTER TABLE indexed_files ADD COLUMN visible_message_count INTEGER NOT NULL DEFAULT 0"
    )
    conn.execute("ALTER TABLE indexed_files ADD COLUMN first_message TEXT NOT NULL DEFAULT ''")
    # Existing rows lack the new columns' values; force a full reindex
    conn.execute("DELETE FROM indexed_files")
    conn.execute("DELETE FROM messages_fts")


def _unindex_message_metadata(conn: sqlite3.Connection) -> None:
    # Only message text is tokenized; the rest is stored for filtering and display
    conn.execute("DROP TABLE IF EXISTS messages_fts")
    conn.execute("""
        CREATE VIRTUAL TABLE messages_fts USING fts5(
            content,
            session_id UNINDEXED,
            project_path UNINDEXED,
            message_uuid UNINDEXED,
            user_type UNINDEXED,
            timestamp UNINDEXED
        )
    """)
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_indexed_files_project ON indexed_files(project_path)"
    )
    conn.execute("DELETE FROM indexed_files")


MIGRATIONS: list[Callable[[sqlite3.Connection], None]] = [
    _create_base_schema,
    _add_file_metadata,
    _unindex_message_metadata,
]


def get_schema_version(conn: sqlite3.Connection) -> int:
    return conn.execute("PRAGMA user_version").fetchone()[0]


def run_migrations(conn: sqlite3.Connection) -> None:
    """Apply pending migrations in order, one transaction each."""
    current = get_schema_version(conn)
    for version in range(current, len(MIGRATIONS)):
        with transaction(conn):
            MIGRATIONS[version](conn)
            conn.execute(f"PRAGMA user_version = {version + 1}")
        logger.info("Migrated index schema to version %d", version + 1)


def ensure_index_exists(db_path: Path | str) -> sqlite3.Connection:
    """Open the index database and bring its schema up to date."""
    conn = get_connection(db_path)
    run_migrations(conn)
    return conn


def set_metadata(conn: sqlite3.Connection, key: str, value: str) -> None:
    conn.execute(
        "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
        (key, value),
    )


def get_metadata(conn: sqlite3.Connection, key: str) -> str | None:
    row = conn.execute("SELECT value FROM metadata WHERE key = ?", (key,)).fetchone()
    return row["value"] if row else None


def get_indexed_mtimes(conn: sqlite3.Connection) -> dict[str, int]:
    """Map every indexed file path to its stored mtime."""
    rows = conn.execute("SELECT path, mtime FROM indexed_files").fetchall()
    return {row["path"]: row["mtime"] for row in rows}


def insert_message(
    conn: sqlite3.Connection,
    content: str,
    session_id: str,
    project_path: str,
    message_uuid: str,
    role: str,
    timestamp: int,
) -> None:
    conn.execute(
        """
        INSERT INTO messages_fts (content, session_id, project_path, message_uuid, user_type, timestamp)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (content, session_id, project_path, message_uuid, role, str(timestamp)),
    )


def save_indexed_file(
    conn: sqlite3.Connection,
    path: str,
    mtime: int,
    session_id: str,
    project_path: str,
    visible_message_count: int,
    first_message: str,
) -> None:
    conn.execute(
        """
        INSERT OR REPLACE INTO indexed_files
            (path, mtime, session_id, project_path, visible_message_count, first_message)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (
            path,
            mtime,
            session_id,
            project_path,
            visible_message_count,
            first_message[:FIRST_MESSAGE_CHARS],
        ),
    )


def remove_file(conn: sqlite3.Connection, path: str) -> bool:
    """Delete a file's message rows and its file row. Returns False if not indexed."""
    row = conn.execute(
        "SELECT session_id, project_path FROM indexed_files WHERE path = ?", (path,)
    ).fetchone()
    if row is None:
        return False

    conn.execute(
        "DELETE FROM messages_fts WHERE session_id = ? AND project_path = ?",
        (row["session_id"], row["project_path"]),
    )
    conn.execute("DELETE FROM indexed_files WHERE path = ?", (path,))
    return True


def clear_index(conn: sqlite3.Connection) -> None:
    """Drop all indexed rows; summaries are kept."""
    conn.execute("DELETE FROM messages_fts")
    conn.execute("DELETE FROM indexed_files")


def get_index_stats(conn: sqlite3.Connection) -> IndexStats:
    file_count = conn.execute("SELECT COUNT(*) FROM indexed_files").fetchone()[0]
    message_count = conn.execute("SELECT COUNT(*) FROM messages_fts").fetchone()[0]
    return IndexStats(file_count=file_count, message_count=message_count)


def get_project_stats(conn: sqlite3.Connection) -> dict[str, ProjectStats]:
    """Session and visible message counts per encoded project."""
    rows = conn.execute("""
        SELECT project_path, COUNT(*) AS sessions, SUM(visible_message_count) AS messages
        FROM indexed_files
        WHERE visible_message_count > 0
        GROUP BY project_path
    """).fetchall()
    return {
        row["project_path"]: ProjectStats(
            session_count=row["sessions"], total_messages=row["messages"]
        )
        for row in rows
    }


def get_session_listings(conn: sqlite3.Connection, project_path: str) -> list[SessionListing]:
    """Sessions with visible messages for one project, most recent first."""
    rows = conn.execute(
        """
        SELECT session_id, first_message, visible_message_count, mtime
        FROM indexed_files
        WHERE project_path = ? AND visible_message_count > 0 AND first_message != ''
        ORDER BY mtime DESC
        """,
        (project_path,),
    ).fetchall()
    return [
        SessionListing(
            id=row["session_id"],
            first_message=row["first_message"],
            message_count=row["visible_message_count"],
            last_activity=row["mtime"],
        )
        for row in rows
    ]


def get_session_message_count(
    conn: sqlite3.Connection, project_path: str, session_id: str
) -> int | None:
    row = conn.execute(
        "SELECT visible_message_count FROM indexed_files WHERE project_path = ? AND session_id = ?",
        (project_path, session_id),
    ).fetchone()
    return row["visible_message_count"] if row else None


def rename_project(conn: sqlite3.Connection, old: str, new: str) -> None:
    """Rewrite an encoded project id in every table.

    File paths that live under the old project directory are moved to the new
    one so the next sync finds them unchanged. Runs inside the caller's
    transaction.
    """
    rows = conn.execute(
        "SELECT path FROM indexed_files WHERE project_path = ?", (old,)
    ).fetchall()
    for row in rows:
        path = Path(row["path"])
        new_path = path.parent.with_name(new) / path.name if path.parent.name == old else path
        conn.execute(
            "UPDATE OR REPLACE indexed_files SET project_path = ?, path = ? WHERE path = ?",
            (new, str(new_path), row["path"]),
        )

    conn.execute(
        "UPDATE messages_fts SET project_path = ? WHERE project_path = ?", (new, old)
    )

    # Project summaries are targeted at the project id itself
    conn.execute(
        """
        UPDATE OR REPLACE summaries SET target_id = ?
        WHERE type = 'project' AND project_path = ? AND target_id = ?
        """,
        (new, old, old),
    )
    conn.execute(
        """
        UPDATE OR REPLACE summaries
        SET project_path = ?, id = type || '-' || ? || '-' || target_id
        WHERE project_path = ?
        """,
        (new, new, old),
    )
