"""Cache of generated session and project summaries."""

import dataclasses
import sqlite3

from cc_chats.exceptions import InvalidSummaryTypeError
from cc_chats.models import Summary, SummaryType

SUMMARY_TYPES = ("session", "project")

_COLUMNS = "id, type, target_id, project_path, content, created_at, message_count"


def make_summary_id(summary_type: str, project_path: str, target_id: str) -> str:
    return f"{summary_type}-{project_path}-{target_id}"


def _row_to_summary(row: sqlite3.Row) -> Summary:
    return Summary(
        id=row["id"],
        type=row["type"],
        target_id=row["target_id"],
        project_path=row["project_path"],
        content=row["content"],
        created_at=row["created_at"],
        message_count=row["message_count"],
    )


def save_summary(conn: sqlite3.Connection, summary: Summary) -> Summary:
    """Insert or overwrite a summary. Returns it with its id filled in."""
    if summary.type not in SUMMARY_TYPES:
        raise InvalidSummaryTypeError(f"Unknown summary type: {summary.type!r}")

    saved = dataclasses.replace(
        summary, id=make_summary_id(summary.type, summary.project_path, summary.target_id)
    )
    conn.execute(
        f"INSERT OR REPLACE INTO summaries ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
        (
            saved.id,
            saved.type,
            saved.target_id,
            saved.project_path,
            saved.content,
            saved.created_at,
            saved.message_count,
        ),
    )
    return saved


def get_summary(
    conn: sqlite3.Connection, summary_type: SummaryType, target_id: str, project_path: str
) -> Summary | None:
    row = conn.execute(
        f"SELECT {_COLUMNS} FROM summaries WHERE type = ? AND target_id = ? AND project_path = ?",
        (summary_type, target_id, project_path),
    ).fetchone()
    if row is None:
        return None
    return _row_to_summary(row)


def get_session_summaries(conn: sqlite3.Connection, project_path: str) -> list[Summary]:
    """All session summaries of a project, newest first."""
    rows = conn.execute(
        f"""
        SELECT {_COLUMNS} FROM summaries
        WHERE type = 'session' AND project_path = ?
        ORDER BY created_at DESC
        """,
        (project_path,),
    ).fetchall()
    return [_row_to_summary(row) for row in rows]


def is_stale(summary: Summary, current_message_count: int) -> bool:
    """True when the conversation has changed size since the summary was made."""
    return summary.message_count != current_message_count
