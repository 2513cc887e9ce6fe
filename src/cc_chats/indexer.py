"""Incremental index sync for JSONL session transcripts."""

import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from cc_chats.messages import extract_all_text, is_visible_message, parse_transcript_file
from cc_chats.models import FileInfo, SyncResult
from cc_chats.paths import decode_project_path
from cc_chats.scanner import list_transcript_files
from cc_chats.storage import (
    clear_index,
    get_indexed_mtimes,
    insert_message,
    remove_file,
    save_indexed_file,
    set_metadata,
    transaction,
)

logger = logging.getLogger(__name__)


def index_file(conn: sqlite3.Connection, info: FileInfo) -> int:
    """Index the visible messages of one transcript. Returns the visible count.

    Must run inside a transaction; the message rows and the file row are
    written together.
    """
    visible_count = 0
    first_message = ""

    for message in parse_transcript_file(info.path):
        if not is_visible_message(message):
            continue

        content = extract_all_text(message.content)
        visible_count += 1
        if not first_message and message.type == "user":
            first_message = content
        insert_message(
            conn,
            content=content,
            session_id=info.session_id,
            project_path=info.encoded_path,
            message_uuid=message.uuid,
            role=message.type,
            timestamp=message.timestamp,
        )

    save_indexed_file(
        conn,
        path=str(info.path),
        mtime=info.mtime,
        session_id=info.session_id,
        project_path=info.encoded_path,
        visible_message_count=visible_count,
        first_message=first_message,
    )
    return visible_count


def sync_index(
    conn: sqlite3.Connection,
    projects_dir: Path,
    decode: Callable[[str], str] = decode_project_path,
    force: bool = False,
) -> SyncResult:
    """Reconcile the index with the transcripts currently on disk.

    New files are indexed, files whose mtime moved forward are re-indexed
    and files that disappeared are dropped. Unchanged files are not read.
    With ``force`` the index is emptied first and every file counts as added.
    All changes commit together or not at all.
    """
    current_files = list_transcript_files(projects_dir, decode)
    current_paths = {str(f.path) for f in current_files}
    result = SyncResult()

    with transaction(conn):
        if force:
            clear_index(conn)
        indexed = get_indexed_mtimes(conn)

        # A file row must not share its (session, project) with a row pending removal
        for path in indexed:
            if path not in current_paths:
                remove_file(conn, path)
                result.removed += 1

        for info in current_files:
            indexed_mtime = indexed.get(str(info.path))
            if indexed_mtime is None:
                index_file(conn, info)
                result.added += 1
            elif indexed_mtime < info.mtime:
                remove_file(conn, str(info.path))
                index_file(conn, info)
                result.updated += 1

        set_metadata(conn, "last_synced", datetime.now(tz=timezone.utc).isoformat())

    if result.added or result.updated or result.removed:
        logger.info(
            "Synced index: %d added, %d updated, %d removed",
            result.added,
            result.updated,
            result.removed,
        )
    return result
