"""Transcript file discovery."""

import logging
from collections.abc import Callable
from pathlib import Path

from cc_chats.models import FileInfo
from cc_chats.paths import decode_project_path

logger = logging.getLogger(__name__)

TRANSCRIPT_SUFFIX = ".jsonl"
# Sub-agent scratch transcripts, not user-facing sessions
AGENT_PREFIX = "agent-"


def is_session_file(name: str) -> bool:
    return name.endswith(TRANSCRIPT_SUFFIX) and not name.startswith(AGENT_PREFIX)


def list_transcript_files(
    projects_dir: Path,
    decode: Callable[[str], str] = decode_project_path,
) -> list[FileInfo]:
    """List session transcripts one level below the projects directory.

    Unreadable project directories and files are skipped.
    """
    if not projects_dir.is_dir():
        return []

    try:
        project_dirs = sorted(projects_dir.iterdir())
    except OSError:
        logger.warning("Cannot list projects directory %s", projects_dir, exc_info=True)
        return []

    files: list[FileInfo] = []
    for project_dir in project_dirs:
        try:
            if not project_dir.is_dir():
                continue
            entries = sorted(project_dir.iterdir())
        except OSError:
            logger.debug("Skipping unreadable project %s", project_dir, exc_info=True)
            continue

        encoded_path = project_dir.name
        project_path: str | None = None

        for entry in entries:
            if not is_session_file(entry.name):
                continue
            try:
                stat = entry.stat()
            except OSError:
                logger.debug("Skipping unreadable transcript %s", entry, exc_info=True)
                continue
            if not entry.is_file():
                continue

            if project_path is None:
                project_path = decode(encoded_path)

            files.append(
                FileInfo(
                    path=entry,
                    mtime=stat.st_mtime_ns // 1_000_000,
                    session_id=entry.name[: -len(TRANSCRIPT_SUFFIX)],
                    encoded_path=encoded_path,
                    project_path=project_path,
                )
            )

    return files
