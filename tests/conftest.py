"""Pytest fixtures for cc-chats tests."""

import os
import tempfile
from pathlib import Path

import pytest

from cc_chats.paths import clear_decode_cache
from helpers import to_jsonl, trivial_decode


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def projects_dir(temp_dir):
    path = temp_dir / "projects"
    path.mkdir()
    return path


@pytest.fixture
def write_session(projects_dir):
    """Write a transcript file under projects_dir/<project>/<session>.jsonl."""

    def write(project: str, session_id: str, records, mtime: float | None = None) -> Path:
        project_dir = projects_dir / project
        project_dir.mkdir(exist_ok=True)
        path = project_dir / f"{session_id}.jsonl"
        path.write_text(records if isinstance(records, str) else to_jsonl(records))
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path

    return write


@pytest.fixture
def chat_index(projects_dir):
    """An in-memory ChatIndex over projects_dir."""
    from cc_chats.index import ChatIndex

    index = ChatIndex(":memory:", projects_dir, decode=trivial_decode)
    yield index
    index.close()


@pytest.fixture(autouse=True)
def reset_decode_cache():
    clear_decode_cache()
    yield
    clear_decode_cache()
