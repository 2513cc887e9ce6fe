"""Tests for incremental index sync."""

import time

import pytest

from cc_chats.indexer import index_file, sync_index
from cc_chats.models import SyncResult
from cc_chats.searcher import search
from cc_chats.storage import ensure_index_exists, get_index_stats
from helpers import assistant, system, to_jsonl, trivial_decode, user


@pytest.fixture
def conn():
    conn = ensure_index_exists(":memory:")
    yield conn
    conn.close()


def _sync(conn, projects_dir) -> SyncResult:
    return sync_index(conn, projects_dir, trivial_decode)


def test_empty_projects_dir(conn, projects_dir):
    assert _sync(conn, projects_dir) == SyncResult(0, 0, 0)


def test_indexes_new_session(conn, projects_dir, write_session):
    write_session("my-project", "sess1", [user("hello world"), assistant("hi there")])

    assert _sync(conn, projects_dir) == SyncResult(added=1)
    stats = get_index_stats(conn)
    assert stats.file_count == 1
    assert stats.message_count == 2


def test_second_sync_is_a_no_op(conn, projects_dir, write_session):
    write_session("my-project", "sess1", [user("hello")])
    _sync(conn, projects_dir)
    before = get_index_stats(conn)

    assert _sync(conn, projects_dir) == SyncResult(0, 0, 0)
    assert get_index_stats(conn) == before


def test_unchanged_files_are_not_reparsed(conn, projects_dir, write_session, monkeypatch):
    write_session("my-project", "sess1", [user("hello")])
    _sync(conn, projects_dir)

    def fail(path):
        raise AssertionError(f"{path} should not be parsed")

    monkeypatch.setattr("cc_chats.indexer.parse_transcript_file", fail)
    assert _sync(conn, projects_dir) == SyncResult(0, 0, 0)


def test_reindexes_file_with_newer_mtime(conn, projects_dir, write_session):
    now = time.time()
    write_session("my-project", "sess1", [user("hello")], mtime=now)
    _sync(conn, projects_dir)

    write_session(
        "my-project",
        "sess1",
        [user("hello"), assistant("world"), user("again")],
        mtime=now + 5,
    )

    assert _sync(conn, projects_dir) == SyncResult(updated=1)
    assert get_index_stats(conn).message_count == 3


def test_older_mtime_is_ignored(conn, projects_dir, write_session):
    now = time.time()
    write_session("my-project", "sess1", [user("hello")], mtime=now)
    _sync(conn, projects_dir)

    write_session("my-project", "sess1", [user("a"), user("b")], mtime=now - 60)

    assert _sync(conn, projects_dir) == SyncResult(0, 0, 0)
    assert get_index_stats(conn).message_count == 1


def test_detects_removed_files(conn, projects_dir, write_session):
    path = write_session("my-project", "sess1", [user("hello")])
    _sync(conn, projects_dir)
    assert len(search(conn, "hello", decode=trivial_decode)) == 1

    path.unlink()

    assert _sync(conn, projects_dir) == SyncResult(removed=1)
    stats = get_index_stats(conn)
    assert stats.file_count == 0
    assert stats.message_count == 0
    assert search(conn, "hello", decode=trivial_decode) == []


def test_ignores_agent_files(conn, projects_dir):
    project = projects_dir / "my-project"
    project.mkdir()
    (project / "agent-task.jsonl").write_text(to_jsonl([user("agent msg")]))

    assert _sync(conn, projects_dir) == SyncResult(0, 0, 0)


def test_system_messages_are_not_indexed(conn, projects_dir, write_session):
    write_session(
        "my-project",
        "sess1",
        [
            system("system init"),
            user("<command-name>/clear</command-name>"),
            user("real question"),
            assistant([{"type": "tool_use", "id": "t1", "name": "Bash", "input": {}}]),
        ],
    )

    _sync(conn, projects_dir)
    assert get_index_stats(conn).message_count == 1


def test_system_only_session_indexes_with_zero_count(conn, projects_dir, write_session):
    write_session("my-project", "sess1", [system("only system")])

    assert _sync(conn, projects_dir) == SyncResult(added=1)
    row = conn.execute("SELECT visible_message_count, first_message FROM indexed_files").fetchone()
    assert row["visible_message_count"] == 0
    assert row["first_message"] == ""


def test_malformed_lines_do_not_block_the_file(conn, projects_dir, write_session):
    write_session("proj", "s1", to_jsonl([user("good one")]) + "{truncated\n")

    assert _sync(conn, projects_dir) == SyncResult(added=1)
    assert get_index_stats(conn).message_count == 1


def test_first_message_is_first_visible_user_turn(conn, projects_dir, write_session):
    write_session(
        "proj",
        "s1",
        [
            assistant("greeting from assistant"),
            system("Caveat: ignore"),
            user("the real first question"),
            user("second question"),
        ],
    )
    _sync(conn, projects_dir)

    row = conn.execute("SELECT first_message FROM indexed_files").fetchone()
    assert row["first_message"] == "the real first question"


def test_failed_sync_leaves_index_untouched(conn, projects_dir, write_session, monkeypatch):
    write_session("proj", "s1", [user("first")])
    _sync(conn, projects_dir)
    write_session("proj", "s2", [user("second")])
    write_session("proj", "s3", [user("third")])

    calls = []

    def flaky(conn, info):
        calls.append(info.session_id)
        if len(calls) == 2:
            raise RuntimeError("disk on fire")
        return index_file(conn, info)

    monkeypatch.setattr("cc_chats.indexer.index_file", flaky)
    with pytest.raises(RuntimeError):
        _sync(conn, projects_dir)

    stats = get_index_stats(conn)
    assert stats.file_count == 1
    assert stats.message_count == 1


def test_force_reindexes_unchanged_files(conn, projects_dir, write_session):
    write_session("proj", "s1", [user("first")])
    write_session("proj", "s2", [user("second"), assistant("reply")])
    _sync(conn, projects_dir)

    result = sync_index(conn, projects_dir, trivial_decode, force=True)

    assert result == SyncResult(added=2)
    stats = get_index_stats(conn)
    assert stats.file_count == 2
    assert stats.message_count == 3
