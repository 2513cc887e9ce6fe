"""Transcript builders shared by the tests."""

import itertools
import json

BASE_TIMESTAMP = "2026-01-15T10:00:00Z"

_uuids = itertools.count(1)


def next_uuid() -> str:
    return f"00000000-0000-0000-0000-{next(_uuids):012d}"


def make_message(type_="user", content="Hello, world!", **overrides) -> dict:
    """Build one transcript record as Claude Code writes it."""
    record = {
        "parentUuid": None,
        "isSidechain": False,
        "userType": "external",
        "cwd": "/tmp/test-project",
        "sessionId": "test-session-1",
        "version": "1.0.0",
        "gitBranch": "main",
        "type": type_,
        "message": {"role": type_, "content": content},
        "uuid": next_uuid(),
        "timestamp": BASE_TIMESTAMP,
    }
    record.update(overrides)
    return record


def user(text, **overrides) -> dict:
    return make_message("user", text, **overrides)


def assistant(text, **overrides) -> dict:
    return make_message("assistant", text, **overrides)


def system(text) -> dict:
    return make_message("user", text, isMeta=True)


def to_jsonl(records) -> str:
    return "".join(json.dumps(r) + "\n" for r in records)


def trivial_decode(encoded: str) -> str:
    return "/" + encoded.replace("-", "/")
