"""Tests for the project path codec."""

import os

import pytest

from cc_chats import paths
from cc_chats.paths import decode_project_path, encode_project_path, project_name


def test_encode_replaces_separators():
    assert encode_project_path("/Users/name/Code/app") == "-Users-name-Code-app"


def test_round_trip_without_dashes(temp_dir):
    original = str(temp_dir / "alpha" / "beta" / "gamma")
    assert decode_project_path(encode_project_path(original)) == original


def test_round_trip_existing_path(temp_dir):
    target = temp_dir / "work" / "app"
    target.mkdir(parents=True)
    assert decode_project_path(encode_project_path(str(target))) == str(target)


def test_decode_merges_dashed_segments(temp_dir):
    target = temp_dir / "code" / "my-cool-app"
    target.mkdir(parents=True)

    assert decode_project_path(encode_project_path(str(target))) == str(target)


def test_decode_prefers_longest_merge(temp_dir):
    (temp_dir / "a-b" / "c").mkdir(parents=True)
    (temp_dir / "a" / "b").mkdir(parents=True)

    decoded = decode_project_path(encode_project_path(str(temp_dir)) + "-a-b-c")

    assert decoded == str(temp_dir / "a-b" / "c")


def test_decode_backtracks_when_longest_merge_dead_ends(temp_dir):
    (temp_dir / "a-b").mkdir()
    (temp_dir / "a" / "b-c").mkdir(parents=True)

    decoded = decode_project_path(encode_project_path(str(temp_dir)) + "-a-b-c")

    assert decoded == str(temp_dir / "a" / "b-c")


def test_decode_glob_fallback_for_lossy_characters(temp_dir):
    # Dots are flattened too in real project names; only the glob can find these
    target = temp_dir / "site.example.com"
    target.mkdir()

    decoded = decode_project_path(encode_project_path(str(temp_dir)) + "-site-example-com")

    assert decoded == str(target)


def test_decode_glob_fallback_rejects_ambiguous_matches(temp_dir):
    (temp_dir / "x.y").mkdir()
    (temp_dir / "x_y").mkdir()
    token = encode_project_path(str(temp_dir)) + "-x-y"

    assert decode_project_path(token) == token.replace("-", "/")


def test_decode_falls_back_to_naive_inverse():
    assert decode_project_path("-nonexistent-root-dir") == "/nonexistent/root/dir"


def test_decode_is_cached(temp_dir, monkeypatch):
    token = encode_project_path(str(temp_dir / "cached"))
    first = decode_project_path(token)

    def fail(*args):
        raise AssertionError("filesystem should not be consulted")

    monkeypatch.setattr(os.path, "exists", fail)
    assert decode_project_path(token) == first


def test_merge_search_skips_pathological_tokens(temp_dir):
    token = encode_project_path(str(temp_dir)) + "-" + "-".join(["x"] * (paths.MAX_MERGE_PARTS + 5))
    assert paths._merge_search("/", token[1:].split("-")) is None


@pytest.mark.parametrize(
    "decoded,expected",
    [
        ("/Users/name/Code/app", "app"),
        ("/Users/name/Code/app/", "app"),
        ("/", "/"),
    ],
)
def test_project_name(decoded, expected):
    assert project_name(decoded) == expected
