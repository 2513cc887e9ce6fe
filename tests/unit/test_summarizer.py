"""Tests for summary generation."""

import stat

import pytest

from cc_chats.exceptions import (
    ProjectNotFoundError,
    SessionNotFoundError,
    SummaryGenerationError,
)
from cc_chats.summarizer import (
    ClaudeCliGenerator,
    GenerationResult,
    generate_project_summary,
    generate_session_summary,
)
from helpers import assistant, system, user


class FakeGenerator:
    def __init__(self, output="A concise summary.", success=True, error=None):
        self.result = GenerationResult(success, output if success else "", error)
        self.prompts: list[str] = []

    def __call__(self, prompt: str) -> GenerationResult:
        self.prompts.append(prompt)
        return self.result


@pytest.fixture
def session(chat_index, write_session):
    write_session(
        "proj",
        "s1",
        [
            system("Caveat: ignore me"),
            user("Add retries to the HTTP client"),
            assistant("Added exponential backoff."),
            user("Now write tests"),
            assistant("Tests added."),
        ],
    )
    chat_index.sync()
    return chat_index


def test_generate_session_summary_saves_result(session):
    generate = FakeGenerator()

    summary = generate_session_summary(session, "proj", "s1", generate)

    assert summary.content == "A concise summary."
    assert summary.message_count == 4
    assert summary.id == "session-proj-s1"
    assert session.get_summary("session", "s1", "proj") == summary

    prompt = generate.prompts[0]
    assert "> User: Add retries to the HTTP client" in prompt
    assert "Caveat" not in prompt


def test_generate_session_summary_missing_session(session):
    with pytest.raises(SessionNotFoundError):
        generate_session_summary(session, "proj", "nope", FakeGenerator())


def test_generate_session_summary_system_only(chat_index, write_session):
    write_session("proj", "s1", [system("only system")])

    with pytest.raises(SummaryGenerationError):
        generate_session_summary(chat_index, "proj", "s1", FakeGenerator())


def test_generator_failure_is_raised_and_nothing_saved(session):
    failing = FakeGenerator(success=False, error="rate limited")

    with pytest.raises(SummaryGenerationError) as excinfo:
        generate_session_summary(session, "proj", "s1", failing)

    assert excinfo.value.details == "rate limited"
    assert session.get_summary("session", "s1", "proj") is None


def test_generate_project_summary(session):
    generate_session_summary(session, "proj", "s1", FakeGenerator("Session work."))
    generate = FakeGenerator("Project overview.")

    summary = generate_project_summary(session, "proj", generate)

    assert summary.type == "project"
    assert summary.target_id == "proj"
    assert summary.message_count == 4
    assert "Session 1: Session work." in generate.prompts[0]


def test_generate_project_summary_requires_session_summaries(session):
    with pytest.raises(SummaryGenerationError, match="No session summaries"):
        generate_project_summary(session, "proj", FakeGenerator())


def test_generate_project_summary_unknown_project(session):
    with pytest.raises(ProjectNotFoundError):
        generate_project_summary(session, "ghost", FakeGenerator())


def test_claude_cli_generator_missing_command():
    result = ClaudeCliGenerator(command="definitely-not-a-real-command-xyz")("hi")

    assert not result.success
    assert "not found" in result.error


def _script(tmp_path, body: str) -> str:
    path = tmp_path / "fake-claude"
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(path.stat().st_mode | stat.S_IEXEC)
    return str(path)


def test_claude_cli_generator_passes_prompt(tmp_path):
    command = _script(tmp_path, 'echo "$1 $2"')

    result = ClaudeCliGenerator(command=command)("summarise this")

    assert result == GenerationResult(True, "-p summarise this")


def test_claude_cli_generator_nonzero_exit(tmp_path):
    command = _script(tmp_path, "echo boom >&2\nexit 3")

    result = ClaudeCliGenerator(command=command)("hi")

    assert not result.success
    assert result.error == "boom"


def test_claude_cli_generator_empty_output(tmp_path):
    command = _script(tmp_path, "exit 0")

    result = ClaudeCliGenerator(command=command)("hi")

    assert not result.success
    assert result.error == "No result returned"
