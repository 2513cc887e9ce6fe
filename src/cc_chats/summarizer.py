"""AI summaries of sessions and projects.

Text generation is an external, possibly slow and possibly failing call.
Any callable taking a prompt and returning a :class:`GenerationResult` can
stand in for it; :class:`ClaudeCliGenerator` shells out to the ``claude`` CLI.
"""

import logging
import subprocess
import time
from collections.abc import Callable
from dataclasses import dataclass

from cc_chats.exceptions import (
    ProjectNotFoundError,
    SessionNotFoundError,
    SummaryGenerationError,
)
from cc_chats.index import ChatIndex
from cc_chats.messages import count_visible_messages, parse_transcript_file
from cc_chats.models import Summary
from cc_chats.sampler import format_for_summary

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    success: bool
    output: str
    error: str | None = None


Generator = Callable[[str], GenerationResult]


class ClaudeCliGenerator:
    """Generate text with ``claude -p <prompt>``. Failures are returned, not raised."""

    def __init__(self, command: str = "claude", timeout: float | None = None):
        self.command = command
        self.timeout = timeout

    def __call__(self, prompt: str) -> GenerationResult:
        try:
            proc = subprocess.run(
                [self.command, "-p", prompt],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            return GenerationResult(False, "", f"{self.command} not found on PATH")
        except subprocess.TimeoutExpired:
            return GenerationResult(False, "", f"{self.command} timed out")

        if proc.returncode != 0:
            error = proc.stderr.strip() or f"exit status {proc.returncode}"
            return GenerationResult(False, "", error)

        output = proc.stdout.strip()
        if not output:
            return GenerationResult(False, "", "No result returned")
        return GenerationResult(True, output)


def session_prompt(conversation_text: str) -> str:
    return (
        "Summarise this Claude Code session in 2-3 sentences. Focus on what was "
        "being built or fixed. Be specific and concise.\n\n"
        f"Conversation excerpts from this session:\n{conversation_text}"
    )


def project_prompt(session_summaries: list[str]) -> str:
    summaries_text = "\n".join(f"Session {i}: {s}" for i, s in enumerate(session_summaries, 1))
    return (
        "Given these session summaries from a coding project, provide a brief "
        "2-3 sentence overview of what this project involves and recent activity.\n\n"
        f"{summaries_text}"
    )


def _now_ms() -> int:
    return int(time.time() * 1000)


def generate_session_summary(
    index: ChatIndex, project_path: str, session_id: str, generate: Generator
) -> Summary:
    """Summarise one session and store the result in the summary cache."""
    path = index.session_path(project_path, session_id)
    messages = parse_transcript_file(path) if path.is_file() else []
    if not messages:
        raise SessionNotFoundError(project_path, session_id)

    conversation = format_for_summary(messages)
    if not conversation:
        raise SummaryGenerationError("Session has no conversation to summarise")

    logger.info("Generating summary for session %s", session_id)
    result = generate(session_prompt(conversation))
    if not result.success:
        raise SummaryGenerationError("Failed to generate summary", result.error)

    return index.save_summary(
        Summary(
            type="session",
            target_id=session_id,
            project_path=project_path,
            content=result.output,
            created_at=_now_ms(),
            message_count=count_visible_messages(messages),
        )
    )


def generate_project_summary(index: ChatIndex, project_path: str, generate: Generator) -> Summary:
    """Summarise a project from its cached session summaries."""
    stats = index.get_project_stats().get(project_path)
    if stats is None:
        raise ProjectNotFoundError(project_path)

    session_summaries = index.get_session_summaries(project_path)
    if not session_summaries:
        raise SummaryGenerationError(
            "No session summaries found. Generate session summaries first."
        )

    logger.info("Generating summary for project %s", project_path)
    result = generate(project_prompt([s.content for s in session_summaries]))
    if not result.success:
        raise SummaryGenerationError("Failed to generate project summary", result.error)

    return index.save_summary(
        Summary(
            type="project",
            target_id=project_path,
            project_path=project_path,
            content=result.output,
            created_at=_now_ms(),
            message_count=stats.total_messages,
        )
    )
