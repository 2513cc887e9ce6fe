"""Session transcript and project memory viewers."""

import json
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

from cc_chats.messages import extract_text, is_system_message, parse_transcript_file
from cc_chats.models import (
    ChatSession,
    Content,
    MemoryFile,
    TextBlock,
    TokenUsage,
    ToolResultBlock,
    ToolUseBlock,
    TranscriptMessage,
)
from cc_chats.paths import decode_project_path, project_name

logger = logging.getLogger(__name__)

console = Console()

FIRST_MESSAGE_CHARS = 500
TOOL_RESULT_CHARS = 500
MEMORY_DIR = "memory"
MEMORY_INDEX = "MEMORY.md"


def _is_plain_name(name: str) -> bool:
    return bool(name) and Path(name).name == name and name not in (".", "..")


def load_session(
    projects_dir: Path,
    encoded_path: str,
    session_id: str,
    decode: Callable[[str], str] = decode_project_path,
) -> ChatSession | None:
    """Load a whole session from disk. Returns None if it is missing or empty."""
    if not (_is_plain_name(encoded_path) and _is_plain_name(session_id)):
        return None

    path = projects_dir / encoded_path / f"{session_id}.jsonl"
    if not path.is_file():
        return None

    messages = parse_transcript_file(path)
    if not messages:
        return None

    first_user = next(
        (m for m in messages if m.type == "user" and not is_system_message(m)), None
    )
    first_message = extract_text(first_user.content) if first_user else "No messages"
    timestamps = [m.timestamp for m in messages if m.timestamp > 0]
    decoded = decode(encoded_path)

    return ChatSession(
        id=session_id,
        encoded_path=encoded_path,
        project_path=decoded,
        project_name=project_name(decoded),
        messages=messages,
        first_message=first_message[:FIRST_MESSAGE_CHARS],
        last_activity=max(timestamps, default=0),
        message_count=len(messages),
    )


def conversation(session: ChatSession) -> list[TranscriptMessage]:
    """Messages to show, system chatter removed, oldest first."""
    shown = [m for m in session.messages if not is_system_message(m)]
    # sorted() is stable, so same-timestamp messages keep file order
    return sorted(shown, key=lambda m: m.timestamp)


def total_usage(messages: list[TranscriptMessage]) -> TokenUsage:
    total = TokenUsage()
    for m in messages:
        if m.usage is None:
            continue
        total.input_tokens += m.usage.input_tokens
        total.output_tokens += m.usage.output_tokens
        total.cache_creation_input_tokens += m.usage.cache_creation_input_tokens
        total.cache_read_input_tokens += m.usage.cache_read_input_tokens
    return total


def resume_command(session_id: str, skip_permissions: bool = False) -> str:
    if skip_permissions:
        return f"claude --dangerously-skip-permissions --resume {session_id}"
    return f"claude --resume {session_id}"


def format_tool_result(content: Any) -> str:
    text = content if isinstance(content, str) else json.dumps(content)
    if len(text) > TOOL_RESULT_CHARS:
        return text[:TOOL_RESULT_CHARS] + "..."
    return text


def render_content(content: Content, show_tool_results: bool = False) -> str:
    """Plain-text rendering of a message body.

    Tool calls become ``[Tool: name]``; tool results are shown only when
    asked for, cut to TOOL_RESULT_CHARS.
    """
    if isinstance(content, str):
        return content

    parts: list[str] = []
    for block in content:
        if isinstance(block, TextBlock):
            parts.append(block.text)
        elif isinstance(block, ToolUseBlock):
            parts.append(f"[Tool: {block.name}]")
        elif isinstance(block, ToolResultBlock) and show_tool_results:
            parts.append(f"[Tool Result: {format_tool_result(block.content)}]")
    return "\n\n".join(parts)


def list_memory_files(projects_dir: Path, encoded_path: str) -> list[MemoryFile] | None:
    """Markdown files of a project's memory directory, MEMORY.md first.

    Returns None when the project has no memory directory.
    """
    if not _is_plain_name(encoded_path):
        return None
    memory_dir = projects_dir / encoded_path / MEMORY_DIR
    if not memory_dir.is_dir():
        return None

    names = sorted(
        (p.name for p in memory_dir.iterdir() if p.name.endswith(".md") and p.is_file()),
        key=lambda name: (name != MEMORY_INDEX, name),
    )
    files: list[MemoryFile] = []
    for name in names:
        try:
            content = (memory_dir / name).read_text(encoding="utf-8", errors="replace")
        except OSError:
            logger.warning("Cannot read memory file %s", memory_dir / name, exc_info=True)
            continue
        files.append(MemoryFile(name=name, content=content))
    return files


def _format_time(timestamp_ms: int) -> str:
    if timestamp_ms <= 0:
        return "unknown time"
    when = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).astimezone()
    return when.strftime("%Y-%m-%d %H:%M")


def _format_usage(usage: TokenUsage) -> str:
    text = f"{usage.input_tokens} in / {usage.output_tokens} out"
    cached = usage.cache_read_input_tokens + usage.cache_creation_input_tokens
    if cached:
        text += f" / {cached} cached"
    return text


def display_session(
    session: ChatSession,
    show_tool_results: bool = False,
    skip_permissions: bool = False,
) -> None:
    """Print a session as a sequence of rich panels."""
    messages = conversation(session)

    header = Text()
    header.append(session.project_name, style="green")
    header.append(f" | {session.id}", style="dim")
    header.append(f" | {session.message_count} messages", style="dim")
    header.append(f" | {_format_time(session.last_activity)}", style="dim")
    console.print(Rule(header))

    for message in messages:
        body = render_content(message.content, show_tool_results)
        if not body.strip():
            continue

        is_user = message.type == "user"
        title = Text()
        title.append("You" if is_user else "Claude", style="bold cyan" if is_user else "bold magenta")
        title.append(f" · {_format_time(message.timestamp)}", style="dim")

        subtitle = None
        if message.usage is not None:
            subtitle = _format_usage(message.usage)

        console.print(
            Panel(
                Text(body),
                title=title,
                title_align="left",
                subtitle=subtitle,
                subtitle_align="right",
                border_style="cyan" if is_user else "magenta",
            )
        )

    usage = total_usage(session.messages)
    console.print("─" * 50)
    console.print(f"Tokens: {_format_usage(usage)}")
    console.print(
        Text.assemble("Resume with: ", (resume_command(session.id, skip_permissions), "bold"))
    )


def session_to_json(session: ChatSession, show_tool_results: bool = False) -> dict[str, Any]:
    usage = total_usage(session.messages)
    return {
        "id": session.id,
        "project_path": session.encoded_path,
        "project": session.project_name,
        "first_message": session.first_message,
        "last_activity": session.last_activity,
        "message_count": session.message_count,
        "resume_command": resume_command(session.id),
        "usage": {
            "input_tokens": usage.input_tokens,
            "output_tokens": usage.output_tokens,
            "cache_creation_input_tokens": usage.cache_creation_input_tokens,
            "cache_read_input_tokens": usage.cache_read_input_tokens,
        },
        "messages": [
            {
                "uuid": m.uuid,
                "role": m.type,
                "timestamp": m.timestamp,
                "text": render_content(m.content, show_tool_results),
            }
            for m in conversation(session)
        ],
    }


def display_memory(files: list[MemoryFile]) -> None:
    for memory_file in files:
        console.print(Rule(Text(memory_file.name, style="bold green")))
        console.print(Markdown(memory_file.content))
