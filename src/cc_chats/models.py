"""Data models for cc-chats."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

SummaryType = Literal["session", "project"]


@dataclass
class TextBlock:
    """A plain text content block."""

    text: str
    type: str = field(default="text", init=False)


@dataclass
class ToolUseBlock:
    """A tool invocation issued by the assistant."""

    id: str
    name: str
    input: Any
    type: str = field(default="tool_use", init=False)


@dataclass
class ToolResultBlock:
    """The result of a tool invocation, echoed back as a user turn."""

    tool_use_id: str
    content: Any
    type: str = field(default="tool_result", init=False)


@dataclass
class OtherBlock:
    """Any block type the codec does not interpret (thinking, image, ...)."""

    type: str
    data: dict[str, Any] = field(default_factory=dict)


ContentBlock = TextBlock | ToolUseBlock | ToolResultBlock | OtherBlock
Content = str | list[ContentBlock]


@dataclass
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0


@dataclass
class TranscriptMessage:
    """One conversational line of a transcript file."""

    uuid: str
    type: str  # "user" | "assistant"
    content: Content
    session_id: str = ""
    parent_uuid: str | None = None
    usage: TokenUsage | None = None
    timestamp: int = 0  # epoch milliseconds
    is_meta: bool = False
    is_sidechain: bool = False


@dataclass
class FileInfo:
    """A transcript file found on disk."""

    path: Path
    mtime: int  # epoch milliseconds
    session_id: str
    encoded_path: str
    project_path: str


@dataclass
class SyncResult:
    added: int = 0
    updated: int = 0
    removed: int = 0


@dataclass
class IndexStats:
    file_count: int
    message_count: int


@dataclass
class ProjectStats:
    session_count: int
    total_messages: int


@dataclass
class SessionListing:
    """A session row for list views, served from the index."""

    id: str
    first_message: str
    message_count: int
    last_activity: int  # file mtime, epoch milliseconds


@dataclass
class SearchResult:
    """A full-text match with its highlighted snippet."""

    content: str
    session_id: str
    project_path: str  # encoded project id
    project_name: str
    message_uuid: str
    role: str
    timestamp: int
    snippet: str
    rank: float


@dataclass
class Summary:
    """A cached AI-generated session or project synopsis."""

    type: SummaryType
    target_id: str
    project_path: str
    content: str
    created_at: int  # epoch milliseconds
    message_count: int
    id: str = ""


@dataclass
class ExchangePair:
    """One user turn plus the assistant turns that follow it."""

    user: str
    assistant: str


@dataclass
class ChatSession:
    """A full session transcript loaded for viewing."""

    id: str
    encoded_path: str
    project_path: str
    project_name: str
    messages: list[TranscriptMessage]
    first_message: str
    last_activity: int  # newest message timestamp, epoch milliseconds
    message_count: int


@dataclass
class MemoryFile:
    """One markdown file from a project's memory directory."""

    name: str
    content: str
