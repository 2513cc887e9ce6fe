"""Transcript line parsing and message classification.

Every message count in cc-chats (index stats, project stats, session
listings, summary staleness) goes through :func:`is_visible_message`, so the
numbers agree wherever they are shown.
"""

import json
import logging
import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from cc_chats.models import (
    Content,
    ContentBlock,
    OtherBlock,
    TextBlock,
    TokenUsage,
    ToolResultBlock,
    ToolUseBlock,
    TranscriptMessage,
)

logger = logging.getLogger(__name__)

CONVERSATION_ROLES = ("user", "assistant")

SYSTEM_PREFIXES = (
    "<command-name>",
    "<local-command-",
    "Caveat:",
    "<system-reminder>",
)


def normalize_timestamp(value: Any) -> int:
    """Convert an epoch-millis number or ISO-8601 string to epoch milliseconds.

    Returns 0 for missing or unparseable values.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else 0
    if not isinstance(value, str) or not value.strip():
        return 0
    try:
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return 0
    # Naive timestamps are assumed to be UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def parse_block(block: Any) -> ContentBlock | None:
    if not isinstance(block, dict):
        return None
    block_type = block.get("type")
    if block_type == "text":
        text = block.get("text", "")
        return TextBlock(text=text if isinstance(text, str) else "")
    if block_type == "tool_use":
        return ToolUseBlock(
            id=str(block.get("id", "")),
            name=str(block.get("name", "unknown")),
            input=block.get("input", {}),
        )
    if block_type == "tool_result":
        return ToolResultBlock(
            tool_use_id=str(block.get("tool_use_id", "")),
            content=block.get("content", ""),
        )
    return OtherBlock(type=str(block_type or "unknown"), data=block)


def parse_content(raw: Any) -> Content:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, list):
        blocks = (parse_block(b) for b in raw)
        return [b for b in blocks if b is not None]
    return ""


def _count(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _parse_usage(raw: Any) -> TokenUsage | None:
    if not isinstance(raw, dict):
        return None
    return TokenUsage(
        input_tokens=_count(raw.get("input_tokens")),
        output_tokens=_count(raw.get("output_tokens")),
        cache_creation_input_tokens=_count(raw.get("cache_creation_input_tokens")),
        cache_read_input_tokens=_count(raw.get("cache_read_input_tokens")),
    )


def parse_message(record: Any) -> TranscriptMessage | None:
    """Build a message from one decoded JSON record.

    Returns None for records that are not user/assistant messages
    (file-history snapshots, summaries, malformed shapes).
    """
    if not isinstance(record, dict):
        return None

    record_type = record.get("type")
    if record_type not in CONVERSATION_ROLES:
        return None

    msg_data = record.get("message")
    if not isinstance(msg_data, dict):
        return None

    parent = record.get("parentUuid")
    return TranscriptMessage(
        uuid=str(record.get("uuid", "")),
        type=record_type,
        content=parse_content(msg_data.get("content", "")),
        session_id=str(record.get("sessionId", "")),
        parent_uuid=str(parent) if parent else None,
        usage=_parse_usage(msg_data.get("usage")),
        timestamp=normalize_timestamp(record.get("timestamp")),
        is_meta=bool(record.get("isMeta", False)),
        is_sidechain=bool(record.get("isSidechain", False)),
    )


def parse_line(line: str) -> TranscriptMessage | None:
    try:
        record = json.loads(line)
    except json.JSONDecodeError:
        # Partial or corrupted line
        return None
    return parse_message(record)


def parse_transcript_file(path: Path) -> list[TranscriptMessage]:
    """Parse a JSONL transcript, dropping lines that do not decode."""
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            lines = f.readlines()
    except OSError:
        logger.debug("Cannot read transcript %s", path, exc_info=True)
        return []

    messages: list[TranscriptMessage] = []
    for line in lines:
        line = line.strip()
        if not line:
            continue
        message = parse_line(line)
        if message is not None:
            messages.append(message)
    return messages


def extract_text(content: Content) -> str:
    """Return the string content, or the text of the first text block."""
    if isinstance(content, str):
        return content
    for block in content:
        if isinstance(block, TextBlock):
            return block.text
    return ""


def extract_all_text(content: Content) -> str:
    """Return the text of every text block, newline-joined."""
    if isinstance(content, str):
        return content
    return "\n".join(block.text for block in content if isinstance(block, TextBlock))


def is_system_message(message: TranscriptMessage) -> bool:
    if message.is_meta:
        return True
    return extract_text(message.content).startswith(SYSTEM_PREFIXES)


def has_no_visible_content(message: TranscriptMessage) -> bool:
    content = message.content
    if isinstance(content, str):
        return not content.strip()
    return not any(isinstance(b, TextBlock) and b.text.strip() for b in content)


def is_visible_message(message: TranscriptMessage) -> bool:
    return not is_system_message(message) and not has_no_visible_content(message)


def count_visible_messages(messages: list[TranscriptMessage]) -> int:
    return sum(1 for m in messages if is_visible_message(m))
