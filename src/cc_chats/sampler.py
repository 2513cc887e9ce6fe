"""Compress a transcript into a bounded prompt for summarisation.

Long sessions are reduced to user/assistant exchange pairs, and at most the
first two, the last two and an evenly spaced sample of the middle pairs are
kept.
"""

from cc_chats.messages import extract_all_text, is_system_message
from cc_chats.models import ExchangePair, TranscriptMessage

MAX_TOTAL_CHARS = 12000
MAX_USER_CHARS = 300
MAX_ASSISTANT_CHARS = 200

EDGE_PAIRS = 2
TRUNCATION_MARKER = " [...] "


def build_exchange_pairs(messages: list[TranscriptMessage]) -> list[ExchangePair]:
    """Pair each user turn with the assistant turns that immediately follow it.

    Assistant turns before the first user turn are dropped.
    """
    meaningful = [
        m
        for m in messages
        if m.type in ("user", "assistant") and not m.is_sidechain and not is_system_message(m)
    ]

    pairs: list[ExchangePair] = []
    i = 0
    while i < len(meaningful):
        if meaningful[i].type != "user":
            i += 1
            continue

        user_text = extract_all_text(meaningful[i].content).strip()
        assistant_parts: list[str] = []
        j = i + 1
        while j < len(meaningful) and meaningful[j].type == "assistant":
            text = extract_all_text(meaningful[j].content).strip()
            if text:
                assistant_parts.append(text)
            j += 1

        assistant_text = "\n".join(assistant_parts)
        if user_text or assistant_text:
            pairs.append(ExchangePair(user=user_text, assistant=assistant_text))
        i = j

    return pairs


def _middle_budget(total: int) -> int:
    if total <= 20:
        return 6
    if total <= 40:
        return 8
    return 10


def sample_pairs(pairs: list[ExchangePair]) -> list[ExchangePair]:
    """Keep the edges and an evenly spaced sample of the middle."""
    if len(pairs) <= 10:
        return pairs

    first = pairs[:EDGE_PAIRS]
    last = pairs[-EDGE_PAIRS:]
    middle = pairs[EDGE_PAIRS:-EDGE_PAIRS]

    max_middle = _middle_budget(len(pairs))
    step = len(middle) / max_middle

    sampled: list[ExchangePair] = []
    i = 0
    while i < max_middle and i * step < len(middle):
        sampled.append(middle[int(i * step)])
        i += 1

    return first + sampled + last


def truncate_assistant(text: str, limit: int) -> str:
    """Keep the head and tail of long text around a ' [...] ' marker."""
    if len(text) <= limit:
        return text
    half = max((limit - len(TRUNCATION_MARKER)) // 2, 0)
    return text[:half] + TRUNCATION_MARKER + text[len(text) - half :]


def format_for_summary(messages: list[TranscriptMessage]) -> str:
    """Render sampled exchanges as prompt text, at most MAX_TOTAL_CHARS long."""
    output = ""
    for pair in sample_pairs(build_exchange_pairs(messages)):
        user_text = pair.user
        if len(user_text) > MAX_USER_CHARS:
            user_text = user_text[:MAX_USER_CHARS] + "..."

        block = f"> User: {user_text}\n"
        if pair.assistant:
            block += f"  Assistant: {truncate_assistant(pair.assistant, MAX_ASSISTANT_CHARS)}\n"
        block += "\n"

        if len(output) + len(block) > MAX_TOTAL_CHARS:
            break
        output += block

    return output
