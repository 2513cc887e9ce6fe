"""Full-text search over indexed messages."""

import re
import sqlite3
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from cc_chats.models import SearchResult
from cc_chats.paths import decode_project_path, project_name

console = Console()

HIGHLIGHT_OPEN = "<mark>"
HIGHLIGHT_CLOSE = "</mark>"
SNIPPET_ELLIPSIS = "..."
SNIPPET_TOKENS = 64


def build_match_query(query: str) -> str | None:
    """Turn free text into an FTS5 query of ANDed prefix terms.

    Terms without any letter or digit are dropped. Returns None when
    nothing searchable is left.
    """
    terms = [t for t in query.split() if any(c.isalnum() for c in t)]
    if not terms:
        return None
    return " ".join('"{}"*'.format(t.replace('"', '""')) for t in terms)


def search(
    conn: sqlite3.Connection,
    query: str,
    limit: int = 50,
    project: str | None = None,
    decode: Callable[[str], str] = decode_project_path,
) -> list[SearchResult]:
    """Search message text, best matches first.

    ``project`` restricts results to one encoded project id.
    """
    if not query.strip():
        return []

    match = build_match_query(query)
    if match is None:
        return []

    sql = f"""
        SELECT
            content,
            session_id,
            project_path,
            message_uuid,
            user_type,
            timestamp,
            snippet(messages_fts, 0, ?, ?, ?, {SNIPPET_TOKENS}) AS snippet,
            rank
        FROM messages_fts
        WHERE messages_fts MATCH ?
    """
    params: list[Any] = [HIGHLIGHT_OPEN, HIGHLIGHT_CLOSE, SNIPPET_ELLIPSIS, match]

    if project:
        sql += " AND project_path = ?"
        params.append(project)

    sql += " ORDER BY rank LIMIT ?"
    params.append(limit)

    rows = conn.execute(sql, params).fetchall()

    results: list[SearchResult] = []
    for row in rows:
        try:
            timestamp = int(row["timestamp"])
        except (TypeError, ValueError):
            timestamp = 0
        results.append(
            SearchResult(
                content=row["content"],
                session_id=row["session_id"],
                project_path=row["project_path"],
                project_name=project_name(decode(row["project_path"])),
                message_uuid=row["message_uuid"],
                role=row["user_type"],
                timestamp=timestamp,
                snippet=row["snippet"],
                rank=row["rank"],
            )
        )
    return results


def snippet_to_text(snippet: str) -> Text:
    """Render a snippet's <mark> spans as rich highlights."""
    text = Text()
    pattern = re.compile(re.escape(HIGHLIGHT_OPEN) + "(.*?)" + re.escape(HIGHLIGHT_CLOSE), re.S)
    pos = 0
    for m in pattern.finditer(snippet):
        text.append(snippet[pos : m.start()])
        text.append(m.group(1), style="bold yellow")
        pos = m.end()
    text.append(snippet[pos:])
    return text


def format_age(timestamp_ms: int) -> str:
    if timestamp_ms <= 0:
        return "unknown time"
    then = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    age = datetime.now(tz=timezone.utc) - then
    if age.days > 0:
        return f"{age.days} days ago"
    if age.seconds > 3600:
        return f"{age.seconds // 3600} hours ago"
    return f"{age.seconds // 60} minutes ago"


def format_human_output(
    results: list[SearchResult],
    project_filter: str | None = None,
) -> None:
    """Print results as rich panels."""
    if not results:
        if project_filter:
            console.print(f"[yellow]No messages found for project '{project_filter}'[/yellow]")
        else:
            console.print("[yellow]No results found. Try a different query.[/yellow]")
        return

    for i, result in enumerate(results, 1):
        header = Text()
        header.append(f"[{i}] ", style="bold cyan")
        header.append(result.project_name, style="green")
        header.append(f" | {result.role}", style="dim")
        header.append(f" | {format_age(result.timestamp)}", style="dim")

        panel = Panel(
            snippet_to_text(result.snippet),
            title=header,
            subtitle=f"→ {result.project_path}/{result.session_id}",
            subtitle_align="left",
        )
        console.print(panel)

    console.print("─" * 50)
    console.print(f"Found {len(results)} results")


def format_json_output(results: list[SearchResult], query: str) -> None:
    """Print results as JSON for programmatic use."""
    output = {
        "results": [
            {
                "rank": result.rank,
                "project": result.project_name,
                "project_path": result.project_path,
                "session_id": result.session_id,
                "message_uuid": result.message_uuid,
                "role": result.role,
                "timestamp": result.timestamp,
                "snippet": result.snippet,
                "content": result.content,
            }
            for result in results
        ],
        "query": query,
        "total_results": len(results),
    }
    console.print_json(data=output)
