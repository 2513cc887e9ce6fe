"""CLI for cc-chats."""

import contextlib
import sqlite3
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.table import Table

from cc_chats import __version__
from cc_chats.config import Settings, configure_logging
from cc_chats.exceptions import CcChatsError, ConfigurationError

if TYPE_CHECKING:
    from cc_chats.index import ChatIndex

app = typer.Typer(
    name="cc-chats",
    help="Browse, search and summarise Claude Code chat transcripts.",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"cc-chats {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", help="Show debug logging")] = False,
    db: Annotated[Path | None, typer.Option("--db", help="Index database path")] = None,
    projects_dir: Annotated[
        Path | None, typer.Option("--projects-dir", help="Claude projects directory")
    ] = None,
) -> None:
    """Browse, search and summarise Claude Code chat transcripts."""
    configure_logging(verbose)
    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from e
    if db is not None:
        settings.db_path = db
    if projects_dir is not None:
        settings.projects_dir = projects_dir
    ctx.obj = settings


@contextlib.contextmanager
def open_index(ctx: typer.Context) -> Iterator["ChatIndex"]:
    """Open the index, turning library errors into a red message and exit 1."""
    from cc_chats.index import ChatIndex

    try:
        with ChatIndex.from_settings(ctx.obj) as index:
            yield index
    except (CcChatsError, sqlite3.Error) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from e


@app.command()
def sync(
    ctx: typer.Context,
    force: Annotated[bool, typer.Option("--force", "-f", help="Reindex all sessions")] = False,
) -> None:
    """Bring the search index up to date with the transcripts on disk."""
    with open_index(ctx) as index:
        with console.status("Syncing index..."):
            result = index.rebuild() if force else index.sync()
        if not (result.added or result.updated or result.removed):
            console.print("[green]Index is up to date[/green]")
            return
        console.print(
            f"[green]Added {result.added}, updated {result.updated}, "
            f"removed {result.removed} sessions[/green]"
        )


@app.command()
def search(
    ctx: typer.Context,
    query: Annotated[str, typer.Argument(help="Search query")],
    project: Annotated[
        str | None, typer.Option("--project", "-p", help="Encoded project id to search in")
    ] = None,
    limit: Annotated[int | None, typer.Option("--limit", "-n", min=0, help="Number of results")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Search messages across all sessions."""
    if not query.strip():
        console.print("[red]Error: Query required[/red]")
        raise typer.Exit(1)

    from cc_chats.searcher import format_human_output, format_json_output

    with open_index(ctx) as index:
        index.sync()
        if limit is None:
            limit = ctx.obj.search_limit
        results = index.search(query, limit=limit, project=project)

    if json_output:
        format_json_output(results, query)
    else:
        format_human_output(results, project_filter=project)


@app.command()
def status(ctx: typer.Context) -> None:
    """Show index statistics."""
    settings: Settings = ctx.obj
    with open_index(ctx) as index:
        stats = index.get_index_stats()
        last_synced = index.last_synced()

    console.print(f"Sessions indexed: {stats.file_count}")
    console.print(f"Messages indexed: {stats.message_count}")
    console.print(f"Index path: {settings.get_db_path()}")
    console.print(f"Projects dir: {settings.get_projects_dir()}")
    if last_synced:
        console.print(f"Last synced: {last_synced}")


@app.command()
def projects(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """List projects with their session and message counts."""
    from cc_chats.paths import project_name

    with open_index(ctx) as index:
        stats = index.get_project_stats()
        rows = [
            (encoded, index.decode_path(encoded), s.session_count, s.total_messages)
            for encoded, s in sorted(stats.items())
        ]

    if json_output:
        console.print_json(
            data={
                "projects": [
                    {
                        "encoded_path": encoded,
                        "path": path,
                        "name": project_name(path),
                        "sessions": sessions,
                        "messages": messages,
                    }
                    for encoded, path, sessions, messages in rows
                ]
            }
        )
        return

    if not rows:
        console.print("[yellow]No projects indexed.[/yellow]")
        return

    table = Table("Project", "Path", "Sessions", "Messages")
    for encoded, path, sessions, messages in rows:
        table.add_row(f"[cyan]{project_name(path)}[/cyan]", path, str(sessions), str(messages))
    console.print(table)


@app.command()
def sessions(
    ctx: typer.Context,
    project: Annotated[str, typer.Argument(help="Encoded project id")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """List a project's sessions, most recent first."""
    from cc_chats.searcher import format_age

    with open_index(ctx) as index:
        index.sync()
        listings = index.get_session_summaries_from_db(project)

    if json_output:
        console.print_json(
            data={
                "sessions": [
                    {
                        "id": s.id,
                        "first_message": s.first_message,
                        "message_count": s.message_count,
                        "last_activity": s.last_activity,
                    }
                    for s in listings
                ]
            }
        )
        return

    if not listings:
        console.print(f"[yellow]No sessions found for project '{project}'[/yellow]")
        return

    for s in listings:
        first_line = s.first_message.splitlines()[0] if s.first_message else ""
        console.print(
            f"[cyan]{s.id}[/cyan] [dim]{s.message_count} messages | "
            f"{format_age(s.last_activity)}[/dim]"
        )
        console.print(f"  {first_line[:120]}", markup=False)


@app.command()
def summary(
    ctx: typer.Context,
    project: Annotated[str, typer.Argument(help="Encoded project id")],
    session: Annotated[
        str | None, typer.Option("--session", "-s", help="Session id (omit for project summary)")
    ] = None,
    generate: Annotated[
        bool, typer.Option("--generate", "-g", help="Generate a fresh summary with Claude")
    ] = False,
) -> None:
    """Show or generate a cached session or project summary."""
    from cc_chats.summaries import is_stale
    from cc_chats.summarizer import (
        ClaudeCliGenerator,
        generate_project_summary,
        generate_session_summary,
    )

    settings: Settings = ctx.obj
    with open_index(ctx) as index:
        index.sync()
        if generate:
            generator = ClaudeCliGenerator(settings.claude_command)
            with console.status("Generating summary..."):
                if session:
                    result = generate_session_summary(index, project, session, generator)
                else:
                    result = generate_project_summary(index, project, generator)
        elif session:
            result = index.get_summary("session", session, project)
        else:
            result = index.get_summary("project", project, project)

        if session:
            current = index.get_session_message_count(project, session)
        else:
            stats = index.get_project_stats().get(project)
            current = stats.total_messages if stats else None

    if result is None:
        console.print("[yellow]No summary yet. Run again with --generate.[/yellow]")
        return

    console.print(result.content, markup=False)
    if current is not None and is_stale(result, current):
        console.print(
            f"[dim]Summary covers {result.message_count} messages; "
            f"the conversation now has {current}.[/dim]"
        )


@app.command()
def show(
    ctx: typer.Context,
    project: Annotated[str, typer.Argument(help="Encoded project id")],
    session: Annotated[str, typer.Argument(help="Session id")],
    tools: Annotated[
        bool, typer.Option("--tools", "-t", help="Include tool results")
    ] = False,
    skip_permissions: Annotated[
        bool,
        typer.Option("--skip-permissions", help="Resume command skips permission prompts"),
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Show a session transcript and the command to resume it."""
    from cc_chats.exceptions import SessionNotFoundError
    from cc_chats.viewer import display_session, session_to_json

    with open_index(ctx) as index:
        chat = index.get_session(project, session)
        if chat is None:
            raise SessionNotFoundError(project, session)

    if json_output:
        console.print_json(data=session_to_json(chat, show_tool_results=tools))
        return
    display_session(chat, show_tool_results=tools, skip_permissions=skip_permissions)


@app.command()
def memory(
    ctx: typer.Context,
    project: Annotated[str, typer.Argument(help="Encoded project id")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Show a project's memory files, MEMORY.md first."""
    from cc_chats.viewer import display_memory

    with open_index(ctx) as index:
        files = index.get_project_memory(project)

    if json_output:
        console.print_json(
            data={"files": [{"name": f.name, "content": f.content} for f in files or []]}
        )
        return

    if not files:
        console.print(f"[yellow]No memory found for project '{project}'[/yellow]")
        return
    display_memory(files)


@app.command()
def decode(token: Annotated[str, typer.Argument(help="Encoded project directory name")]) -> None:
    """Decode a project directory name to its original path."""
    from cc_chats.paths import decode_project_path

    console.print(decode_project_path(token), markup=False)


@app.command()
def encode(path: Annotated[str, typer.Argument(help="Absolute project path")]) -> None:
    """Encode a project path as Claude's directory name."""
    from cc_chats.paths import encode_project_path

    console.print(encode_project_path(path), markup=False)


if __name__ == "__main__":
    app()
