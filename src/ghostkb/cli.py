#!/usr/bin/env python3
"""
ghost: CLI for the ghostkb knowledge base

Usage:
    ghost collections                  # List collections and reachability
    ghost search "query"               # Search across collections
    ghost index                        # Build and save the topic index
    ghost stats                        # Per-collection statistics
    ghost import --days 7              # Import recent recordings
    ghost date 2024-01-05              # Recordings from one day
    ghost get ID --save                # Show (and save) one recording
    ghost export recent --single week  # Export recordings as notes
    ghost list                         # Saved recording notes
"""

from __future__ import annotations

import json
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any, NoReturn

import click

from . import __version__ as GHOSTKB_VERSION
from .config import DEFAULT_SEARCH_LIMIT

if TYPE_CHECKING:
    from .config import Settings
    from .models import Document, Recording
    from .recordings import RecordingImporter, RecordingsClient
    from .registry import CollectionRegistry


# ─────────────────────────────────────────────────────────────────────────────
# Output Formatting
# ─────────────────────────────────────────────────────────────────────────────


def format_table(rows: list[dict], columns: list[str], max_widths: dict | None = None) -> str:
    """Format rows as a simple table."""
    if not rows:
        return ""

    max_widths = max_widths or {}
    widths = {col: len(col) for col in columns}

    def cell(row: dict, col: str) -> str:
        val = str(row.get(col, ""))
        limit = max_widths.get(col, 50)
        if len(val) > limit:
            val = val[: limit - 3] + "..."
        return val

    for row in rows:
        for col in columns:
            widths[col] = max(widths[col], len(cell(row, col)))

    header = "  ".join(col.upper().ljust(widths[col]) for col in columns)
    separator = "  ".join("-" * widths[col] for col in columns)

    lines = [header, separator]
    for row in rows:
        lines.append("  ".join(cell(row, col).ljust(widths[col]) for col in columns))

    return "\n".join(lines)


def output(data, as_json: bool = False):
    """Output data as JSON or formatted text."""
    if as_json:
        click.echo(json.dumps(data, indent=2, default=str))
    else:
        click.echo(data)


def document_summary(document: Document) -> dict[str, Any]:
    """JSON-friendly view of a document without its content."""
    return {
        "collection": document.collection,
        "path": document.path,
        "title": document.title,
        "tags": sorted(document.tags),
        "last_modified": document.last_modified.isoformat(),
        "size": document.size,
    }


def _handle_error(error: Exception, exit_code: int = 1) -> NoReturn:
    click.echo(f"Error: {error}", err=True)
    sys.exit(exit_code)


def _split_csv(value: str | None) -> set[str]:
    if not value:
        return set()
    return {part.strip() for part in value.split(",") if part.strip()}


def _get_settings(ctx: click.Context) -> Settings:
    from .config import ConfigurationError, load_settings

    if "settings" not in ctx.obj:
        try:
            ctx.obj["settings"] = load_settings(ctx.obj.get("config_file"))
        except ConfigurationError as exc:
            _handle_error(exc)
    return ctx.obj["settings"]


def _get_registry(ctx: click.Context) -> CollectionRegistry:
    from .registry import CollectionRegistry

    return CollectionRegistry(_get_settings(ctx))


def _get_client(settings: Settings) -> RecordingsClient:
    from .recordings import RecordingsClient

    return RecordingsClient(settings.api_key, base_url=settings.api_url)


def _get_importer(settings: Settings) -> RecordingImporter:
    from .recordings import RecordingImporter

    return RecordingImporter(
        settings.primary_path,
        recordings_dir=settings.recordings_dir,
        daily_dir=settings.daily_dir,
    )


def _echo_recording(recording: Recording, full: bool = False) -> None:
    star = " ⭐" if recording.is_starred else ""
    click.echo(f"🎙️ {recording.title}{star}")
    click.echo(f"   {recording.start_time:%Y-%m-%d %H:%M} · {recording.duration_minutes} min · {recording.id}")
    transcript = recording.markdown or "No transcript available."
    if not full and len(transcript) > 200:
        transcript = transcript[:200].rstrip() + "..."
    for line in transcript.splitlines():
        click.echo(f"   {line}")
    click.echo()


# ─────────────────────────────────────────────────────────────────────────────
# Main CLI Group
# ─────────────────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version=GHOSTKB_VERSION, prog_name="ghost")
@click.option(
    "--config",
    "config_file",
    type=click.Path(path_type=Path),
    help="Settings file (default: $GHOST_CONFIG or ./ghost.yaml)",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    envvar="GHOST_QUIET",
    help="Suppress warnings, show only errors and essential output",
)
@click.pass_context
def cli(ctx: click.Context, config_file: Path | None, quiet: bool):
    """ghost: search recordings and note collections as one knowledge base.

    \b
    Quick start:
      ghost collections                      # What is configured
      ghost search "roadmap" --content       # Titles and note bodies
      ghost search "" --tags=finance         # Everything tagged *finance*
      ghost index                            # Write the cross-collection index
      ghost import --days 3                  # Pull recent recordings
    """
    from ._logging import set_quiet_mode

    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file
    ctx.obj["quiet"] = quiet

    if quiet:
        set_quiet_mode(True)


# ─────────────────────────────────────────────────────────────────────────────
# Collections Command
# ─────────────────────────────────────────────────────────────────────────────


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def collections(ctx: click.Context, as_json: bool):
    """List configured collections and whether they are reachable.

    \b
    Examples:
      ghost collections
      ghost collections --json
    """
    registry = _get_registry(ctx)
    rows = [
        {
            "name": collection.name,
            "kind": collection.kind,
            "enabled": collection.enabled,
            "reachable": reachable,
            "root": str(collection.root),
        }
        for collection, reachable in registry.validate_all()
    ]

    if as_json:
        output(rows, as_json=True)
        return

    for row in rows:
        icon = "👻" if row["kind"] == "primary" else "📂"
        status = "✓ Connected" if row["reachable"] else "✗ Not found"
        enabled = "" if row["enabled"] else " (disabled)"
        click.echo(f"{icon} {row['name']}{enabled}")
        click.echo(f"   {status}")
        click.echo(f"   {row['root']}")


# ─────────────────────────────────────────────────────────────────────────────
# Search Command
# ─────────────────────────────────────────────────────────────────────────────


@cli.command()
@click.argument("query", default="")
@click.option("--content", "-c", "include_content", is_flag=True, help="Also search note content")
@click.option("--tags", "-t", help="Filter by tags (comma-separated, substring match)")
@click.option("--collections", "-v", "collection_names", help="Only these collections (comma-separated)")
@click.option("--limit", "-n", default=DEFAULT_SEARCH_LIMIT, type=click.IntRange(min=1), help="Max results")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def search(
    ctx: click.Context,
    query: str,
    include_content: bool,
    tags: str | None,
    collection_names: str | None,
    limit: int,
    as_json: bool,
):
    """Search notes across all collections.

    Matches QUERY against titles (and content with --content), newest first.

    \b
    Examples:
      ghost search "meeting"
      ghost search "pricing" --content --collections="Work"
      ghost search "" --tags=fin,legal --limit=5
    """
    from .models import SearchQuery
    from .publisher.report import relative_time
    from .search import search as core_search

    registry = _get_registry(ctx)
    response = core_search(
        registry,
        SearchQuery(
            text=query,
            tags=_split_csv(tags),
            collections=_split_csv(collection_names),
            limit=limit,
            include_content=include_content,
        ),
    )

    if as_json:
        output(
            {
                "results": [document_summary(d) for d in response.results],
                "warnings": response.warnings,
            },
            as_json=True,
        )
        return

    if not response.results:
        click.echo("No results found.")
        return

    now = datetime.now(UTC)
    click.echo(f"Found {len(response.results)} results:\n")
    for document in response.results:
        icon = "👻" if registry.is_primary_name(document.collection) else "📂"
        click.echo(f"{icon} {document.title}")
        click.echo(f"   {document.collection} / {document.path}")
        click.echo(f"   {relative_time(document.last_modified, now)}")
        if document.tags:
            click.echo("   " + " ".join(f"#{tag}" for tag in sorted(document.tags)[:5]))
        click.echo()


# ─────────────────────────────────────────────────────────────────────────────
# Index Command
# ─────────────────────────────────────────────────────────────────────────────


@cli.command()
@click.option("--no-write", is_flag=True, help="Print the index without saving the report")
@click.option("--top", default=10, type=click.IntRange(min=1), help="Topics to show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def index(ctx: click.Context, no_write: bool, top: int, as_json: bool):
    """Build the cross-collection topic index.

    Writes the Markdown report into the primary collection unless --no-write.

    \b
    Examples:
      ghost index
      ghost index --no-write --json
    """
    from .indexer import build_index, top_topics
    from .publisher.report import relative_time, write_index_report

    registry = _get_registry(ctx)
    result = build_index(registry)

    report_path = None
    if not no_write:
        try:
            report_path = write_index_report(result, registry)
        except OSError as exc:
            _handle_error(exc)

    if as_json:
        output(
            {
                "topics": [
                    {"topic": e.topic, "count": e.count, "collections": sorted(e.collections)}
                    for e in top_topics(result, top)
                ],
                "recent_documents": [document_summary(d) for d in result.recent_documents],
                "collection_stats": [s.model_dump(mode="json") for s in result.collection_stats],
                "warnings": result.warnings,
                "report": str(report_path) if report_path else None,
            },
            as_json=True,
        )
        return

    now = datetime.now(UTC)
    click.echo("Top Topics:")
    for entry in top_topics(result, top):
        click.echo(f"  {entry.topic} ({entry.count} notes) {', '.join(sorted(entry.collections))}")

    click.echo("\nRecent Activity:")
    for document in result.recent_documents[:5]:
        click.echo(f"  {document.title} ({document.collection}) - {relative_time(document.last_modified, now)}")

    if report_path:
        click.echo(f"\nIndex saved to {report_path}")


# ─────────────────────────────────────────────────────────────────────────────
# Stats Command
# ─────────────────────────────────────────────────────────────────────────────


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def stats(ctx: click.Context, as_json: bool):
    """Show document count and size per reachable collection.

    \b
    Examples:
      ghost stats
    """
    from .indexer import collection_stats
    from .publisher.report import format_megabytes

    stats_list, warnings = collection_stats(_get_registry(ctx))

    if as_json:
        output(
            {
                "collections": [s.model_dump(mode="json") for s in stats_list],
                "warnings": warnings,
            },
            as_json=True,
        )
        return

    if not stats_list:
        click.echo("No reachable collections.")
        return

    rows = [
        {"name": s.name, "notes": s.document_count, "size_mb": format_megabytes(s.total_size)}
        for s in stats_list
    ]
    click.echo(format_table(rows, ["name", "notes", "size_mb"]))


# ─────────────────────────────────────────────────────────────────────────────
# Recording Commands
# ─────────────────────────────────────────────────────────────────────────────


@cli.command()
@click.option("--days", "-d", default=7, type=click.IntRange(min=1), help="Look back N days")
@click.option("--max", "-n", "max_results", default=10, type=click.IntRange(min=1), help="Max results")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def recent(ctx: click.Context, days: int, max_results: int, as_json: bool):
    """List recent recordings from the recordings API.

    \b
    Examples:
      ghost recent --days 3
    """
    from .config import ConfigurationError
    from .recordings import RecordingsAPIError

    settings = _get_settings(ctx)
    try:
        client = _get_client(settings)
        recordings = client.recent(days, timezone=settings.timezone, max_results=max_results)
    except (ConfigurationError, RecordingsAPIError) as exc:
        _handle_error(exc)

    if as_json:
        output([r.model_dump(mode="json") for r in recordings], as_json=True)
        return

    if not recordings:
        click.echo("No recordings found.")
        return

    rows = [
        {
            "started": f"{r.start_time:%Y-%m-%d %H:%M}",
            "minutes": r.duration_minutes,
            "title": r.title,
            "id": r.id,
        }
        for r in recordings
    ]
    click.echo(format_table(rows, ["started", "minutes", "title", "id"], {"title": 40}))


@cli.command()
@click.argument("day", metavar="DATE", type=click.DateTime(formats=["%Y-%m-%d"]))
@click.option("--timezone", "-t", help="IANA timezone (default: settings timezone)")
@click.option("--max", "-n", "max_results", default=20, type=click.IntRange(min=1), help="Max results")
@click.option("--full", "-f", is_flag=True, help="Show full transcripts")
@click.pass_context
def date(ctx: click.Context, day: datetime, timezone: str | None, max_results: int, full: bool):
    """List recordings from one calendar date (YYYY-MM-DD).

    \b
    Examples:
      ghost date 2024-01-05
      ghost date 2024-01-05 --full --timezone Europe/Berlin
    """
    from .config import ConfigurationError
    from .recordings import RecordingsAPIError

    settings = _get_settings(ctx)
    try:
        client = _get_client(settings)
        recordings = client.for_date(
            f"{day:%Y-%m-%d}",
            timezone=timezone or settings.timezone,
            max_results=max_results,
        )
    except (ConfigurationError, RecordingsAPIError) as exc:
        _handle_error(exc)

    click.echo(f"Recordings for {day:%Y-%m-%d}: {len(recordings)}\n")
    for recording in recordings:
        _echo_recording(recording, full=full)


@cli.command()
@click.argument("recording_id", metavar="ID")
@click.option("--save", "-s", is_flag=True, help="Save as a note in the primary collection")
@click.pass_context
def get(ctx: click.Context, recording_id: str, save: bool):
    """Show one recording with its transcript.

    \b
    Examples:
      ghost get abc123
      ghost get abc123 --save
    """
    from .config import ConfigurationError
    from .recordings import RecordingsAPIError

    settings = _get_settings(ctx)
    try:
        client = _get_client(settings)
        recording = client.get_recording(recording_id)
    except (ConfigurationError, RecordingsAPIError) as exc:
        _handle_error(exc)

    _echo_recording(recording, full=True)

    if save:
        try:
            path = _get_importer(settings).import_recording(recording)
        except OSError as exc:
            _handle_error(exc)
        click.echo(f"Saved to {path}")


@cli.command()
@click.argument("query")
@click.option("--days", "-d", default=7, type=click.IntRange(min=1), help="Look back N days")
@click.option("--start", "-s", type=click.DateTime(), help="Start of the search window")
@click.option("--end", "-e", type=click.DateTime(), help="End of the search window")
@click.option("--timezone", "-t", help="IANA timezone (default: settings timezone)")
@click.option("--max", "-n", "max_results", default=50, type=click.IntRange(min=1), help="Max recordings")
@click.option("--single", "-o", help="Write one combined note with this filename")
@click.pass_context
def export(
    ctx: click.Context,
    query: str,
    days: int,
    start: datetime | None,
    end: datetime | None,
    timezone: str | None,
    max_results: int,
    single: str | None,
):
    """Export recordings as notes without touching the daily note.

    QUERY is a search phrase, or "recent" for the last --days days.

    \b
    Examples:
      ghost export recent --days 3
      ghost export "pricing" --start 2024-01-01 --single pricing-calls
    """
    from .config import ConfigurationError
    from .recordings import RecordingsAPIError

    settings = _get_settings(ctx)
    timezone = timezone or settings.timezone
    try:
        client = _get_client(settings)
        if query.lower() == "recent":
            recordings = client.recent(days, timezone=timezone, max_results=max_results)
        else:
            if start is None and end is None:
                end = datetime.now(UTC)
                start = end - timedelta(days=days)
            recordings = client.search(
                query,
                start=start,
                end=end,
                timezone=timezone,
                max_results=max_results,
            )
    except (ConfigurationError, RecordingsAPIError) as exc:
        _handle_error(exc)

    if not recordings:
        click.echo("No recordings found to export.")
        return

    importer = _get_importer(settings)
    try:
        if single:
            path = importer.export_single(recordings, single)
            click.echo(f"Exported {len(recordings)} recordings to {path}")
            return
        written, warnings = importer.import_recordings(recordings)
    except OSError as exc:
        _handle_error(exc)

    click.echo(f"Exported {len(written)} recordings to {importer.recordings_path}")
    for warning in warnings:
        click.echo(f"Warning: {warning}", err=True)
    for path in written:
        click.echo(f"  {path.name}")


@cli.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def list_recordings(ctx: click.Context, as_json: bool):
    """List recording notes saved in the primary collection.

    \b
    Examples:
      ghost list
    """
    importer = _get_importer(_get_settings(ctx))
    rows = []
    for path in importer.list_notes():
        stat = path.stat()
        rows.append(
            {
                "file": path.name,
                "size_kb": round(stat.st_size / 1024),
                "modified": f"{datetime.fromtimestamp(stat.st_mtime):%Y-%m-%d}",
            }
        )

    if as_json:
        output(rows, as_json=True)
        return

    if not rows:
        click.echo("No local recordings found. Use 'ghost export' or 'ghost import' to save some.")
        return

    click.echo(f"{len(rows)} recording notes in {importer.recordings_path}\n")
    click.echo(format_table(rows, ["file", "size_kb", "modified"], {"file": 70}))


@cli.command("import")
@click.option("--query", help="Natural-language search instead of recent recordings")
@click.option("--days", "-d", default=7, type=click.IntRange(min=1), help="Look back N days")
@click.option("--max", "-n", "max_results", default=20, type=click.IntRange(min=1), help="Max recordings")
@click.pass_context
def import_recordings(ctx: click.Context, query: str | None, days: int, max_results: int):
    """Import recordings as notes into the primary collection.

    Also writes today's daily note listing the imported recordings.

    \b
    Examples:
      ghost import --days 3
      ghost import --query "project kickoff" --max 5
    """
    from .config import ConfigurationError
    from .recordings import RecordingsAPIError

    settings = _get_settings(ctx)
    try:
        client = _get_client(settings)
        if query:
            recordings = client.search(query, timezone=settings.timezone, max_results=max_results)
        else:
            recordings = client.recent(days, timezone=settings.timezone, max_results=max_results)
    except (ConfigurationError, RecordingsAPIError) as exc:
        _handle_error(exc)

    if not recordings:
        click.echo("No recordings found to import.")
        return

    importer = _get_importer(settings)
    try:
        written, warnings = importer.import_recordings(recordings)
        daily = importer.update_daily_note(recordings)
    except OSError as exc:
        _handle_error(exc)

    click.echo(f"Imported {len(written)} recordings to {importer.recordings_path}")
    for warning in warnings:
        click.echo(f"Warning: {warning}", err=True)
    click.echo(f"Updated daily note {daily}")


# ─────────────────────────────────────────────────────────────────────────────
# Entry Point
# ─────────────────────────────────────────────────────────────────────────────


def main():
    """Entry point for ghost CLI."""
    from ._logging import configure_logging

    configure_logging()
    cli()


if __name__ == "__main__":
    main()
