"""Markdown rendering of the topic index.

The report is written into the primary collection, so it is itself a note
that later scans pick up. Regenerating overwrites the same file.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from ..config import REPORT_RECENT_LIMIT, REPORT_TOPIC_LIMIT
from ..indexer import top_topics
from ..models import TopicIndex
from ..registry import CollectionRegistry

log = logging.getLogger(__name__)

PRIMARY_ICON = "👻"
EXTERNAL_ICON = "📂"


def relative_time(moment: datetime, now: datetime) -> str:
    """Describe how long ago moment was, in the largest whole unit."""
    seconds = (now - moment).total_seconds()
    days = int(seconds // 86400)
    hours = int(seconds // 3600)
    minutes = int(seconds // 60)

    if days > 0:
        return f"{days} day{'s' if days > 1 else ''} ago"
    if hours > 0:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    if minutes > 0:
        return f"{minutes} minute{'s' if minutes > 1 else ''} ago"
    return "Just now"


def collection_icon(registry: CollectionRegistry, name: str) -> str:
    return PRIMARY_ICON if registry.is_primary_name(name) else EXTERNAL_ICON


def format_megabytes(size: int) -> str:
    return f"{size / 1024 / 1024:.2f}"


def render_index_report(
    index: TopicIndex,
    registry: CollectionRegistry,
    *,
    now: datetime,
    topic_limit: int = REPORT_TOPIC_LIMIT,
    recent_limit: int = REPORT_RECENT_LIMIT,
) -> str:
    """Render the index as a Markdown document.

    Args:
        index: Index to render.
        registry: Registry used to tell the primary collection from external ones.
        now: Reference time for the header and relative timestamps.
        topic_limit: Rows in the topic table.
        recent_limit: Entries in the recent activity list.

    Returns:
        Markdown text ending with a newline.
    """
    lines = [
        "# 📚 Cross-Collection Knowledge Index",
        "",
        f"*Generated on {now.astimezone().strftime('%Y-%m-%d %H:%M')}*",
        "",
        "## 🏷️ Popular Topics",
        "",
        "| Topic | Count | Collections |",
        "|-------|-------|-------------|",
    ]

    for entry in top_topics(index, topic_limit):
        icons = " ".join(collection_icon(registry, name) for name in sorted(entry.collections))
        lines.append(f"| {entry.topic} | {entry.count} | {icons} |")

    lines += ["", "## 🕒 Recent Activity", ""]
    for document in index.recent_documents[:recent_limit]:
        icon = collection_icon(registry, document.collection)
        when = relative_time(document.last_modified, now)
        lines.append(f"- {icon} **[[{document.title}]]** ({document.collection}) - {when}")

    lines += ["", "## 📊 Collection Statistics", ""]
    for stats in index.collection_stats:
        icon = collection_icon(registry, stats.name)
        lines.append(
            f"- {icon} **{stats.name}**: {stats.document_count} notes, "
            f"{format_megabytes(stats.total_size)} MB"
        )

    lines += ["", "---", "", "*Index generated by ghostkb*", ""]
    return "\n".join(lines)


def write_index_report(
    index: TopicIndex,
    registry: CollectionRegistry,
    *,
    now: datetime | None = None,
) -> Path:
    """Write the rendered index to its fixed path in the primary collection.

    Returns:
        Path of the written report.
    """
    now = now or datetime.now(UTC)
    primary_root = registry.primary.root
    primary_root.mkdir(parents=True, exist_ok=True)

    path = primary_root / registry.settings.index_filename
    path.write_text(render_index_report(index, registry, now=now), encoding="utf-8")
    log.info("Wrote index report to %s", path)
    return path
