"""Recording notes: turn API recordings into Markdown notes in the primary collection.

Generated notes use the same front-matter + #tag + [[link]] conventions the
parser reads, so imported recordings are indexed like any other note.
"""

from __future__ import annotations

import logging
import re
from datetime import UTC, date, datetime
from pathlib import Path

from ..config import DAILY_DIR, RECORDINGS_DIR
from ..models import Recording

log = logging.getLogger(__name__)

# Topic -> keywords; a topic applies when any keyword occurs in the title or transcript.
TOPIC_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Business": ("business", "venture", "entrepreneur", "startup", "revenue", "profit"),
    "AI": ("ai", "artificial intelligence", "machine learning", "automation", "chatbot"),
    "Marketing": ("marketing", "sales", "lead", "customer", "conversion"),
    "Technology": ("software", "app", "website", "code", "development", "api"),
    "Meeting": ("meeting", "call", "discussion", "client", "team"),
    "Ideas": ("idea", "concept", "plan", "strategy", "vision"),
    "Content": ("content", "video", "podcast", "blog", "social media"),
    "Lead Generation": ("lead generation", "leads", "prospects", "automation"),
    "Productivity": ("productivity", "efficiency", "workflow", "system"),
    "Learning": ("learn", "study", "research", "knowledge", "education"),
}

MAX_TOPICS = 5
MAX_TITLE_CHARS = 60


def clean_title(title: str) -> str:
    """Title reduced to characters safe in a filename."""
    cleaned = re.sub(r"[^\w\s-]", "", title)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    return cleaned[:MAX_TITLE_CHARS]


def note_filename(recording: Recording) -> str:
    """Filename of the form 'YYYY-MM-DD HH-MM-SS - Title.md'."""
    started = recording.start_time
    return f"{started:%Y-%m-%d} {started:%H-%M-%S} - {clean_title(recording.title)}.md"


def extract_topics(recording: Recording) -> list[str]:
    """Topics whose keywords appear in the title or transcript, at most five."""
    text = f"{recording.title} {recording.markdown or ''}".lower()
    topics = [
        topic
        for topic, keywords in TOPIC_KEYWORDS.items()
        if any(keyword in text for keyword in keywords)
    ]
    return topics[:MAX_TOPICS]


def _quoted(values: list[str]) -> str:
    return ", ".join(f'"{v}"' for v in values)


def format_recording_note(recording: Recording, *, now: datetime | None = None) -> str:
    """Render a recording as a Markdown note with front matter.

    Args:
        recording: Recording to render.
        now: Import time shown in the footer (defaults to the current time).

    Returns:
        Complete note text.
    """
    now = now or datetime.now(UTC)
    topics = extract_topics(recording)
    tags = ["recording", *topics]
    if recording.is_starred:
        tags.append("starred")

    started = recording.start_time
    starred = "true" if recording.is_starred else "false"

    front_matter = [
        "---",
        "type: recording",
        f"date: {started.isoformat()}",
        f"duration: {recording.duration_minutes}",
        f'id: "{recording.id}"',
        f"starred: {starred}",
        "source: limitless",
        f"topics: [{_quoted(topics)}]",
        f"tags: [{_quoted(tags)}]",
        "---",
        "",
    ]

    body = [
        f"# {recording.title}",
        "",
        "## 📊 Recording Details",
        f"- **Date:** {started:%Y-%m-%d %H:%M}",
        f"- **Duration:** {recording.duration_minutes} minutes",
        f"- **Recording ID:** `{recording.id}`",
        f"- **Starred:** {'⭐ Yes' if recording.is_starred else 'No'}",
        "",
        "## 🏷️ Topics",
        *(f"- [[{topic}]]" for topic in topics),
        "",
        "---",
        "",
        recording.markdown or "No transcript available.",
        "",
        "---",
        "",
        "## 💡 Potential Actions",
        "- [ ] Extract key insights to separate notes",
        "- [ ] Link to relevant projects",
        "- [ ] Create action items",
        "- [ ] Follow up on mentioned topics",
        "",
        "## 🔗 Related Notes",
        "<!-- Add related notes here -->",
        "",
        "---",
        "",
        f"*Recording imported by ghostkb on {now:%Y-%m-%d %H:%M}*",
        "",
    ]
    return "\n".join(front_matter + body)


def format_recordings_export(recordings: list[Recording], *, now: datetime | None = None) -> str:
    """Render several recordings into one Markdown document, newest first as given."""
    now = now or datetime.now(UTC)
    total_minutes = sum(r.duration_minutes for r in recordings)
    lines = [
        "# 🎙️ Recordings Export",
        "",
        f"*Exported on {now:%Y-%m-%d %H:%M}*",
        "",
        f"- **Recordings:** {len(recordings)}",
        f"- **Total Duration:** {total_minutes} minutes",
        "",
    ]
    for recording in recordings:
        lines += [
            "---",
            "",
            f"## {recording.title}",
            "",
            f"- **Date:** {recording.start_time:%Y-%m-%d %H:%M}",
            f"- **Duration:** {recording.duration_minutes} minutes",
            f"- **Recording ID:** `{recording.id}`",
            "",
            recording.markdown or "No transcript available.",
            "",
        ]
    return "\n".join(lines)


class RecordingImporter:
    """Writes recording notes and daily summaries into the primary collection."""

    def __init__(
        self,
        primary_root: Path,
        *,
        recordings_dir: str = RECORDINGS_DIR,
        daily_dir: str = DAILY_DIR,
    ) -> None:
        self.primary_root = primary_root
        self.recordings_path = primary_root / recordings_dir
        self.daily_path = primary_root / daily_dir
        self.recordings_dir = recordings_dir

    def ensure_directories(self) -> None:
        for directory in (self.primary_root, self.recordings_path, self.daily_path):
            directory.mkdir(parents=True, exist_ok=True)

    def import_recording(self, recording: Recording, *, now: datetime | None = None) -> Path:
        """Write one recording note, replacing any earlier import of it."""
        self.ensure_directories()
        path = self.recordings_path / note_filename(recording)
        path.write_text(format_recording_note(recording, now=now), encoding="utf-8")
        log.debug("Imported recording %s to %s", recording.id, path)
        return path

    def import_recordings(
        self,
        recordings: list[Recording],
        *,
        now: datetime | None = None,
    ) -> tuple[list[Path], list[str]]:
        """Import several recordings; a failed write is reported and skipped.

        Returns:
            Tuple of (written paths, warnings).
        """
        written: list[Path] = []
        warnings: list[str] = []
        for recording in recordings:
            try:
                written.append(self.import_recording(recording, now=now))
            except OSError as e:
                message = f"Error importing recording {recording.id}: {e}"
                log.warning(message)
                warnings.append(message)
        return written, warnings

    def export_single(
        self,
        recordings: list[Recording],
        filename: str,
        *,
        now: datetime | None = None,
    ) -> Path:
        """Write all recordings into one note in the recordings directory."""
        self.ensure_directories()
        name = Path(filename).name
        if not name.endswith(".md"):
            name += ".md"
        path = self.recordings_path / name
        path.write_text(format_recordings_export(recordings, now=now), encoding="utf-8")
        log.debug("Exported %d recordings to %s", len(recordings), path)
        return path

    def list_notes(self) -> list[Path]:
        """Recording notes currently on disk, sorted by filename."""
        if not self.recordings_path.is_dir():
            return []
        return sorted(p for p in self.recordings_path.iterdir() if p.is_file() and p.suffix == ".md")

    def update_daily_note(
        self,
        recordings: list[Recording],
        *,
        today: date | None = None,
        now: datetime | None = None,
    ) -> Path:
        """Write today's daily note summarizing the given recordings."""
        self.ensure_directories()
        now = now or datetime.now(UTC)
        day = (today or now.date()).isoformat()
        total_minutes = sum(r.duration_minutes for r in recordings)

        lines = [
            f"# 📅 Daily Note - {day}",
            "",
            "## 🎙️ Today's Recordings",
            f"- **Total Recordings:** {len(recordings)}",
            f"- **Total Duration:** {total_minutes} minutes",
            "",
        ]

        if recordings:
            lines += ["### 📝 Recording Summary", ""]
            for recording in recordings:
                target = f"{self.recordings_dir}/{note_filename(recording).removesuffix('.md')}"
                lines.append(
                    f"- [[{target}]] ({recording.duration_minutes} min) - {recording.title}"
                )
            lines.append("")

        lines += [
            "## 💡 Key Insights",
            "<!-- Add insights extracted from today's recordings -->",
            "",
            "## 📋 Action Items",
            "- [ ] Review recordings for action items",
            "- [ ] Extract key insights to separate notes",
            "- [ ] Follow up on mentioned topics",
            "",
            "---",
            "",
            f"*Daily note updated by ghostkb on {now:%Y-%m-%d %H:%M}*",
            "",
        ]

        path = self.daily_path / f"{day}.md"
        path.write_text("\n".join(lines), encoding="utf-8")
        return path
