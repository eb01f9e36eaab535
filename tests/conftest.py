"""Shared test fixtures for the ghostkb test suite.

Design:
- primary / external: isolated collection roots under tmp_path
- settings / registry: explicit Settings, never read from the environment
- runner: CliRunner for command tests
"""

import os
from datetime import UTC, datetime
from pathlib import Path

import pytest
from click.testing import CliRunner

from ghostkb.config import CollectionSettings, Settings
from ghostkb.registry import CollectionRegistry


# ─────────────────────────────────────────────────────────────────────────────
# Helper Functions (for test code, not fixtures)
# ─────────────────────────────────────────────────────────────────────────────


def write_note(
    root: Path,
    rel_path: str,
    content: str,
    modified: datetime | None = None,
) -> Path:
    """Create a note file, optionally pinning its modification time.

    Usage in tests:
        from conftest import write_note
        write_note(primary, "ideas/plan.md", "# Plan", datetime(2024, 1, 2, tzinfo=UTC))
    """
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    if modified is not None:
        stamp = modified.timestamp()
        os.utime(path, (stamp, stamp))
    return path


def at(day: int, hour: int = 12) -> datetime:
    """A fixed UTC moment in January 2024."""
    return datetime(2024, 1, day, hour, tzinfo=UTC)


# ─────────────────────────────────────────────────────────────────────────────
# Core Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def runner() -> CliRunner:
    """CLI runner with isolated environment."""
    return CliRunner()


@pytest.fixture
def primary(tmp_path: Path) -> Path:
    root = tmp_path / "Ghost Vault"
    root.mkdir()
    return root


@pytest.fixture
def external(tmp_path: Path) -> Path:
    root = tmp_path / "Work"
    root.mkdir()
    return root


@pytest.fixture
def settings(primary: Path, external: Path) -> Settings:
    """Primary collection plus one enabled external collection named 'Work'."""
    return Settings(
        primary_name="Ghost Vault",
        primary_path=primary,
        collections=[CollectionSettings(name="Work", path=external, enabled=True)],
    )


@pytest.fixture
def registry(settings: Settings) -> CollectionRegistry:
    return CollectionRegistry(settings)


@pytest.fixture
def sample_notes(primary: Path, external: Path) -> None:
    """Seed both collections.

    Creates:
    - primary/budget.md        (tags: finance, planning)      Jan 3
    - primary/🎙️ Recordings/standup.md (tags: recording, Meeting) Jan 5
    - Work/contract-review.md  (tags: legal)                  Jan 4
    - Work/notes/q1_goals.md   (tags: planning; no H1)        Jan 2
    """
    write_note(
        primary,
        "budget.md",
        "---\ntags: [finance, planning]\n---\n# Household Budget\nMonthly numbers.\n",
        at(3),
    )
    write_note(
        primary,
        "🎙️ Recordings/standup.md",
        '---\ntype: recording\ntags: ["recording"]\n---\n# Daily Standup\nTalked about [[Meeting]] notes.\n',
        at(5),
    )
    write_note(
        external,
        "contract-review.md",
        "# Contract Review\nClauses to check #legal\n",
        at(4),
    )
    write_note(
        external,
        "notes/q1_goals.md",
        "Goals for the quarter #planning\n",
        at(2),
    )
