"""CLI tests for ghost.

Covers every command with:
- One happy path per command
- One error case where the command can fail
- Parametrized --help and --json checks

Design:
- Settings come from a ghost.yaml written per test, passed with --config
- The recordings client is replaced via ghostkb.cli._get_client
"""

import json
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from ghostkb import __version__ as GHOSTKB_VERSION
from ghostkb.cli import cli
from ghostkb.models import Recording
from ghostkb.recordings import AuthenticationError, NotFoundError

ALL_COMMANDS = [
    "collections",
    "search",
    "index",
    "stats",
    "recent",
    "import",
    "date",
    "get",
    "export",
    "list",
]

JSON_COMMANDS = ["collections", "search", "index", "stats", "list"]

ENV_VARS = [
    "GHOST_CONFIG",
    "GHOST_VAULT_PATH",
    "GHOST_VAULT_NAME",
    "GHOST_QUIET",
    "LIMITLESS_API_KEY",
    "LIMITLESS_API_URL",
    "GHOST_TIMEZONE",
    *(f"GHOST_COLLECTION_{i}_{field}" for i in range(1, 11) for field in ("NAME", "PATH", "ENABLED")),
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's own ghost settings out of CLI tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path: Path, primary: Path, external: Path) -> Path:
    path = tmp_path / "ghost.yaml"
    path.write_text(
        "primary:\n"
        "  name: Ghost Vault\n"
        f"  path: {primary}\n"
        "collections:\n"
        "  - name: Work\n"
        f"    path: {external}\n"
        "api_key: test-key\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def invoke(runner, config_file):
    """Invoke the CLI with the test settings file."""

    def _invoke(*args: str):
        return runner.invoke(cli, ["--config", str(config_file), *args])

    return _invoke


# ─────────────────────────────────────────────────────────────────────────────
# Help and Version
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.parametrize("cmd", ALL_COMMANDS)
def test_command_help(runner, cmd):
    """Every command has working --help."""
    result = runner.invoke(cli, [cmd, "--help"])
    assert result.exit_code == 0, f"{cmd} --help failed: {result.output}"
    assert "Usage:" in result.output


def test_main_help_lists_commands(runner):
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    for cmd in ALL_COMMANDS:
        assert cmd in result.output, f"Missing command: {cmd}"


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert GHOSTKB_VERSION in result.output


@pytest.mark.usefixtures("sample_notes")
@pytest.mark.parametrize("cmd", JSON_COMMANDS)
def test_json_output_is_valid(invoke, cmd):
    args = [cmd, "--json"]
    if cmd == "index":
        args.append("--no-write")
    result = invoke(*args)

    assert result.exit_code == 0, result.output
    json.loads(result.output)


# ─────────────────────────────────────────────────────────────────────────────
# Configuration Errors
# ─────────────────────────────────────────────────────────────────────────────


def test_missing_config_file(runner, tmp_path):
    result = runner.invoke(cli, ["--config", str(tmp_path / "absent.yaml"), "stats"])

    assert result.exit_code == 1
    assert "Error:" in result.output
    assert "not found" in result.output


def test_invalid_config_file(runner, tmp_path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("recent_limit: zero\n")

    result = runner.invoke(cli, ["--config", str(bad), "stats"])

    assert result.exit_code == 1
    assert "recent_limit" in result.output


# ─────────────────────────────────────────────────────────────────────────────
# Collections Command
# ─────────────────────────────────────────────────────────────────────────────


class TestCollections:
    def test_lists_primary_and_external(self, invoke):
        result = invoke("collections")

        assert result.exit_code == 0, result.output
        assert "👻 Ghost Vault" in result.output
        assert "📂 Work" in result.output
        assert "✓ Connected" in result.output

    def test_unreachable_collection_is_flagged(self, invoke, external):
        external.rmdir()

        result = invoke("collections", "--json")

        data = {row["name"]: row for row in json.loads(result.output)}
        assert data["Work"]["reachable"] is False
        assert data["Ghost Vault"]["kind"] == "primary"


# ─────────────────────────────────────────────────────────────────────────────
# Search Command
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.usefixtures("sample_notes")
class TestSearch:
    def test_text_search(self, invoke):
        result = invoke("search", "budget")

        assert result.exit_code == 0, result.output
        assert "Found 1 results:" in result.output
        assert "Household Budget" in result.output
        assert "#finance #planning" in result.output

    def test_tag_filter_json(self, invoke):
        result = invoke("search", "--tags=fin,legal", "--json")

        data = json.loads(result.output)
        assert [r["title"] for r in data["results"]] == ["Contract Review", "Household Budget"]
        assert data["results"][1]["tags"] == ["finance", "planning"]
        assert "content" not in data["results"][0]

    def test_collection_filter_and_limit(self, invoke):
        result = invoke("search", "--collections=Work", "--limit=1", "--json")

        data = json.loads(result.output)
        assert [r["path"] for r in data["results"]] == ["contract-review.md"]

    def test_content_flag(self, invoke):
        result = invoke("search", "clauses", "--content")

        assert "Contract Review" in result.output

    def test_no_results(self, invoke):
        result = invoke("search", "nothing-matches-this")

        assert result.exit_code == 0
        assert "No results found." in result.output

    def test_invalid_limit(self, invoke):
        result = invoke("search", "x", "--limit=0")

        assert result.exit_code != 0


# ─────────────────────────────────────────────────────────────────────────────
# Index and Stats Commands
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.usefixtures("sample_notes")
class TestIndex:
    def test_writes_report(self, invoke, primary):
        result = invoke("index")

        assert result.exit_code == 0, result.output
        assert "Top Topics:" in result.output
        assert "planning (2 notes)" in result.output
        report = primary / "📚 Cross-Collection Index.md"
        assert report.exists()
        assert f"Index saved to {report}" in result.output

    def test_no_write(self, invoke, primary):
        result = invoke("index", "--no-write", "--json")

        data = json.loads(result.output)
        assert data["report"] is None
        assert data["topics"][0] == {
            "topic": "planning",
            "count": 2,
            "collections": ["Ghost Vault", "Work"],
        }
        assert not (primary / "📚 Cross-Collection Index.md").exists()


@pytest.mark.usefixtures("sample_notes")
class TestStats:
    def test_table(self, invoke):
        result = invoke("stats")

        assert result.exit_code == 0, result.output
        assert "NAME" in result.output
        assert "Ghost Vault" in result.output
        assert "Work" in result.output

    def test_json(self, invoke):
        result = invoke("stats", "--json")

        data = json.loads(result.output)
        counts = {c["name"]: c["document_count"] for c in data["collections"]}
        assert counts == {"Ghost Vault": 2, "Work": 2}


# ─────────────────────────────────────────────────────────────────────────────
# Recording Commands
# ─────────────────────────────────────────────────────────────────────────────


def _recording(n: int) -> Recording:
    return Recording(
        id=f"rec-{n}",
        title=f"Team meeting {n}",
        markdown="Notes from the call.",
        start_time=datetime(2024, 1, 5, 9 + n, tzinfo=UTC),
        end_time=datetime(2024, 1, 5, 9 + n, 20, tzinfo=UTC),
    )


class TestRecordings:
    def test_import(self, invoke, primary):
        client = MagicMock()
        client.recent.return_value = [_recording(1), _recording(2)]

        with patch("ghostkb.cli._get_client", return_value=client):
            result = invoke("import", "--days", "3")

        assert result.exit_code == 0, result.output
        assert "Imported 2 recordings" in result.output
        assert "Updated daily note" in result.output
        assert len(list((primary / "🎙️ Recordings").iterdir())) == 2
        assert client.recent.call_args.args[0] == 3

    def test_import_with_query(self, invoke):
        client = MagicMock()
        client.search.return_value = []

        with patch("ghostkb.cli._get_client", return_value=client):
            result = invoke("import", "--query", "roadmap")

        assert result.exit_code == 0
        assert "No recordings found to import." in result.output
        client.search.assert_called_once()

    def test_api_error(self, invoke):
        client = MagicMock()
        client.recent.side_effect = AuthenticationError()

        with patch("ghostkb.cli._get_client", return_value=client):
            result = invoke("recent")

        assert result.exit_code == 1
        assert "Invalid API key" in result.output

    def test_missing_api_key(self, runner, tmp_path, primary):
        config = tmp_path / "nokey.yaml"
        config.write_text(f"primary:\n  path: {primary}\n")

        result = runner.invoke(cli, ["--config", str(config), "recent"])

        assert result.exit_code == 1
        assert "API key" in result.output

    def test_recent_table(self, invoke):
        client = MagicMock()
        client.recent.return_value = [_recording(1)]

        with patch("ghostkb.cli._get_client", return_value=client):
            result = invoke("recent", "--days", "2")

        assert result.exit_code == 0, result.output
        assert "Team meeting 1" in result.output
        assert "rec-1" in result.output

    def test_date(self, invoke):
        client = MagicMock()
        client.for_date.return_value = [_recording(1)]

        with patch("ghostkb.cli._get_client", return_value=client):
            result = invoke("date", "2024-01-05", "--full")

        assert result.exit_code == 0, result.output
        assert "Recordings for 2024-01-05: 1" in result.output
        assert "Team meeting 1" in result.output
        assert client.for_date.call_args.args[0] == "2024-01-05"

    def test_date_rejects_bad_format(self, invoke):
        result = invoke("date", "05/01/2024")

        assert result.exit_code != 0

    def test_get_without_save(self, invoke, primary):
        client = MagicMock()
        client.get_recording.return_value = _recording(1)

        with patch("ghostkb.cli._get_client", return_value=client):
            result = invoke("get", "rec-1")

        assert result.exit_code == 0, result.output
        assert "Notes from the call." in result.output
        assert not (primary / "🎙️ Recordings").exists()
        client.get_recording.assert_called_once_with("rec-1")

    def test_get_with_save(self, invoke, primary):
        client = MagicMock()
        client.get_recording.return_value = _recording(1)

        with patch("ghostkb.cli._get_client", return_value=client):
            result = invoke("get", "rec-1", "--save")

        assert result.exit_code == 0, result.output
        saved = list((primary / "🎙️ Recordings").iterdir())
        assert len(saved) == 1
        assert f"Saved to {saved[0]}" in result.output

    def test_get_not_found(self, invoke):
        client = MagicMock()
        client.get_recording.side_effect = NotFoundError()

        with patch("ghostkb.cli._get_client", return_value=client):
            result = invoke("get", "missing")

        assert result.exit_code == 1
        assert "Resource not found." in result.output

    def test_export_recent_as_separate_notes(self, invoke, primary):
        client = MagicMock()
        client.recent.return_value = [_recording(1), _recording(2)]

        with patch("ghostkb.cli._get_client", return_value=client):
            result = invoke("export", "recent", "--days", "2")

        assert result.exit_code == 0, result.output
        assert "Exported 2 recordings" in result.output
        assert len(list((primary / "🎙️ Recordings").iterdir())) == 2
        assert not (primary / "🎯 Daily" / "2024-01-05.md").exists()

    def test_export_query_to_single_file(self, invoke, primary):
        client = MagicMock()
        client.search.return_value = [_recording(1), _recording(2)]

        with patch("ghostkb.cli._get_client", return_value=client):
            result = invoke("export", "roadmap", "--start", "2024-01-01", "--single", "roadmap")

        assert result.exit_code == 0, result.output
        assert (primary / "🎙️ Recordings" / "roadmap.md").exists()
        kwargs = client.search.call_args.kwargs
        assert kwargs["start"] == datetime(2024, 1, 1)
        assert kwargs["end"] is None

    def test_export_nothing_found(self, invoke):
        client = MagicMock()
        client.search.return_value = []

        with patch("ghostkb.cli._get_client", return_value=client):
            result = invoke("export", "nothing")

        assert result.exit_code == 0
        assert "No recordings found to export." in result.output
        assert client.search.call_args.kwargs["start"] is not None

    def test_list(self, invoke, primary):
        empty = invoke("list")
        assert "No local recordings found." in empty.output

        (primary / "🎙️ Recordings").mkdir()
        (primary / "🎙️ Recordings" / "2024-01-05 note.md").write_text("# Note\n")

        result = invoke("list")

        assert result.exit_code == 0, result.output
        assert "1 recording notes" in result.output
        assert "2024-01-05 note.md" in result.output
