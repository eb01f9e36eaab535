"""Configuration management for ghostkb.

This module contains all configurable constants for the knowledge base and the
loader that turns a settings file plus environment variables into a Settings
object. Core modules never read the environment themselves: the CLI calls
load_settings() once and passes the result down.
"""

import os
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError


class ConfigurationError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


# =============================================================================
# Collections
# =============================================================================

# Name and location of the managed (primary) collection when nothing else is set.
DEFAULT_PRIMARY_NAME = "Ghost Vault"
DEFAULT_PRIMARY_PATH = "Ghost Vault"

# Only files with this suffix are treated as notes.
NOTE_EXTENSION = ".md"

# Directory names skipped during traversal (exact match, not patterns).
# .obsidian holds editor state, .git is version control, .trash is Obsidian's bin.
EXCLUDED_DIRS = (".obsidian", ".git", ".trash")

# GHOST_COLLECTION_<N>_* environment slots scanned by load_settings().
MAX_ENV_COLLECTIONS = 10

# Default settings file looked up in the working directory.
SETTINGS_FILENAME = "ghost.yaml"


# =============================================================================
# Primary collection layout
# =============================================================================

# Subdirectory receiving imported recording notes.
RECORDINGS_DIR = "🎙️ Recordings"

# Subdirectory receiving daily summary notes.
DAILY_DIR = "🎯 Daily"

# Generated index report, written at the primary collection root and
# overwritten on every regeneration.
INDEX_FILENAME = "📚 Cross-Collection Index.md"


# =============================================================================
# Index and search limits
# =============================================================================

# Number of documents kept in the topic index recency list.
RECENT_DOCUMENTS_LIMIT = 20

# Default number of search results shown by the CLI.
DEFAULT_SEARCH_LIMIT = 20

# Rows rendered into the persisted index report.
REPORT_TOPIC_LIMIT = 10
REPORT_RECENT_LIMIT = 10


# =============================================================================
# Recording API
# =============================================================================

DEFAULT_API_URL = "https://api.limitless.ai/v1"

# Seconds before an API request is abandoned.
API_TIMEOUT = 30

# The API refuses page sizes above this.
API_MAX_PAGE_SIZE = 10


class CollectionSettings(BaseModel):
    """One externally configured collection."""

    name: str = Field(min_length=1)
    path: Path
    enabled: bool = True


class Settings(BaseModel):
    """Process-wide settings, built once at startup."""

    primary_name: str = DEFAULT_PRIMARY_NAME
    primary_path: Path = Path(DEFAULT_PRIMARY_PATH)
    collections: list[CollectionSettings] = Field(default_factory=list)
    note_extension: str = NOTE_EXTENSION
    excluded_dirs: tuple[str, ...] = EXCLUDED_DIRS
    recordings_dir: str = RECORDINGS_DIR
    daily_dir: str = DAILY_DIR
    index_filename: str = INDEX_FILENAME
    recent_limit: int = Field(default=RECENT_DOCUMENTS_LIMIT, ge=1)
    api_key: str | None = None
    api_url: str = DEFAULT_API_URL
    timezone: str | None = None


def _parse_bool(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def _absolute(path: Path) -> Path:
    return path.expanduser().absolute()


def find_settings_file(
    config_file: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Path | None:
    """Locate the settings file.

    Discovery order:
    1. Explicit config_file argument
    2. GHOST_CONFIG environment variable
    3. ./ghost.yaml if it exists

    Returns:
        Path to the settings file, or None when no file is configured.

    Raises:
        ConfigurationError: If an explicitly requested file does not exist.
    """
    env = os.environ if environ is None else environ

    explicit = config_file or env.get("GHOST_CONFIG")
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise ConfigurationError(f"Settings file not found: {path}")
        return path

    default = Path.cwd() / SETTINGS_FILENAME
    if default.is_file():
        return default
    return None


def _read_settings_file(path: Path) -> dict:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read settings file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {path} must contain a mapping")

    values = {k: v for k, v in data.items() if k not in ("primary", "collections")}

    primary = data.get("primary") or {}
    if not isinstance(primary, dict):
        raise ConfigurationError(f"'primary' in {path} must be a mapping")
    if "name" in primary:
        values["primary_name"] = primary["name"]
    if "path" in primary:
        values["primary_path"] = primary["path"]

    collections = data.get("collections") or []
    if not isinstance(collections, list):
        raise ConfigurationError(f"'collections' in {path} must be a list")
    values["collections"] = collections

    return values


def _env_collections(env: Mapping[str, str]) -> list[dict]:
    """Read GHOST_COLLECTION_<N>_{NAME,PATH,ENABLED} slots.

    Slots missing a name or path are ignored. Disabled slots are kept so the
    registry can still list them.
    """
    found = []
    for i in range(1, MAX_ENV_COLLECTIONS + 1):
        name = env.get(f"GHOST_COLLECTION_{i}_NAME")
        path = env.get(f"GHOST_COLLECTION_{i}_PATH")
        if not name or not path:
            continue
        found.append(
            {
                "name": name,
                "path": path,
                "enabled": _parse_bool(env.get(f"GHOST_COLLECTION_{i}_ENABLED")),
            }
        )
    return found


def load_settings(
    config_file: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Build Settings from defaults, the settings file, and the environment.

    Args:
        config_file: Optional explicit settings file (YAML).
        environ: Environment mapping (defaults to os.environ).

    Returns:
        Settings with every path expanded and made absolute.

    Raises:
        ConfigurationError: If the settings file is unreadable or invalid.
    """
    env = os.environ if environ is None else environ

    values: dict = {}
    settings_path = find_settings_file(config_file, env)
    if settings_path is not None:
        values.update(_read_settings_file(settings_path))

    if env.get("GHOST_VAULT_PATH"):
        values["primary_path"] = env["GHOST_VAULT_PATH"]
    if env.get("GHOST_VAULT_NAME"):
        values["primary_name"] = env["GHOST_VAULT_NAME"]

    values["collections"] = list(values.get("collections", [])) + _env_collections(env)

    if env.get("LIMITLESS_API_KEY"):
        values["api_key"] = env["LIMITLESS_API_KEY"]
    if env.get("LIMITLESS_API_URL"):
        values["api_url"] = env["LIMITLESS_API_URL"]
    if env.get("GHOST_TIMEZONE"):
        values["timezone"] = env["GHOST_TIMEZONE"]

    try:
        settings = Settings.model_validate(values)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"  - {loc}: {error['msg']}")
        raise ConfigurationError("Invalid settings:\n" + "\n".join(errors)) from e

    settings.primary_path = _absolute(settings.primary_path)
    for collection in settings.collections:
        collection.path = _absolute(collection.path)
    return settings
