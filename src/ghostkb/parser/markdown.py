"""Markdown note parsing: title, front-matter and tag extraction.

Front matter is read line by line rather than handed to a YAML loader as one
block, so a hand-edited note with one broken line still yields every other
key. python-frontmatter supplies the delimiter detection; PyYAML interprets
each value as a literal.
"""

import re
from datetime import UTC, date, datetime
from pathlib import Path, PurePath
from typing import NamedTuple

import yaml
from frontmatter.default_handlers import YAMLHandler

from ..config import NOTE_EXTENSION
from ..models import Document, FrontMatterValue
from .links import extract_concept_links

_handler = YAMLHandler()

# First level-1 heading: "# Title" (exactly one #, then spaces or tabs, then text)
TITLE_PATTERN = re.compile(r"^#[ \t]+(\S.*?)[ \t]*$", re.MULTILINE)

# "key: value" line inside a front-matter block
FIELD_PATTERN = re.compile(r"^([\w-]+):[ \t]*(.*?)[ \t]*$")

# "  - item" continuation line for a key with an empty value
LIST_ITEM_PATTERN = re.compile(r"^[ \t]+-[ \t]+(.+?)[ \t]*$")

# Inline #tag: not preceded by a word character, '#', or '&' (headings,
# URL fragments, HTML entities)
INLINE_TAG_PATTERN = re.compile(r"(?<![\w#&])#([A-Za-z0-9_-]+)")


class ParseError(Exception):
    """Raised when a note cannot be read or parsed."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


class ParsedNote(NamedTuple):
    """Structured fields extracted from note text."""

    title: str
    front_matter: dict[str, FrontMatterValue]
    body: str
    tags: set[str]


def extract_title(content: str, relative_path: str, extension: str = NOTE_EXTENSION) -> str:
    """Return the first H1 heading, or a title derived from the filename.

    Args:
        content: Note body (front matter already removed).
        relative_path: Path of the note relative to its collection root.
        extension: Note extension stripped from the filename.

    Returns:
        Trimmed heading text, or the filename without extension with
        '-' and '_' replaced by spaces (case preserved).
    """
    match = TITLE_PATTERN.search(content)
    if match:
        return match.group(1).strip()

    name = PurePath(relative_path.replace("\\", "/")).name
    if extension and name.endswith(extension):
        name = name[: -len(extension)]
    return name.replace("-", " ").replace("_", " ")


def _strip_quotes(value: str) -> str:
    if value[:1] in ("'", '"'):
        value = value[1:]
    if value[-1:] in ("'", '"'):
        value = value[:-1]
    return value


def _as_variant(value: object) -> FrontMatterValue | None:
    """Coerce a YAML-loaded value into a FrontMatterValue, or None if it has no variant."""
    if isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, list):
        items = [_as_variant(item) for item in value]
        if any(item is None for item in items):
            return None
        return items
    return None


def parse_value(raw: str) -> FrontMatterValue:
    """Interpret a front-matter value as a literal.

    Numbers, booleans, flow sequences and quoted strings become typed values.
    Anything else (including YAML errors, mappings, null and bare dates) falls
    back to the raw string with surrounding quotes removed.
    """
    try:
        loaded = yaml.safe_load(raw)
    except yaml.YAMLError:
        loaded = None

    # Bare dates stay as written rather than as isoformat()
    if not isinstance(loaded, (datetime, date)):
        variant = _as_variant(loaded)
        if variant is not None:
            return variant
    return _strip_quotes(raw)


def extract_front_matter(content: str) -> tuple[dict[str, FrontMatterValue], str]:
    """Split a leading front-matter block from the content.

    Only a block at the very start of the content is recognized. Lines that
    are not "key: value" pairs (or list items under an empty key) are skipped.

    Args:
        content: Full note text.

    Returns:
        Tuple of (front_matter, body). Without front matter the body is the
        whole content.
    """
    if not _handler.detect(content):
        return {}, content

    try:
        block, body = _handler.split(content)
    except ValueError:
        # Opening delimiter without a closing one
        return {}, content

    front_matter: dict[str, FrontMatterValue] = {}
    pending_key: str | None = None
    pending_items: list[FrontMatterValue] = []

    def flush() -> None:
        nonlocal pending_key, pending_items
        if pending_key is not None and pending_items:
            front_matter[pending_key] = pending_items
        pending_key = None
        pending_items = []

    for line in block.splitlines():
        item = LIST_ITEM_PATTERN.match(line)
        if item and pending_key is not None:
            pending_items.append(parse_value(item.group(1)))
            continue

        flush()
        field = FIELD_PATTERN.match(line)
        if not field:
            continue

        key, raw = field.groups()
        if raw:
            front_matter[key] = parse_value(raw)
        else:
            pending_key = key

    flush()
    return front_matter, body


def normalize_tag(tag: str) -> str:
    """Strip one leading '#' and surrounding whitespace."""
    tag = tag.strip()
    if tag.startswith("#"):
        tag = tag[1:]
    return tag.strip()


def extract_tags(content: str, front_matter: dict[str, FrontMatterValue], body: str) -> set[str]:
    """Collect tags from front matter, inline #tags and concept wiki-links.

    Args:
        content: Full note text, scanned for [[links]].
        front_matter: Parsed front matter, read for the 'tags' key.
        body: Note body without front matter, scanned for #tags.

    Returns:
        Set of normalized tags.
    """
    tags: set[str] = set()

    declared = front_matter.get("tags")
    if declared is not None:
        values = declared if isinstance(declared, list) else [declared]
        for value in values:
            if isinstance(value, str):
                tags.add(normalize_tag(value))

    for match in INLINE_TAG_PATTERN.finditer(body):
        tags.add(match.group(1).strip())

    tags.update(extract_concept_links(content))

    tags.discard("")
    return tags


def parse_note(content: str, relative_path: str, extension: str = NOTE_EXTENSION) -> ParsedNote:
    """Parse note text into title, front matter, body and tags."""
    front_matter, body = extract_front_matter(content)
    title = extract_title(body, relative_path, extension)
    tags = extract_tags(content, front_matter, body)
    return ParsedNote(title=title, front_matter=front_matter, body=body, tags=tags)


def load_document(
    collection: str,
    root: Path,
    path: Path,
    extension: str = NOTE_EXTENSION,
) -> Document:
    """Read and parse a note file into a Document.

    Args:
        collection: Name of the owning collection.
        root: Collection root directory.
        path: Absolute path of the note file.
        extension: Note extension, stripped when deriving a title.

    Returns:
        Parsed Document with size and modification time from the filesystem.

    Raises:
        ParseError: If the file cannot be read, decoded or parsed.
    """
    try:
        raw = path.read_bytes()
        stats = path.stat()
    except OSError as e:
        raise ParseError(path, f"Cannot read file: {e}") from e

    try:
        content = raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(path, f"Not valid UTF-8 text: {e}") from e

    relative_path = path.relative_to(root).as_posix()

    try:
        note = parse_note(content, relative_path, extension)
    except Exception as e:
        raise ParseError(path, f"Failed to parse note: {e}") from e

    return Document(
        collection=collection,
        path=relative_path,
        title=note.title,
        content=content,
        tags=note.tags,
        front_matter=note.front_matter,
        last_modified=datetime.fromtimestamp(stats.st_mtime, tz=UTC),
        size=stats.st_size,
    )
