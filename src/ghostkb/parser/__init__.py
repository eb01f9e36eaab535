"""Markdown parsing with front matter, inline tags and wiki-link extraction."""

from .links import extract_concept_links, extract_links, is_concept_link
from .markdown import (
    ParsedNote,
    ParseError,
    extract_front_matter,
    extract_tags,
    extract_title,
    load_document,
    normalize_tag,
    parse_note,
)

__all__ = [
    "ParseError",
    "ParsedNote",
    "extract_concept_links",
    "extract_front_matter",
    "extract_links",
    "extract_tags",
    "extract_title",
    "is_concept_link",
    "load_document",
    "normalize_tag",
    "parse_note",
]
