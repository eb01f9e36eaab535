"""Wiki-link extraction and concept-link detection."""

import re

# Pattern for [[link]] syntax - captures content between double brackets
# Handles [[path/to/entry]], [[entry]], [[entry|alias]] and [[entry#heading]]
LINK_PATTERN = re.compile(r"\[\[([^\]]+)\]\]")


def extract_links(content: str) -> list[str]:
    """Extract wiki-link targets from markdown content.

    Args:
        content: Markdown content to extract links from.

    Returns:
        List of unique link targets in order of first appearance, with any
        alias (|...) or heading anchor (#...) removed.
    """
    seen: set[str] = set()
    links: list[str] = []

    for link in LINK_PATTERN.findall(content):
        normalized = _normalize_link(link)
        if normalized and normalized not in seen:
            seen.add(normalized)
            links.append(normalized)

    return links


def _normalize_link(link: str) -> str:
    link = link.split("|", 1)[0]
    link = link.split("#", 1)[0]
    return link.strip()


def is_concept_link(target: str) -> bool:
    """Whether a link target names a concept rather than a file.

    Targets containing a dot (extensions) or a slash (paths) are treated as
    file references; everything else is a concept usable as a tag.
    """
    return "." not in target and "/" not in target


def extract_concept_links(content: str) -> list[str]:
    """Extract link targets that qualify as concept tags."""
    return [link for link in extract_links(content) if is_concept_link(link)]
