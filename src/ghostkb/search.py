"""Cross-collection substring search.

Each call reads every candidate collection from disk, so results always
reflect the current files. There is no index to keep fresh.
"""

from __future__ import annotations

import logging

from .models import Document, SearchQuery, SearchResponse
from .registry import CollectionRegistry

log = logging.getLogger(__name__)


def matches_tags(document: Document, terms: set[str]) -> bool:
    """True if any document tag contains any term (case-insensitive).

    An empty term set filters nothing. A blank term is a substring of every
    tag, so it still requires the document to have at least one tag.
    """
    if not terms:
        return True
    lowered = [t.lower() for t in terms]
    return any(term in tag.lower() for tag in document.tags for term in lowered)


def matches_text(document: Document, text: str, include_content: bool = False) -> bool:
    """True if the title (or, optionally, the raw content) contains text."""
    needle = text.lower()
    if needle in document.title.lower():
        return True
    return include_content and needle in document.content.lower()


def search(registry: CollectionRegistry, query: SearchQuery) -> SearchResponse:
    """Search documents across collections.

    Args:
        registry: Registry supplying the candidate collections.
        query: Text, tag and collection filters plus an optional limit.

    Returns:
        SearchResponse with documents sorted newest first and warnings for
        every skipped collection or document. Unknown collection names simply
        contribute no documents.
    """
    if query.collections:
        candidates = registry.find(query.collections)
    else:
        candidates = registry.enabled()

    collections, warnings = registry.reachable(candidates)

    documents: list[Document] = []
    for collection in collections:
        found, read_warnings = registry.read(collection)
        documents.extend(found)
        warnings.extend(read_warnings)

    if query.tags:
        documents = [d for d in documents if matches_tags(d, query.tags)]

    if query.text:
        documents = [d for d in documents if matches_text(d, query.text, query.include_content)]

    documents.sort(key=lambda d: d.last_modified, reverse=True)

    if query.limit is not None:
        documents = documents[: query.limit]

    log.debug("Search %r matched %d documents", query.text, len(documents))
    return SearchResponse(results=documents, warnings=warnings)
