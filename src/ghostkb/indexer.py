"""Topic index: tag frequency, recency and per-collection size across collections."""

from __future__ import annotations

import logging

from .models import CollectionStats, Document, TopicEntry, TopicIndex
from .registry import CollectionRegistry

log = logging.getLogger(__name__)


def _stats_for(name, root, documents: list[Document]) -> CollectionStats:
    return CollectionStats(
        name=name,
        root=root,
        document_count=len(documents),
        total_size=sum(d.size for d in documents),
    )


def build_index(registry: CollectionRegistry, *, recent_limit: int | None = None) -> TopicIndex:
    """Aggregate every enabled, reachable collection into a TopicIndex.

    Unreachable collections are left out of topics, recent documents and
    stats alike, with a warning. Each collection is read once.

    Args:
        registry: Registry supplying the collections.
        recent_limit: Size of the recency list (defaults to settings.recent_limit).

    Returns:
        TopicIndex built fresh from the filesystem.
    """
    limit = recent_limit if recent_limit is not None else registry.settings.recent_limit
    collections, warnings = registry.reachable(registry.enabled())

    topics: dict[str, TopicEntry] = {}
    all_documents: list[Document] = []
    stats: list[CollectionStats] = []

    for collection in collections:
        documents, read_warnings = registry.read(collection)
        warnings.extend(read_warnings)
        all_documents.extend(documents)
        stats.append(_stats_for(collection.name, collection.root, documents))

        for document in documents:
            for tag in document.tags:
                entry = topics.get(tag)
                if entry is None:
                    entry = topics[tag] = TopicEntry(topic=tag)
                entry.count += 1
                entry.collections.add(collection.name)

    all_documents.sort(key=lambda d: d.last_modified, reverse=True)

    log.info(
        "Indexed %d documents, %d topics across %d collections",
        len(all_documents),
        len(topics),
        len(stats),
    )
    return TopicIndex(
        topics=topics,
        recent_documents=all_documents[:limit],
        collection_stats=stats,
        warnings=warnings,
    )


def collection_stats(registry: CollectionRegistry) -> tuple[list[CollectionStats], list[str]]:
    """Document count and total size for each enabled, reachable collection."""
    collections, warnings = registry.reachable(registry.enabled())
    stats: list[CollectionStats] = []
    for collection in collections:
        documents, read_warnings = registry.read(collection)
        warnings.extend(read_warnings)
        stats.append(_stats_for(collection.name, collection.root, documents))
    return stats, warnings


def top_topics(index: TopicIndex, limit: int | None = None) -> list[TopicEntry]:
    """Topics by descending count, ties broken by topic name."""
    ranked = sorted(index.topics.values(), key=lambda e: (-e.count, e.topic))
    return ranked if limit is None else ranked[:limit]
