"""Pydantic models for the knowledge base."""

from datetime import datetime
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from typing_extensions import TypeAliasType

# A front-matter value: scalar, or an ordered list of values.
FrontMatterValue = TypeAliasType(
    "FrontMatterValue",
    "bool | int | float | str | list[FrontMatterValue]",
)


class Collection(BaseModel):
    """A named root directory of Markdown notes."""

    name: str
    root: Path
    enabled: bool = True
    kind: Literal["primary", "external"] = "external"


class Document(BaseModel):
    """One parsed note, produced fresh by every scan."""

    collection: str  # Name of the owning collection
    path: str  # POSIX path relative to the collection root
    title: str
    content: str
    tags: set[str] = Field(default_factory=set)
    front_matter: dict[str, FrontMatterValue] = Field(default_factory=dict)
    last_modified: datetime
    size: int = 0  # Bytes on disk


class SearchQuery(BaseModel):
    """Filters for a cross-collection search."""

    text: str = ""
    tags: set[str] = Field(default_factory=set)  # Case-insensitive substring terms
    collections: set[str] = Field(default_factory=set)  # Exact collection names
    limit: int | None = Field(default=None, ge=0)  # 0 or None: no limit
    include_content: bool = False  # Also match the query against raw content

    @field_validator("limit")
    @classmethod
    def _zero_means_unlimited(cls, value: int | None) -> int | None:
        return value or None


class SearchResponse(BaseModel):
    """Response wrapper for search results with optional warnings."""

    results: list[Document]
    warnings: list[str] = Field(default_factory=list)


class TopicEntry(BaseModel):
    """Aggregated usage of one tag across collections."""

    topic: str
    count: int = 0
    collections: set[str] = Field(default_factory=set)


class CollectionStats(BaseModel):
    """Size summary of one scanned collection."""

    name: str
    root: Path
    document_count: int = 0
    total_size: int = 0  # Sum of document sizes in bytes


class TopicIndex(BaseModel):
    """Topic index built from every enabled, reachable collection."""

    topics: dict[str, TopicEntry] = Field(default_factory=dict)
    recent_documents: list[Document] = Field(default_factory=list)
    collection_stats: list[CollectionStats] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class Recording(BaseModel):
    """A voice recording as returned by the recordings API."""

    id: str
    title: str
    markdown: str | None = None
    start_time: datetime = Field(alias="startTime")
    end_time: datetime = Field(alias="endTime")
    is_starred: bool = Field(default=False, alias="isStarred")

    model_config = {"populate_by_name": True}

    @property
    def duration_minutes(self) -> int:
        """Recording length rounded to whole minutes."""
        return round((self.end_time - self.start_time).total_seconds() / 60)


class RecordingPage(BaseModel):
    """One page of recordings plus the cursor for the next page."""

    recordings: list[Recording] = Field(default_factory=list)
    next_cursor: str | None = None
