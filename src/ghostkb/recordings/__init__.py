"""Voice-recording import: API client and note writer."""

from .client import (
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    RecordingsAPIError,
    RecordingsClient,
)
from .notes import (
    RecordingImporter,
    extract_topics,
    format_recording_note,
    format_recordings_export,
    note_filename,
)

__all__ = [
    "AuthenticationError",
    "NotFoundError",
    "RateLimitError",
    "RecordingImporter",
    "RecordingsAPIError",
    "RecordingsClient",
    "extract_topics",
    "format_recording_note",
    "format_recordings_export",
    "note_filename",
]
