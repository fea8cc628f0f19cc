"""flow: a local note graph of daily journal files kept in sync with a Loro document.

Layout of a graph root:
    .flow/
        graph.toml        # {name, version}
        graph.loro        # snapshot of every journal entry (source of truth)
        lock              # single-writer lock
    journal/
        <YYYY-MM-DD>.md   # one materialized file per day; users may edit these

Adding to a journal entry first folds any edits made to its file on disk back
into the document as a character-level diff, then appends, then rewrites the
file from the document. Manual edits and new bullets both survive.
"""

from flow._version import __version__
from flow.config import Config, GraphConfig
from flow.errors import (
    ConfigError,
    CorruptMetadataError,
    CorruptSnapshotError,
    FlowError,
    GraphAlreadyExistsError,
    GraphIOError,
    GraphLockedError,
    GraphNotFoundError,
    InvalidContentError,
    InvalidEncodingError,
    NoActiveGraphError,
)
from flow.graph import GraphSession
from flow.lock import GraphLock
from flow.models import GraphMetadata, journal_id
from flow.store import DocumentStore, TextHandle

__all__ = [
    "Config",
    "ConfigError",
    "CorruptMetadataError",
    "CorruptSnapshotError",
    "DocumentStore",
    "FlowError",
    "GraphAlreadyExistsError",
    "GraphConfig",
    "GraphIOError",
    "GraphLock",
    "GraphLockedError",
    "GraphMetadata",
    "GraphNotFoundError",
    "GraphSession",
    "InvalidContentError",
    "InvalidEncodingError",
    "NoActiveGraphError",
    "TextHandle",
    "__version__",
    "journal_id",
]
