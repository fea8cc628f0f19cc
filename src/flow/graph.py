"""GraphSession: one flow graph directory, its document store and dirty set.

Layout (relative to the graph root):

    .flow/
        graph.toml        # metadata: name, version
        graph.loro        # binary snapshot of the document store (source of truth)
        lock              # single-writer lock, see flow.lock
    journal/
        2026-01-31.md     # materialized view of document "journal/2026-01-31.md"

The store is derived purely from graph.loro on every load. Journal files are
rewritten from the store on save, after any external edits to them have been
folded back in by the journal reconciler. The dirty set lives only in memory;
a crash between add and save loses the add but never corrupts the snapshot.
"""

from __future__ import annotations

import contextlib
import logging
import tomllib
from datetime import date
from pathlib import Path

from flow._version import __version__
from flow.errors import (
    CorruptMetadataError,
    CorruptSnapshotError,
    GraphAlreadyExistsError,
    GraphIOError,
    GraphNotFoundError,
)
from flow.journal import append_entry
from flow.lock import GraphLock
from flow.models import (
    DEFAULT_GRAPH_NAME,
    DOCUMENT_FILE,
    FLOW_DIR,
    JOURNAL_DIR,
    METADATA_FILE,
    GraphMetadata,
    journal_id,
)
from flow.store import DocumentStore

logger = logging.getLogger("flow.graph")


def _write_atomic(path: Path, data: bytes) -> None:
    """Write to a sibling temp file then rename over path."""
    tmp = path.with_name(path.name + ".tmp")
    try:
        tmp.write_bytes(data)
        tmp.replace(path)
    except OSError as exc:
        with contextlib.suppress(OSError):
            tmp.unlink(missing_ok=True)
        raise GraphIOError(path, exc) from exc


class GraphSession:
    """An open graph. Create with init() or load(), persist with save()."""

    def __init__(self, root: Path, metadata: GraphMetadata, store: DocumentStore) -> None:
        self.root = root
        self.metadata = metadata
        self.store = store
        self.dirty_ids: set[str] = set()

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @staticmethod
    def _flow_dir(root: Path) -> Path:
        return root / FLOW_DIR

    @property
    def metadata_path(self) -> Path:
        return self._flow_dir(self.root) / METADATA_FILE

    @property
    def snapshot_path(self) -> Path:
        return self._flow_dir(self.root) / DOCUMENT_FILE

    @property
    def journal_dir(self) -> Path:
        return self.root / JOURNAL_DIR

    def path(self) -> Path:
        return self.root

    def name(self) -> str:
        return self.metadata.name

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @staticmethod
    def exists(path: Path | str) -> bool:
        """True if path holds a graph marker. Does not validate its contents."""
        return (Path(path) / FLOW_DIR).exists()

    @classmethod
    def init(cls, path: Path | str, name: str | None = None) -> GraphSession:
        """Create a new graph at path. Raises GraphAlreadyExistsError if one is there."""
        root = Path(path).expanduser().resolve()
        if cls.exists(root):
            raise GraphAlreadyExistsError(root)

        try:
            cls._flow_dir(root).mkdir(parents=True, exist_ok=True)
            (root / JOURNAL_DIR).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise GraphIOError(root, exc) from exc

        metadata = GraphMetadata(name=name or root.name or DEFAULT_GRAPH_NAME, version=__version__)
        session = cls(root, metadata, DocumentStore())
        session._write_metadata()
        session._write_snapshot()
        logger.debug("initialized graph %r at %s", metadata.name, root)
        return session

    @classmethod
    def load(cls, path: Path | str) -> GraphSession:
        """Open an existing graph.

        A missing snapshot means an empty store (hand-made or half-initialized
        graph). A snapshot that exists but does not import is an error, never
        an empty store.
        """
        root = Path(path).expanduser().resolve()
        metadata = cls._read_metadata(root)

        snapshot_path = cls._flow_dir(root) / DOCUMENT_FILE
        try:
            data = snapshot_path.read_bytes()
        except FileNotFoundError:
            logger.debug("no snapshot at %s, starting empty", snapshot_path)
            store = DocumentStore()
        except OSError as exc:
            raise GraphIOError(snapshot_path, exc) from exc
        else:
            try:
                store = DocumentStore.from_snapshot(data)
            except CorruptSnapshotError as exc:
                raise CorruptSnapshotError(snapshot_path, exc.reason) from exc

        logger.debug("loaded graph %r from %s", metadata.name, root)
        return cls(root, metadata, store)

    @classmethod
    def _read_metadata(cls, root: Path) -> GraphMetadata:
        metadata_path = cls._flow_dir(root) / METADATA_FILE
        try:
            raw = metadata_path.read_bytes()
        except FileNotFoundError as exc:
            raise GraphNotFoundError(root, f"no {FLOW_DIR}/{METADATA_FILE}") from exc
        except OSError as exc:
            raise GraphIOError(metadata_path, exc) from exc
        try:
            return GraphMetadata.from_dict(tomllib.loads(raw.decode("utf-8")))
        except UnicodeDecodeError as exc:
            raise CorruptMetadataError(metadata_path, "not valid UTF-8") from exc
        except tomllib.TOMLDecodeError as exc:
            raise CorruptMetadataError(metadata_path, str(exc)) from exc
        except KeyError as exc:
            raise CorruptMetadataError(metadata_path, f"missing key {exc}") from exc
        except TypeError as exc:
            raise CorruptMetadataError(metadata_path, str(exc)) from exc

    def save(self) -> None:
        """Persist metadata and snapshot, then materialize every dirty document.

        Each id leaves the dirty set only once its file is written, so a failed
        save can simply be retried.
        """
        self._write_metadata()
        self._write_snapshot()
        for doc_id in sorted(self.dirty_ids):
            self._materialize(doc_id)
            self.dirty_ids.discard(doc_id)

    def _write_metadata(self) -> None:
        _write_atomic(self.metadata_path, self.metadata.to_toml().encode("utf-8"))

    def _write_snapshot(self) -> None:
        _write_atomic(self.snapshot_path, self.store.export())

    def _materialize(self, doc_id: str) -> None:
        file_path = self.root / doc_id
        text = self.store.render(doc_id)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_bytes(text.encode("utf-8"))
        except OSError as exc:
            raise GraphIOError(file_path, exc) from exc
        logger.debug("materialized %s (%d chars)", doc_id, len(text))

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def mark_dirty(self, doc_id: str) -> None:
        self.dirty_ids.add(doc_id)

    def add(self, content: str, day: date | None = None) -> str:
        """Append content to the day's journal (default today) and save.

        Returns the document id written.
        """
        doc_id = append_entry(self, content, day)
        self.save()
        return doc_id

    def render(self, day: date | None = None) -> str:
        """Rendered journal entry for day (default today); '' if none."""
        return self.store.render(journal_id(day or date.today()))

    def lock(self) -> GraphLock:
        return GraphLock(self.root)

    def __repr__(self) -> str:
        return f"GraphSession({self.metadata.name!r}, {self.root})"
