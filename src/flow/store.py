"""Replicated text store: named mergeable text values behind one Loro document.

DocumentStore is the public API:
    store = DocumentStore()
    text = store.get_or_create("journal/2026-01-31.md")
    text.update(open_file.read())    # fold external edits in as a diff
    text.append("\n- call the bank")
    snapshot = store.export()        # bytes written to .flow/graph.loro

Each document id maps to one root text container. The snapshot is Loro's own
binary format; it carries the replica metadata needed for later merges, so it
is the durable representation and the journal files are derived from it.
"""

from __future__ import annotations

import logging

from loro import ExportMode, LoroDoc

from flow.errors import CorruptSnapshotError

logger = logging.getLogger("flow.store")


def _container_name(doc_id: str) -> str:
    # Loro root container names may not contain "/"
    return doc_id.replace("/", ":")


class TextHandle:
    """A text value bound to one document id."""

    def __init__(self, doc: LoroDoc, doc_id: str) -> None:
        self._doc = doc
        self.doc_id = doc_id
        self._text = doc.get_text(_container_name(doc_id))

    def render(self) -> str:
        """Current content as plain text."""
        return self._text.to_string()

    def is_empty(self) -> bool:
        return self.render() == ""

    def update(self, new_text: str) -> None:
        """Reconcile the value with an externally supplied full string.

        Loro computes a character-level diff and applies it as edits, so the
        operations already in the value keep their identity and later merges
        still line up.
        """
        if new_text == self.render():
            return
        self._text.update(new_text)
        self._doc.commit()

    def append(self, text: str) -> None:
        """Insert text at the end of the current rendering."""
        if not text:
            return
        # insert() positions are in unicode scalar values, same as len()
        self._text.insert(len(self.render()), text)
        self._doc.commit()

    def __repr__(self) -> str:
        return f"TextHandle({self.doc_id!r})"


class DocumentStore:
    """Zero or more named text values, exported and imported as one snapshot."""

    def __init__(self) -> None:
        self._doc = LoroDoc()

    @classmethod
    def from_snapshot(cls, data: bytes) -> DocumentStore:
        store = cls()
        store.import_snapshot(data)
        return store

    def import_snapshot(self, data: bytes) -> None:
        """Merge a previously exported snapshot into this store."""
        try:
            self._doc.import_(data)
        except (KeyboardInterrupt, SystemExit, GeneratorExit):
            raise
        except BaseException as exc:  # loro decode errors and pyo3 panics derive from BaseException
            raise CorruptSnapshotError(None, str(exc) or type(exc).__name__) from exc
        logger.debug("imported snapshot (%d bytes)", len(data))

    def export(self) -> bytes:
        """Full-state binary snapshot of every text value."""
        self._doc.commit()
        return bytes(self._doc.export(ExportMode.Snapshot()))

    def get_or_create(self, doc_id: str) -> TextHandle:
        """Handle bound to doc_id. The value starts empty on first use."""
        return TextHandle(self._doc, doc_id)

    def render(self, doc_id: str) -> str:
        return self.get_or_create(doc_id).render()
