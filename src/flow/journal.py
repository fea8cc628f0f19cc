"""Journal reconciler: append a line to a day's entry without losing disk edits.

The markdown file under journal/ is a view of the replicated value, but users
edit it directly. Before appending, the file's current text is folded back
into the value as a diff, so the next save writes both the manual edits and
the new line.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from flow.errors import GraphIOError, InvalidContentError, InvalidEncodingError
from flow.models import journal_id

if TYPE_CHECKING:
    from pathlib import Path

    from flow.graph import GraphSession
    from flow.store import TextHandle

logger = logging.getLogger("flow.journal")

BULLET_PREFIX = "- "


def normalize_content(content: str) -> str:
    """Validate one journal line. Trailing newlines are dropped."""
    line = content.rstrip("\r\n")
    if "\n" in line or "\r" in line:
        msg = "Journal entries are a single line; content contains a line break"
        raise InvalidContentError(msg)
    if not line.strip():
        msg = "Journal entry is empty"
        raise InvalidContentError(msg)
    return line


def format_line(content: str, *, first: bool) -> str:
    """Bullet line to append. A brand-new entry gets no leading newline."""
    return f"{BULLET_PREFIX}{content}" if first else f"\n{BULLET_PREFIX}{content}"


def read_journal_file(path: Path) -> str | None:
    """Text of a journal file, or None if it does not exist."""
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise GraphIOError(path, exc) from exc
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidEncodingError(path, str(exc)) from exc


def reconcile(handle: TextHandle, path: Path) -> bool:
    """Fold the on-disk file into the handle. True if the file changed it.

    A missing file is not treated as a deletion: the replicated value stays
    as it is and the next save re-materializes it.
    """
    on_disk = read_journal_file(path)
    if on_disk is None or on_disk == handle.render():
        return False
    handle.update(on_disk)
    logger.debug("merged external edits from %s", path)
    return True


def append_entry(session: GraphSession, content: str, day: date | None = None) -> str:
    """Append content as a bullet to the day's entry and mark it dirty.

    Returns the document id. Nothing is written to disk here; the session's
    save() materializes the entry.
    """
    line = normalize_content(content)
    doc_id = journal_id(day or date.today())
    handle = session.store.get_or_create(doc_id)

    # a dirty id's file predates its unsaved appends, so it holds no new edits
    if doc_id not in session.dirty_ids:
        reconcile(handle, session.root / doc_id)
    handle.append(format_line(line, first=handle.is_empty()))

    session.mark_dirty(doc_id)
    return doc_id
