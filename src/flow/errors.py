"""Error taxonomy for flow graphs.

Every failure the core can surface is a FlowError subclass. Each class carries
a diagnostic ``code`` and a ``hint`` the CLI prints after the message; the core
itself never presents or logs them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class FlowError(Exception):
    """Base class for all flow errors."""

    code = "flow::error"
    hint = ""


class GraphAlreadyExistsError(FlowError):
    """Raised by init when the target directory already holds a graph."""

    code = "flow::graph::already_exists"
    hint = "Choose a different path or use 'flow open' to open the existing graph"

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Graph already exists at {path}")


class GraphNotFoundError(FlowError):
    code = "flow::graph::not_found"
    hint = (
        "List available graphs: flow list\n"
        "Initialize a new graph: flow init <path>"
    )

    def __init__(self, graph: str | Path, detail: str = "") -> None:
        self.graph = str(graph)
        msg = f"Graph not found: {graph}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class NoActiveGraphError(FlowError):
    code = "flow::graph::no_active"
    hint = "Open a graph: flow open <name|path>\nInitialize a new graph: flow init <path>"

    def __init__(self) -> None:
        super().__init__("No active graph")


class CorruptMetadataError(FlowError):
    """graph.toml exists but does not parse into {name, version}."""

    code = "flow::graph::corrupt_metadata"
    hint = "Fix or restore .flow/graph.toml by hand; it must contain name and version"

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Corrupt graph metadata at {path}: {reason}")


class CorruptSnapshotError(FlowError):
    """The document snapshot exists but cannot be imported.

    There is no fallback to an empty store: that would silently discard
    every journal entry recorded in it.
    """

    code = "flow::graph::corrupt_snapshot"
    hint = "Restore .flow/graph.loro from a backup; the journal files on disk are untouched"

    def __init__(self, path: Path | None, reason: str) -> None:
        self.path = path
        self.reason = reason
        where = f" at {path}" if path is not None else ""
        super().__init__(f"Corrupt document snapshot{where}: {reason}")


class InvalidEncodingError(FlowError):
    code = "flow::journal::invalid_encoding"
    hint = "Journal files must be UTF-8; re-save the file with UTF-8 encoding"

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Journal file is not valid UTF-8: {path} ({reason})")


class InvalidContentError(FlowError, ValueError):
    code = "flow::journal::invalid_content"
    hint = "Add one line per call"


class GraphLockedError(FlowError):
    code = "flow::graph::locked"
    hint = "Another flow process is writing to this graph; retry when it has finished"

    def __init__(self, path: Path, owner: str = "") -> None:
        self.path = path
        msg = f"Graph is locked by another process: {path}"
        if owner:
            msg += f" (pid {owner})"
        super().__init__(msg)


class ConfigError(FlowError):
    code = "flow::config::error"
    hint = "Fix or delete the flow registry file; graphs on disk are not affected"


class GraphIOError(FlowError):
    """Underlying filesystem failure. The OSError is chained as __cause__."""

    code = "flow::io::error"

    def __init__(self, path: Path | None, source: OSError) -> None:
        self.path = path
        self.source = source
        where = f" at {path}" if path is not None else ""
        super().__init__(f"IO error{where}: {source.strerror or source}")
