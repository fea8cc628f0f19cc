"""Data models for a flow graph directory."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date
from typing import Any

FLOW_DIR = ".flow"
METADATA_FILE = "graph.toml"
DOCUMENT_FILE = "graph.loro"
LOCK_FILE = "lock"
JOURNAL_DIR = "journal"

DEFAULT_GRAPH_NAME = "flow-graph"


def journal_id(day: date) -> str:
    """Document id of a day's journal entry: journal/<YYYY-MM-DD>.md.

    The id doubles as the entry's path relative to the graph root.
    """
    return f"{JOURNAL_DIR}/{day.isoformat()}.md"


def toml_string(value: str) -> str:
    """Quote a value as a TOML basic string.

    JSON string escapes are a subset of TOML's; ensure_ascii=False keeps
    non-BMP characters out of surrogate-pair escapes, which TOML rejects.
    DEL is the one control character JSON leaves bare.
    """
    return json.dumps(value, ensure_ascii=False).replace("\x7f", "\\u007f")


@dataclass
class GraphMetadata:
    """Contents of .flow/graph.toml."""

    name: str
    version: str          # package version the graph was created with

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> GraphMetadata:
        """Build from parsed TOML. Raises KeyError/TypeError on bad shape."""
        name = d["name"]
        version = d["version"]
        if not isinstance(name, str) or not isinstance(version, str):
            msg = "name and version must be strings"
            raise TypeError(msg)
        return cls(name=name, version=version)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "version": self.version}

    def to_toml(self) -> str:
        return f"name = {toml_string(self.name)}\nversion = {toml_string(self.version)}\n"
