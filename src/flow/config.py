"""Registry of known graphs: name -> canonical root path, plus one active graph.

Stored at $XDG_CONFIG_HOME/flow/flow.toml, falling back to
~/.config/flow/flow.toml on every platform.

flow.toml example:

    active_graph = "notes"

    [graphs."notes"]
    path = "/home/me/notes"

    [graphs."work"]
    path = "/home/me/work-notes"

Names are the keys; lookups by path fall back to a linear scan comparing
resolved paths.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from flow.errors import ConfigError, GraphIOError, GraphNotFoundError
from flow.models import toml_string

if TYPE_CHECKING:
    from flow.graph import GraphSession

logger = logging.getLogger("flow.config")

_APP_DIR = "flow"
_CONFIG_FILENAME = "flow.toml"


def config_path() -> Path:
    """Location of the registry file, honoring XDG_CONFIG_HOME."""
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / _APP_DIR / _CONFIG_FILENAME


def _same_path(a: Path, b: Path) -> bool:
    return a.expanduser().resolve() == b.expanduser().resolve()


@dataclass
class GraphConfig:
    """A [graphs."<name>"] entry."""
    path: Path


@dataclass
class Config:
    """The registry. load() it, mutate it, and each mutator saves it back."""

    graphs: dict[str, GraphConfig] = field(default_factory=dict)
    active_graph: str | None = None
    source: Path = field(default_factory=config_path)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, path: Path | None = None) -> Config:
        """Read the registry. A missing file is an empty registry."""
        source = path or config_path()
        try:
            raw: dict[str, Any] = tomllib.loads(source.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return cls(source=source)
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
            msg = f"Failed to load flow configuration from {source}: {exc}"
            raise ConfigError(msg) from exc
        except OSError as exc:
            raise GraphIOError(source, exc) from exc

        table = raw.get("graphs", {})
        if not isinstance(table, dict):
            msg = f"graphs in {source} must be a table"
            raise ConfigError(msg)
        graphs: dict[str, GraphConfig] = {}
        for name, entry in table.items():
            if not isinstance(entry, dict) or not isinstance(entry.get("path"), str):
                msg = f"Graph '{name}' in {source} has no path"
                raise ConfigError(msg)
            graphs[name] = GraphConfig(path=Path(entry["path"]))

        active = raw.get("active_graph")
        if active is not None and not isinstance(active, str):
            msg = f"active_graph in {source} must be a string"
            raise ConfigError(msg)
        return cls(graphs=graphs, active_graph=active, source=source)

    def to_toml(self) -> str:
        lines: list[str] = []
        if self.active_graph is not None:
            lines.append(f"active_graph = {toml_string(self.active_graph)}")
        for name in sorted(self.graphs):
            if lines:
                lines.append("")
            lines.append(f"[graphs.{toml_string(name)}]")
            lines.append(f"path = {toml_string(str(self.graphs[name].path))}")
        return "\n".join(lines) + "\n"

    def save(self) -> None:
        try:
            self.source.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.source.with_name(self.source.name + ".tmp")
            tmp.write_text(self.to_toml(), encoding="utf-8")
            tmp.replace(self.source)
        except OSError as exc:
            raise GraphIOError(self.source, exc) from exc
        logger.debug("saved registry (%d graphs) to %s", len(self.graphs), self.source)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def _resolve_name(self, name_or_path: str) -> str | None:
        if name_or_path in self.graphs:
            return name_or_path
        path = Path(name_or_path)
        for name, entry in self.graphs.items():
            if _same_path(entry.path, path):
                return name
        return None

    def get_graph_config(self, name_or_path: str) -> GraphConfig | None:
        """Entry for a registered name, or for the graph registered at that path."""
        name = self._resolve_name(name_or_path)
        return self.graphs[name] if name is not None else None

    def is_graph_registered(self, path: Path) -> bool:
        return any(_same_path(entry.path, path) for entry in self.graphs.values())

    def get_active_graph(self) -> GraphConfig | None:
        if self.active_graph is None:
            return None
        return self.graphs.get(self.active_graph)

    def get_active_graph_name(self) -> str | None:
        return self.active_graph

    def graph_count(self) -> int:
        return len(self.graphs)

    def all_graphs(self) -> list[tuple[str, GraphConfig]]:
        """(name, entry) pairs sorted by name."""
        return sorted(self.graphs.items())

    # ------------------------------------------------------------------
    # Mutation (each saves)
    # ------------------------------------------------------------------

    def add_graph(self, graph: GraphSession) -> None:
        """Register a graph under its name. The first graph becomes active.

        Registering a name that already exists points it at the new path.
        """
        self.graphs[graph.name()] = GraphConfig(path=graph.path().resolve())
        if len(self.graphs) == 1:
            self.active_graph = graph.name()
        self.save()

    def set_active_graph(self, name_or_path: str) -> None:
        name = self._resolve_name(name_or_path)
        if name is None:
            raise GraphNotFoundError(name_or_path, "not a name or path of a registered graph")
        self.active_graph = name
        self.save()

    def remove_graph(self, name_or_path: str) -> None:
        """Unregister a graph. If it was active, the first remaining name (by sort) takes over."""
        name = self._resolve_name(name_or_path)
        if name is None:
            raise GraphNotFoundError(name_or_path, "not a name or path of a registered graph")
        del self.graphs[name]
        if self.active_graph == name:
            self.active_graph = min(self.graphs) if self.graphs else None
        self.save()
