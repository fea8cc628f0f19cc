"""flow CLI: note graph of daily journal files backed by a Loro document.

Commands:
    flow init [PATH] [--name NAME]     create .flow/ + journal/ and register the graph
    flow open [NAME|PATH]              make a graph active (registers new paths)
    flow add CONTENT                   append a bullet to today's journal
    flow show [--date YYYY-MM-DD]      print a day's journal page
    flow list                          registered graphs
    flow clean [--dry-run]             drop registry entries whose graph is gone

Every command takes --json, --graph NAME|PATH, --verbose and --quiet.
"""

from __future__ import annotations

import functools
import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from flow.config import Config
from flow.errors import FlowError, GraphNotFoundError, NoActiveGraphError
from flow.graph import GraphSession
from flow.lock import GraphLock
from flow.models import journal_id

if TYPE_CHECKING:
    from collections.abc import Callable

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _plural(n: int) -> str:
    return "" if n == 1 else "s"


def _format_error(exc: FlowError) -> str:
    if not exc.hint:
        return str(exc)
    hint = exc.hint.replace("\n", "\n        ")
    return f"{exc}\n  help: {hint}"


@dataclass
class Output:
    """Global flags plus the printing helpers that honor them."""

    json: bool = False
    graph: str | None = None
    verbose: bool = False
    quiet: bool = False

    @property
    def human(self) -> bool:
        return not self.quiet and not self.json

    def print(self, message: str) -> None:
        if self.human:
            click.echo(message)

    def success(self, message: str) -> None:
        if self.human:
            click.secho(message, fg="green", bold=True)

    def kv(self, key: str, value: str) -> None:
        if self.human:
            click.echo(f"  {click.style(key, fg='cyan', bold=True)}: {value}")

    def blank(self) -> None:
        if self.human:
            click.echo("")

    def print_verbose(self, message: str) -> None:
        if self.verbose and self.human:
            click.secho(message, dim=True)

    def print_json(self, value: Any) -> None:
        """Emit the command's structured result. Only with --json."""
        if self.json:
            click.echo(json.dumps(value, indent=2, ensure_ascii=False))

    def target_root(self, config: Config) -> Path:
        """Root of the graph selected by --graph, else the active graph."""
        if self.graph:
            entry = config.get_graph_config(self.graph)
            if entry is not None:
                return entry.path
            path = Path(self.graph)
            if not path.exists():
                raise GraphNotFoundError(self.graph)
            if not GraphSession.exists(path):
                raise GraphNotFoundError(path, "directory is not a flow graph")
            return path
        active = config.get_active_graph()
        if active is None:
            raise NoActiveGraphError()
        return active.path


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(message)s",
    )


def global_options(f: Callable[..., None]) -> Callable[..., None]:
    """Add the shared flags to a command and pass them in as an Output.

    FlowErrors raised by the command become ClickExceptions carrying the hint.
    """

    @click.option("-q", "--quiet", is_flag=True, help="Suppress non-error output")
    @click.option("-v", "--verbose", is_flag=True, help="Detailed logging")
    @click.option("--graph", default=None, help="Target graph by name or path (overrides active graph)")
    @click.option("--json", "as_json", is_flag=True, help="Output in JSON format")
    @functools.wraps(f)
    def wrapper(*args: Any, as_json: bool, graph: str | None, verbose: bool, quiet: bool, **kwargs: Any) -> None:
        _configure_logging(verbose)
        out = Output(json=as_json, graph=graph, verbose=verbose, quiet=quiet)
        try:
            f(out, *args, **kwargs)
        except FlowError as exc:
            raise click.ClickException(_format_error(exc)) from exc

    return wrapper


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="flow-notes")
def cli() -> None:
    """flow: note taking for developers."""


# ---------------------------------------------------------------------------
# flow init
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("path", required=False, type=click.Path(path_type=Path))
@click.option("-n", "--name", default=None, help="Graph name (defaults to directory name)")
@global_options
def init(out: Output, path: Path | None, name: str | None) -> None:
    """Initialize a new flow graph."""
    if path is None:
        if out.json:
            raise click.UsageError("Missing required argument: PATH")
        out.print_verbose("Entering interactive mode")
        path = Path(click.prompt("Directory path", default="."))
        if name is None:
            entered = click.prompt("Graph name (empty for directory name)", default="", show_default=False)
            name = entered.strip() or None

    config = Config.load()
    out.print_verbose(f"Initializing graph at {path}")
    graph = GraphSession.init(path, name)
    config.add_graph(graph)
    out.print_verbose("Graph registered in configuration")

    result = {"name": graph.name(), "path": str(graph.path())}
    out.print_json(result)
    out.success(f"Initialized graph {result['name']} at {result['path']}")


# ---------------------------------------------------------------------------
# flow open
# ---------------------------------------------------------------------------


def _choose_graph(out: Output, config: Config) -> str:
    graphs = config.all_graphs()
    if not graphs:
        raise click.ClickException("No registered graphs found. Use 'flow init' to create a graph.")
    out.print_verbose("Entering interactive mode")
    active = config.get_active_graph_name()
    for i, (name, entry) in enumerate(graphs, start=1):
        marker = " [active]" if name == active else ""
        click.echo(f"  {i}) {name} ({entry.path}){marker}")
    choice = click.prompt("Select a graph to open", type=click.IntRange(1, len(graphs)))
    return graphs[choice - 1][0]


@cli.command("open")
@click.argument("path_or_name", required=False)
@global_options
def open_(out: Output, path_or_name: str | None) -> None:
    """Open an existing graph (by name or path) and make it active."""
    config = Config.load()
    if path_or_name is None:
        if out.json:
            raise click.UsageError("Missing required argument: PATH_OR_NAME")
        path_or_name = _choose_graph(out, config)

    out.print_verbose(f"Looking for graph: {path_or_name}")
    entry = config.get_graph_config(path_or_name)
    if entry is not None:
        out.print_verbose(f"Found registered graph at {entry.path}")
        graph = GraphSession.load(entry.path)
        config.set_active_graph(path_or_name)
    else:
        path = Path(path_or_name)
        if not path.exists():
            raise GraphNotFoundError(path_or_name, "neither a registered graph name nor a valid path")
        out.print_verbose(f"Loading graph from path: {path}")
        graph = GraphSession.load(path)
        if config.is_graph_registered(graph.path()):
            out.print_verbose("Graph already registered, setting as active")
            config.set_active_graph(str(graph.path()))
        else:
            out.print_verbose("Registering new graph in configuration")
            config.add_graph(graph)
            config.set_active_graph(graph.name())

    result = {"name": graph.name(), "path": str(graph.path())}
    out.print_json(result)
    out.print(f"Opened graph: {result['name']}")
    out.print(f"Path: {result['path']}")


# ---------------------------------------------------------------------------
# flow add
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("content")
@global_options
def add(out: Output, content: str) -> None:
    """Add a node to today's journal page."""
    out.print_verbose(f"Adding content: {content}")
    root = out.target_root(Config.load())
    today = date.today()

    out.print_verbose("Loading graph")
    with GraphLock(root):
        graph = GraphSession.load(root)
        doc_id = graph.add(content, today)

    result = {
        "content": content,
        "message": "Added to today's journal",
        "date": today.isoformat(),
        "file": str(graph.path() / doc_id),
    }
    out.print_json(result)
    out.print(result["message"])
    out.print_verbose(f"Journal file: {result['file']}")


# ---------------------------------------------------------------------------
# flow show
# ---------------------------------------------------------------------------


@cli.command()
@click.option("-d", "--date", "day", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Day to show as YYYY-MM-DD (defaults to today)")
@global_options
def show(out: Output, day: datetime | None) -> None:
    """Print a day's journal page."""
    root = out.target_root(Config.load())
    target = day.date() if day is not None else date.today()

    graph = GraphSession.load(root)
    content = graph.render(target)

    result = {
        "date": target.isoformat(),
        "file": str(graph.path() / journal_id(target)),
        "content": content,
    }
    out.print_json(result)
    out.print_verbose(f"Journal file: {result['file']}")
    if content:
        out.print(content)
    else:
        out.print(f"No journal entries for {result['date']}")


# ---------------------------------------------------------------------------
# flow list
# ---------------------------------------------------------------------------


@cli.command("list")
@global_options
def list_(out: Output) -> None:
    """List registered graphs."""
    config = Config.load()
    active = config.get_active_graph_name()
    rows = [
        {"name": name, "path": str(entry.path), "active": name == active}
        for name, entry in config.all_graphs()
    ]
    out.print_json(rows)
    if not rows:
        out.print("No registered graphs. Use 'flow init' to create one.")
        return
    for row in rows:
        out.kv(row["name"], row["path"] + (" [active]" if row["active"] else ""))


# ---------------------------------------------------------------------------
# flow clean
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--dry-run", is_flag=True, help="Show what would be removed without making changes")
@global_options
def clean(out: Output, dry_run: bool) -> None:
    """Remove orphaned graphs from configuration."""
    out.print_verbose("Loading configuration")
    config = Config.load()
    checked = config.graph_count()
    out.print_verbose(f"Checking {checked} registered graph{_plural(checked)}")

    removed: list[dict[str, str]] = []
    kept: list[dict[str, str]] = []
    for name, entry in config.all_graphs():
        if not entry.path.exists():
            reason = "directory not found"
        elif not GraphSession.exists(entry.path):
            reason = "not a valid graph"
        else:
            out.print_verbose(f"Checking: {name} ({entry.path}) - keeping")
            kept.append({"name": name, "path": str(entry.path)})
            continue

        out.print_verbose(f"Checking: {name} ({entry.path}) - {reason}")
        removed.append({"name": name, "path": str(entry.path), "reason": reason})
        if not dry_run:
            config.remove_graph(name)

    out.print_json({"checked": checked, "removed": removed, "kept": kept, "dry_run": dry_run})

    out.print(f"Checking {checked} registered graph{_plural(checked)}...")
    action = "Would remove" if dry_run else "Removed"
    for r in removed:
        out.print(f"{action}: {r['name']} ({r['path']}) - {r['reason']}")
    for k in kept:
        out.print(f"Kept: {k['name']} ({k['path']})")
    out.blank()
    if dry_run:
        out.print(f"Dry run: {len(removed)} graph{_plural(len(removed))} would be removed")
    else:
        out.print(f"Cleaned {len(removed)} orphaned graph{_plural(len(removed))} from configuration")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    cli(standalone_mode=True)


if __name__ == "__main__":
    main()
