"""Tests for the flow CLI commands."""

from __future__ import annotations

import json
import shutil
from datetime import date
from pathlib import Path

import pytest
from click.testing import CliRunner

from flow.cli import cli
from flow.config import Config
from flow.graph import GraphSession
from flow.lock import GraphLock

runner = CliRunner()


def _json(result) -> object:
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


@pytest.fixture
def initialized(graph_root: Path) -> Path:
    result = runner.invoke(cli, ["init", str(graph_root), "--json"])
    assert result.exit_code == 0, result.output
    return graph_root


class TestInit:
    def test_creates_and_registers(self, graph_root: Path):
        out = _json(runner.invoke(cli, ["init", str(graph_root), "--name", "mine", "--json"]))
        assert out == {"name": "mine", "path": str(graph_root.resolve())}
        assert GraphSession.exists(graph_root)
        assert Config.load().get_active_graph_name() == "mine"

    def test_human_output(self, graph_root: Path):
        result = runner.invoke(cli, ["init", str(graph_root)])
        assert result.exit_code == 0
        assert "Initialized graph notes" in result.output

    def test_quiet(self, graph_root: Path):
        result = runner.invoke(cli, ["init", str(graph_root), "-q"])
        assert result.exit_code == 0
        assert result.output == ""

    def test_already_exists(self, initialized: Path):
        result = runner.invoke(cli, ["init", str(initialized)])
        assert result.exit_code == 1
        assert "Graph already exists" in result.output
        assert "flow open" in result.output

    def test_interactive(self, tmp_path: Path):
        target = tmp_path / "asked"
        result = runner.invoke(cli, ["init"], input=f"{target}\nasked-name\n")
        assert result.exit_code == 0, result.output
        assert GraphSession.load(target).name() == "asked-name"

    def test_json_requires_path(self):
        result = runner.invoke(cli, ["init", "--json"])
        assert result.exit_code == 2
        assert "PATH" in result.output


class TestAdd:
    def test_appends_to_todays_journal(self, initialized: Path):
        out = _json(runner.invoke(cli, ["add", "hello", "--json"]))
        assert out["content"] == "hello"
        assert out["message"] == "Added to today's journal"
        path = Path(out["file"])
        assert path == initialized.resolve() / "journal" / f"{out['date']}.md"
        assert path.read_text(encoding="utf-8") == "- hello"

    def test_second_add(self, initialized: Path):
        runner.invoke(cli, ["add", "hello"])
        out = _json(runner.invoke(cli, ["add", "world", "--json"]))
        assert Path(out["file"]).read_text(encoding="utf-8") == "- hello\n- world"

    def test_human_output(self, initialized: Path):
        result = runner.invoke(cli, ["add", "hello"])
        assert result.exit_code == 0
        assert "Added to today's journal" in result.output

    def test_graph_flag_by_path(self, initialized: Path, tmp_path: Path):
        other = tmp_path / "other"
        GraphSession.init(other)
        out = _json(runner.invoke(cli, ["add", "elsewhere", "--graph", str(other), "--json"]))
        assert Path(out["file"]).parent.parent == other.resolve()

    def test_graph_flag_by_name(self, initialized: Path, tmp_path: Path):
        runner.invoke(cli, ["init", str(tmp_path / "second"), "--name", "second"])
        out = _json(runner.invoke(cli, ["add", "x", "--graph", "second", "--json"]))
        assert Path(out["file"]).parent.parent == (tmp_path / "second").resolve()

    def test_graph_flag_not_a_graph(self, initialized: Path, tmp_path: Path):
        result = runner.invoke(cli, ["add", "x", "--graph", str(tmp_path)])
        assert result.exit_code == 1
        assert "not a flow graph" in result.output

    def test_no_active_graph(self):
        result = runner.invoke(cli, ["add", "hello"])
        assert result.exit_code == 1
        assert "No active graph" in result.output

    def test_locked_graph(self, initialized: Path):
        with GraphLock(initialized.resolve()):
            result = runner.invoke(cli, ["add", "hello"])
        assert result.exit_code == 1
        assert "locked" in result.output

    def test_multiline_rejected(self, initialized: Path):
        result = runner.invoke(cli, ["add", "one\ntwo"])
        assert result.exit_code == 1
        assert "single line" in result.output


class TestShow:
    def test_shows_todays_page(self, initialized: Path):
        runner.invoke(cli, ["add", "hello"])
        runner.invoke(cli, ["add", "world"])
        out = _json(runner.invoke(cli, ["show", "--json"]))
        assert out["content"] == "- hello\n- world"
        assert Path(out["file"]) == initialized.resolve() / "journal" / f"{out['date']}.md"

    def test_human_output(self, initialized: Path):
        runner.invoke(cli, ["add", "hello"])
        result = runner.invoke(cli, ["show"])
        assert result.exit_code == 0
        assert "- hello" in result.output

    def test_other_day(self, initialized: Path):
        GraphSession.load(initialized).add("back then", date(2026, 1, 31))
        out = _json(runner.invoke(cli, ["show", "--date", "2026-01-31", "--json"]))
        assert out == {
            "date": "2026-01-31",
            "file": str(initialized.resolve() / "journal" / "2026-01-31.md"),
            "content": "- back then",
        }

    def test_empty_day(self, initialized: Path):
        result = runner.invoke(cli, ["show", "--date", "2026-01-31"])
        assert result.exit_code == 0
        assert "No journal entries for 2026-01-31" in result.output

    def test_bad_date(self, initialized: Path):
        result = runner.invoke(cli, ["show", "--date", "31/01/2026"])
        assert result.exit_code == 2

    def test_corrupt_snapshot_is_reported(self, initialized: Path):
        (initialized / ".flow" / "graph.loro").write_bytes(b"garbage")
        result = runner.invoke(cli, ["show"])
        assert result.exit_code == 1
        assert "graph.loro" in result.output


class TestOpenAndList:
    def test_open_unregistered_path_registers_it(self, initialized: Path, tmp_path: Path):
        other = tmp_path / "other"
        GraphSession.init(other)
        out = _json(runner.invoke(cli, ["open", str(other), "--json"]))
        assert out == {"name": "other", "path": str(other.resolve())}

        config = Config.load()
        assert config.get_active_graph_name() == "other"
        assert config.graph_count() == 2

    def test_open_by_name(self, initialized: Path, tmp_path: Path):
        runner.invoke(cli, ["init", str(tmp_path / "second"), "--name", "second"])
        assert Config.load().get_active_graph_name() == "notes"

        _json(runner.invoke(cli, ["open", "second", "--json"]))
        assert Config.load().get_active_graph_name() == "second"

    def test_open_registered_path(self, initialized: Path, tmp_path: Path):
        runner.invoke(cli, ["init", str(tmp_path / "second"), "--name", "second"])
        _json(runner.invoke(cli, ["open", str(initialized), "--json"]))
        config = Config.load()
        assert config.get_active_graph_name() == "notes"
        assert config.graph_count() == 2

    def test_open_missing(self):
        result = runner.invoke(cli, ["open", "/definitely/not/here"])
        assert result.exit_code == 1
        assert "Graph not found" in result.output

    def test_open_interactive(self, initialized: Path, tmp_path: Path):
        runner.invoke(cli, ["init", str(tmp_path / "second"), "--name", "second"])
        result = runner.invoke(cli, ["open"], input="2\n")
        assert result.exit_code == 0, result.output
        assert "Opened graph: second" in result.output

    def test_list(self, initialized: Path, tmp_path: Path):
        runner.invoke(cli, ["init", str(tmp_path / "second"), "--name", "second"])
        out = _json(runner.invoke(cli, ["list", "--json"]))
        assert out == [
            {"name": "notes", "path": str(initialized.resolve()), "active": True},
            {"name": "second", "path": str((tmp_path / "second").resolve()), "active": False},
        ]

    def test_list_empty(self):
        result = runner.invoke(cli, ["list"])
        assert result.exit_code == 0
        assert "No registered graphs" in result.output


class TestClean:
    def test_removes_orphans(self, initialized: Path, tmp_path: Path):
        gone = tmp_path / "gone"
        runner.invoke(cli, ["init", str(gone)])
        shutil.rmtree(gone)

        out = _json(runner.invoke(cli, ["clean", "--json"]))
        assert out["checked"] == 2
        assert out["dry_run"] is False
        assert [r["name"] for r in out["removed"]] == ["gone"]
        assert out["removed"][0]["reason"] == "directory not found"
        assert [k["name"] for k in out["kept"]] == ["notes"]
        assert Config.load().graph_count() == 1

    def test_not_a_graph(self, initialized: Path, tmp_path: Path):
        stripped = tmp_path / "stripped"
        runner.invoke(cli, ["init", str(stripped)])
        shutil.rmtree(stripped / ".flow")

        out = _json(runner.invoke(cli, ["clean", "--json"]))
        assert out["removed"][0]["reason"] == "not a valid graph"

    def test_dry_run_keeps_entries(self, initialized: Path, tmp_path: Path):
        gone = tmp_path / "gone"
        runner.invoke(cli, ["init", str(gone)])
        shutil.rmtree(gone)

        result = runner.invoke(cli, ["clean", "--dry-run"])
        assert result.exit_code == 0
        assert "Would remove: gone" in result.output
        assert Config.load().graph_count() == 2
