"""Shared fixtures: every test gets its own registry under tmp_path."""

from __future__ import annotations

from pathlib import Path

import pytest

from flow.graph import GraphSession


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    xdg = tmp_path / "xdg"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg))
    return xdg / "flow" / "flow.toml"


@pytest.fixture
def graph_root(tmp_path: Path) -> Path:
    return tmp_path / "notes"


@pytest.fixture
def graph(graph_root: Path) -> GraphSession:
    return GraphSession.init(graph_root)
