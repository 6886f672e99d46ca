from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from snipgraph.db import Database
from snipgraph.graph import KnowledgeGraph
from snipgraph.repository import SnippetRepository


@pytest.fixture(autouse=True)
def _isolate_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SNIPGRAPH_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("NO_COLOR", "1")


@pytest.fixture
def db(tmp_path: Path) -> Iterator[Database]:
    database = Database(tmp_path / "snipgraph.db")
    yield database
    database.close()


@pytest.fixture
def graph(db: Database) -> KnowledgeGraph:
    return KnowledgeGraph(db)


@pytest.fixture
def repository(db: Database, graph: KnowledgeGraph) -> Iterator[SnippetRepository]:
    repo = SnippetRepository(db, graph)
    yield repo
    repo.close()
