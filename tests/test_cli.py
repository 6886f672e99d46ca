import sys

import pytest

from snipgraph import __version__
from snipgraph.cli import main
from snipgraph.config import get_config_path, get_db_path
from snipgraph.db import Database


@pytest.fixture(autouse=True)
def _no_metadata_lookups() -> None:
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("[metadata]\nenabled = false\n")


def run(monkeypatch: pytest.MonkeyPatch, *args: str) -> int:
    monkeypatch.setattr(sys, "argv", ["snipgraph", *args])
    return main()


def test_version(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    assert run(monkeypatch, "--version") == 0
    assert capsys.readouterr().out.strip() == f"snipgraph {__version__}"


def test_help(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    assert run(monkeypatch, "--help") == 0
    assert "snipgraph suggest <text>" in capsys.readouterr().out


def test_capture_then_suggest(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    assert run(monkeypatch, "Carbonara", "#pasta", "#tomaat") == 0
    assert run(monkeypatch, "Pesto #pasta #basilicum") == 0
    assert run(monkeypatch, "Arrabiata #pasta #tomaat") == 0
    capsys.readouterr()

    assert run(monkeypatch, "suggest", "nieuwe saus #pasta") == 0
    assert capsys.readouterr().out.strip() == "Suggested: #tomaat #basilicum"

    with Database(get_db_path()) as db:
        assert db.get_stats() == {"snippets": 3, "tags": 3, "pairs": 2, "domains": 0}


def test_capture_prints_id_and_suggestions(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    run(monkeypatch, "#soep #balletjes")
    capsys.readouterr()

    assert run(monkeypatch, "Tomatensoep #soep") == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert lines[0] == "2"
    assert lines[1] == "Suggested: #balletjes"


def test_capture_suggests_from_link_domain(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    run(monkeypatch, "https://ah.nl/a #bonus #boodschappen")
    capsys.readouterr()

    assert run(monkeypatch, "https://ah.nl/b #recept") == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "2"
    assert lines[1] == "Suggested: #bonus #boodschappen"


def test_list_and_find(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    run(monkeypatch, "Soep recept #soep")
    run(monkeypatch, "Bonus https://ah.nl/bonus #bonus")
    capsys.readouterr()

    assert run(monkeypatch, "list", "--tag", "#soep") == 0
    out = capsys.readouterr().out
    assert "Soep recept" in out
    assert "ah.nl" not in out

    assert run(monkeypatch, "list", "--links") == 0
    assert "[link]" in capsys.readouterr().out

    assert run(monkeypatch, "find", "recept") == 0
    assert "SEARCH: recept" in capsys.readouterr().out

    assert run(monkeypatch, "find", "nothing-here") == 0
    assert "No snippets matching" in capsys.readouterr().out


def test_list_rejects_bad_limit(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    assert run(monkeypatch, "list", "--limit", "many") == 1
    assert "Invalid limit" in capsys.readouterr().err


def test_delete(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    run(monkeypatch, "Weg ermee #tijdelijk")
    capsys.readouterr()

    assert run(monkeypatch, "delete", "1") == 0
    assert "Deleted: 1" in capsys.readouterr().out

    assert run(monkeypatch, "delete", "1") == 1
    assert "Not found" in capsys.readouterr().err

    assert run(monkeypatch, "delete", "abc") == 1


def test_tags(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    run(monkeypatch, "#soep #winter")
    run(monkeypatch, "delete", "1")
    run(monkeypatch, "#zomer")
    capsys.readouterr()

    assert run(monkeypatch, "tags") == 0
    out = capsys.readouterr().out
    assert "#zomer" in out
    assert "#soep" not in out

    assert run(monkeypatch, "tags", "--known") == 0
    assert "#soep" in capsys.readouterr().out


def test_stats_and_health(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    run(monkeypatch, "#a #b")
    capsys.readouterr()

    assert run(monkeypatch, "stats") == 0
    out = capsys.readouterr().out
    assert "Snippets: 1" in out
    assert "#a + #b: 1" in out

    assert run(monkeypatch, "health") == 0
    assert "Knowledge Graph: OK (2 tags, 1 pairs, 0 domains)" in capsys.readouterr().out


def test_storage_error_is_reported(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], tmp_path
) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    monkeypatch.setenv("SNIPGRAPH_HOME", str(blocker))

    assert run(monkeypatch, "stats") == 1
    assert "Error:" in capsys.readouterr().err
