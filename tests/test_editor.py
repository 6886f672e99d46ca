import threading

from snipgraph.editor import Debouncer, accept_suggestion, suggest_for_text
from snipgraph.graph import KnowledgeGraph


def test_suggest_for_text_uses_tags_and_domain(graph: KnowledgeGraph) -> None:
    for _ in range(3):
        graph.learn(["pasta", "tomaat"])
    graph.learn(["recept", "italiaans"], "smulweb.nl")

    text = "Nieuwe saus https://smulweb.nl/saus #pasta"
    result = suggest_for_text(graph, text)

    # domain tags +5 each, tomaat +3 from the pair
    assert result == ["recept", "italiaans", "tomaat"]


def test_suggest_for_plain_text_is_empty(graph: KnowledgeGraph) -> None:
    graph.learn(["pasta", "tomaat"])
    assert suggest_for_text(graph, "nog geen tags") == []


def test_accept_suggestion_spacing() -> None:
    assert accept_suggestion("", "soep") == "#soep "
    assert accept_suggestion("Lekker", "soep") == "Lekker #soep "
    assert accept_suggestion("Lekker ", "soep") == "Lekker #soep "


def test_debouncer_runs_only_last_trigger() -> None:
    calls: list[str] = []
    done = threading.Event()

    def record(value: str) -> None:
        calls.append(value)
        done.set()

    debouncer = Debouncer(0.05, record)
    debouncer.trigger("a")
    debouncer.trigger("ab")
    debouncer.trigger("abc")

    assert done.wait(2.0)
    assert calls == ["abc"]
    assert not debouncer.pending


def test_debouncer_cancel() -> None:
    calls: list[str] = []
    debouncer = Debouncer(10.0, calls.append)
    debouncer.trigger("x")
    assert debouncer.pending

    debouncer.cancel()
    assert not debouncer.pending
    assert calls == []


def test_debouncer_from_config() -> None:
    debouncer = Debouncer.from_config({"editor": {"debounce_ms": 300}}, lambda: None)
    assert debouncer.delay_seconds == 0.3


def test_debouncer_ignores_superseded_timer() -> None:
    calls: list[str] = []
    debouncer = Debouncer(10.0, calls.append)
    debouncer.trigger("old")
    stale = debouncer._generation
    debouncer.trigger("new")

    # The old timer firing late must not run or clear the newer one
    debouncer._fire(stale, ("old",), {})

    assert calls == []
    assert debouncer.pending
    debouncer.cancel()


def test_debouncer_ignores_timer_after_cancel() -> None:
    calls: list[str] = []
    debouncer = Debouncer(10.0, calls.append)
    debouncer.trigger("x")
    generation = debouncer._generation
    debouncer.cancel()

    debouncer._fire(generation, ("x",), {})

    assert calls == []
