"""
Editor helpers for Snipgraph.

Glue between a text being typed and the knowledge graph. Suggestions are
requested after a pause in typing; the graph itself has no timers.
"""

import logging
import threading
from collections.abc import Callable
from typing import Any

from snipgraph.graph import KnowledgeGraph
from snipgraph.parsing import extract_domain, parse_tags

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.3


def suggest_for_text(graph: KnowledgeGraph, text: str) -> list[str]:
    """Suggest tags for the current editor text."""
    return graph.predict(parse_tags(text), extract_domain(text))


def accept_suggestion(text: str, tag: str) -> str:
    """Append #tag to the text, followed by a space for the next word."""
    needs_space = bool(text) and not text.endswith(" ")
    return f"{text}{' ' if needs_space else ''}#{tag} "


class Debouncer:
    """
    Run a callback once input has been quiet for delay_seconds.

    Every trigger() cancels the previously scheduled call.
    """

    def __init__(self, delay_seconds: float, callback: Callable[..., Any]):
        self.delay_seconds = delay_seconds
        self.callback = callback
        self._timer: threading.Timer | None = None
        self._generation = 0
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: dict[str, Any], callback: Callable[..., Any]) -> "Debouncer":
        debounce_ms = config.get("editor", {}).get("debounce_ms", DEFAULT_DEBOUNCE_SECONDS * 1000)
        return cls(debounce_ms / 1000, callback)

    def trigger(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._timer = threading.Timer(
                self.delay_seconds, self._fire, (self._generation, args, kwargs)
            )
            self._timer.daemon = True
            self._timer.start()

    def _fire(self, generation: int, args: tuple, kwargs: dict[str, Any]) -> None:
        with self._lock:
            # A newer trigger() or cancel() superseded this timer
            if generation != self._generation:
                return
            self._timer = None
        try:
            self.callback(*args, **kwargs)
        except Exception:
            # No suggestions is a safe state for the editor
            logger.exception("Debounced callback failed")

    def cancel(self) -> None:
        with self._lock:
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None
