"""
Snippet repository for Snipgraph.

CRUD for snippets. Every successful save hands the snippet's tags and
domain to the knowledge graph in the background; the save itself never
waits for, or fails because of, learning.
"""

import logging
import time
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor

from snipgraph.db import Database
from snipgraph.errors import MalformedInput
from snipgraph.graph import KnowledgeGraph, normalize_tags
from snipgraph.models import LinkMeta, Snippet
from snipgraph.parsing import extract_domain, has_link, parse_tags

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current Unix timestamp in milliseconds."""
    return int(time.time() * 1000)


def build_snippet(text: str, snippet_id: int | None = None) -> Snippet:
    """Create a snippet from editor text, tags parsed from the text."""
    text = (text or "").strip()
    if not text:
        raise MalformedInput("Empty snippet")
    return Snippet(id=snippet_id, text=text, timestamp=now_ms(), tags=parse_tags(text))


def filter_snippets(
    snippets: Iterable[Snippet],
    search: str = "",
    mode: str = "all",
) -> list[Snippet]:
    """
    Filter snippets the way the snippet list does.

    mode is one of: all, links, text, tag:<name>
    """
    if mode not in ("all", "links", "text") and not mode.startswith("tag:"):
        raise MalformedInput(f"Unknown filter: {mode}")

    needle = (search or "").lower()
    result = []
    for snippet in snippets:
        if needle not in snippet.text.lower():
            continue
        link = has_link(snippet.text)
        if mode == "links" and not link:
            continue
        if mode == "text" and link:
            continue
        if mode.startswith("tag:") and mode[4:] not in snippet.tags:
            continue
        result.append(snippet)
    return result


class SnippetRepository:
    """Stores snippets and feeds the knowledge graph on save."""

    def __init__(self, db: Database, graph: KnowledgeGraph):
        self.db = db
        self.graph = graph
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="snipgraph-learn")
        self._pending: list[Future] = []

    def save(self, snippet: Snippet) -> Snippet:
        """
        Insert or overwrite a snippet, then learn from it in the background.

        Returns the stored snippet (with its ID).
        """
        tags = normalize_tags(snippet.tags)
        saved = snippet.model_copy(update={"tags": tags})
        saved.id = self.db.put_snippet(saved)

        domain = extract_domain(saved.text)
        self._pending = [f for f in self._pending if not f.done()]
        self._pending.append(self._executor.submit(self._learn, tags, domain))

        return saved

    def _learn(self, tags: list[str], domain: str | None) -> None:
        try:
            self.graph.learn(tags, domain)
        except Exception:
            logger.exception("Learning from saved snippet failed")
            raise

    def flush(self) -> None:
        """Wait until all background learning has finished."""
        pending, self._pending = self._pending, []
        for future in pending:
            # Failures were already logged by _learn
            future.exception()

    def close(self) -> None:
        self.flush()
        self._executor.shutdown(wait=True)

    def get(self, snippet_id: int) -> Snippet | None:
        return self.db.get_snippet(snippet_id)

    def get_all(self, limit: int | None = None) -> list[Snippet]:
        """All snippets, newest first."""
        return self.db.get_snippets(limit=limit)

    def delete(self, snippet_id: int) -> bool:
        return self.db.delete_snippet(snippet_id)

    def update_meta(self, snippet_id: int, meta: LinkMeta | None) -> bool:
        """Attach link metadata without learning from the snippet again."""
        return self.db.update_snippet_meta(snippet_id, meta)

    def available_tags(self) -> list[str]:
        """Distinct tags used on stored snippets, for the filter list."""
        tags: set[str] = set()
        for snippet in self.db.get_snippets():
            tags.update(snippet.tags)
        return sorted(tags)

    def known_tags(self) -> list[str]:
        """Every tag the knowledge graph has learned, including deleted snippets' tags."""
        return self.graph.known_tags()

    def find(self, search: str = "", mode: str = "all", limit: int | None = None) -> list[Snippet]:
        results = filter_snippets(self.db.get_snippets(), search=search, mode=mode)
        return results[:limit] if limit is not None else results
