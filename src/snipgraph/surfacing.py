"""
Surfacing module for Snipgraph.

Terminal formatting for snippets, tags, suggestions and graph statistics.
"""

import os
from datetime import datetime, timezone

from snipgraph.db import Database
from snipgraph.models import Snippet
from snipgraph.parsing import display_text, extract_url
from snipgraph.repository import SnippetRepository


# ANSI color codes
class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    BLUE = "\033[34m"
    WHITE = "\033[37m"

    BRIGHT_CYAN = "\033[96m"
    BRIGHT_MAGENTA = "\033[95m"
    BRIGHT_YELLOW = "\033[93m"

    @classmethod
    def enabled(cls) -> bool:
        """Check if colors should be enabled."""
        # Disable if NO_COLOR is set
        if os.environ.get("NO_COLOR"):
            return False
        return True


def c(text: str, *codes: str) -> str:
    """Apply color codes to text if colors are enabled."""
    if not Colors.enabled():
        return text
    return "".join(codes) + text + Colors.RESET


def format_timestamp(timestamp_ms: int) -> str:
    """Millisecond timestamp as YYYY-MM-DD."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


def format_tag_chips(tags: list[str]) -> str:
    return " ".join(c(f"#{tag}", Colors.BRIGHT_CYAN) for tag in tags)


def format_snippet_line(snippet: Snippet) -> str:
    """One-line summary: id, date, content (or link title), tags."""
    url = extract_url(snippet.text)
    content = display_text(snippet.text)

    if not content and url:
        if snippet.meta and snippet.meta.title:
            content = snippet.meta.title
        else:
            content = url
    content = content[:48]

    link_marker = c(" [link]", Colors.BRIGHT_MAGENTA) if url else ""
    id_str = c(f"{snippet.id:>5}", Colors.BOLD, Colors.WHITE)
    date_str = c(format_timestamp(snippet.timestamp), Colors.DIM)
    tags_str = f"  {format_tag_chips(snippet.tags)}" if snippet.tags else ""

    return f"{id_str}  {date_str}  {content}{link_marker}{tags_str}"


def format_snippets(snippets: list[Snippet], title: str = "SNIPPETS") -> str:
    """Format a list of snippets with header."""
    if not snippets:
        return c("No snippets found.", Colors.DIM)

    lines = []
    lines.append(c(f"━━━ {title} ━━━", Colors.BOLD, Colors.BLUE))
    lines.append("")
    lines.append(c(f"{'ID':>5}  {'DATE':10}  TEXT", Colors.DIM))
    lines.append(c("─" * 70, Colors.DIM))

    for snippet in snippets:
        lines.append(format_snippet_line(snippet))

    return "\n".join(lines)


def get_snippets_formatted(
    repository: SnippetRepository,
    search: str = "",
    mode: str = "all",
    limit: int = 20,
) -> str:
    """Get snippets as formatted string with colors."""
    snippets = repository.find(search=search, mode=mode, limit=limit)

    title = "SNIPPETS"
    if mode.startswith("tag:"):
        title = f"#{mode[4:]}"
    elif mode != "all":
        title = mode.upper()

    return format_snippets(snippets, title=title)


def search_snippets_formatted(query: str, repository: SnippetRepository, limit: int = 20) -> str:
    """Search snippet text and return formatted string with colors."""
    snippets = repository.find(search=query, limit=limit)

    if not snippets:
        return c(f"No snippets matching '{query}'.", Colors.DIM)

    return format_snippets(snippets, title=f"SEARCH: {query}")


def format_tags(tags: list[str], title: str = "TAGS") -> str:
    if not tags:
        return c("No tags yet.", Colors.DIM)

    lines = [c(f"━━━ {title} ({len(tags)}) ━━━", Colors.BOLD, Colors.BLUE), ""]
    lines.append(format_tag_chips(tags))
    return "\n".join(lines)


def format_suggestions(suggestions: list[str]) -> str:
    if not suggestions:
        return c("No suggestions.", Colors.DIM)
    return c("Suggested: ", Colors.DIM) + format_tag_chips(suggestions)


def format_stats(db: Database, top: int = 5) -> str:
    """Database and knowledge graph statistics."""
    stats = db.get_stats()

    lines = ["Snipgraph Statistics", "-" * 30]
    lines.append(f"Snippets: {stats['snippets']}")
    lines.append(f"Known tags: {stats['tags']}")
    lines.append(f"Tag pairs: {stats['pairs']}")
    lines.append(f"Domains: {stats['domains']}")

    pairs = db.top_pairs(limit=top)
    if pairs:
        lines.append("\nStrongest associations:")
        for record in pairs:
            lines.append(f"  #{record.tag_a} + #{record.tag_b}: {record.count}")

    return "\n".join(lines)
