"""
CLI for Snipgraph.

Minimal CLI using stdlib for fast startup on the capture path.
Subcommands are imported lazily to avoid startup overhead.

Usage:
    snipgraph "your snippet #with #tags"   # Save (primary interface)
    snipgraph suggest "text so far #tag"   # Ask for tag suggestions
    snipgraph --help                       # Show help
"""

import sys
from contextlib import contextmanager
from typing import Any, Iterator


def print_help() -> None:
    """Print help message."""
    print("""snipgraph - local-first snippet organizer

Usage:
    snipgraph "your snippet #tag"   Save a snippet (tags are learned)

Commands:
    snipgraph list [options]        List snippets (--tag, --links, --text, --search, --limit)
    snipgraph find <query>          Search snippet text
    snipgraph delete <id>           Delete a snippet
    snipgraph suggest <text>        Suggest tags for text being written
    snipgraph tags [--known]        List tags in use (--known: every learned tag)
    snipgraph stats                 Show database and graph statistics
    snipgraph health                Show component health

Options:
    snipgraph --help, -h            Show this help
    snipgraph --version, -v         Show version

Examples:
    snipgraph "Pasta carbonara https://smulweb.nl/carbonara #recept #pasta"
    snipgraph suggest "#pasta"
    snipgraph list --tag recept
    snipgraph find carbonara

Every save teaches the knowledge graph which tags belong together.""")


def print_version() -> None:
    """Print version."""
    from snipgraph import __version__
    print(f"snipgraph {__version__}")


@contextmanager
def open_services() -> Iterator[dict[str, Any]]:
    """Open the database and build the services on top of it."""
    from snipgraph.config import configure_logging, ensure_dirs, load_config
    from snipgraph.db import Database
    from snipgraph.graph import KnowledgeGraph
    from snipgraph.repository import SnippetRepository

    config = load_config()
    configure_logging(config)
    ensure_dirs()

    db = Database()
    graph = KnowledgeGraph.from_config(db, config)
    repository = SnippetRepository(db, graph)
    try:
        yield {"config": config, "db": db, "graph": graph, "repository": repository}
    finally:
        repository.close()
        db.close()


def capture(text: str) -> int:
    """
    Save a snippet.

    Prints the snippet ID, then suggestions for tags it doesn't have yet.
    """
    from snipgraph.editor import suggest_for_text
    from snipgraph.metadata import MetadataFetcher
    from snipgraph.repository import build_snippet
    from snipgraph.surfacing import format_suggestions

    with open_services() as services:
        repository = services["repository"]
        snippet = build_snippet(text)
        saved = repository.save(snippet)
        print(saved.id)

        if services["config"].get("metadata", {}).get("enabled", True):
            MetadataFetcher.from_config(services["config"]).enrich(repository, saved)

        repository.flush()
        suggestions = suggest_for_text(services["graph"], saved.text)
        if suggestions:
            print(format_suggestions(suggestions))

    return 0


def cmd_list(args: list[str]) -> int:
    """List snippets with optional filters."""
    from snipgraph.surfacing import get_snippets_formatted

    mode = "all"
    search = ""
    limit = 20

    # Parse arguments
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in ("--tag", "-t") and i + 1 < len(args):
            mode = f"tag:{args[i + 1].lstrip('#')}"
            i += 2
        elif arg in ("--search", "-s") and i + 1 < len(args):
            search = args[i + 1]
            i += 2
        elif arg in ("--limit", "-n") and i + 1 < len(args):
            try:
                limit = int(args[i + 1])
            except ValueError:
                print(f"Error: Invalid limit: {args[i + 1]}", file=sys.stderr)
                return 1
            i += 2
        elif arg in ("--links", "-l"):
            mode = "links"
            i += 1
        elif arg == "--text":
            mode = "text"
            i += 1
        else:
            i += 1

    try:
        with open_services() as services:
            print(get_snippets_formatted(services["repository"], search=search, mode=mode, limit=limit))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_find(args: list[str]) -> int:
    """Search snippet text."""
    from snipgraph.surfacing import search_snippets_formatted

    if not args:
        print("Usage: snipgraph find <query>", file=sys.stderr)
        return 1

    query = " ".join(args)

    try:
        with open_services() as services:
            print(search_snippets_formatted(query, services["repository"]))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_delete(args: list[str]) -> int:
    """Delete a snippet."""
    if not args:
        print("Usage: snipgraph delete <id>", file=sys.stderr)
        return 1

    try:
        snippet_id = int(args[0])
    except ValueError:
        print(f"Error: Invalid id: {args[0]}", file=sys.stderr)
        return 1

    try:
        with open_services() as services:
            if services["repository"].delete(snippet_id):
                print(f"Deleted: {snippet_id}")
                return 0
        print(f"Not found: {snippet_id}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_suggest(args: list[str]) -> int:
    """Suggest tags for text being written."""
    from snipgraph.editor import suggest_for_text
    from snipgraph.surfacing import format_suggestions

    if args:
        text = " ".join(args)
    elif not sys.stdin.isatty():
        text = sys.stdin.read()
    else:
        print("Usage: snipgraph suggest <text>", file=sys.stderr)
        return 1

    try:
        with open_services() as services:
            print(format_suggestions(suggest_for_text(services["graph"], text)))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_tags(args: list[str]) -> int:
    """List tags."""
    from snipgraph.surfacing import format_tags

    known = "--known" in args

    try:
        with open_services() as services:
            repository = services["repository"]
            if known:
                print(format_tags(repository.known_tags(), title="KNOWN TAGS"))
            else:
                print(format_tags(repository.available_tags()))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_stats() -> int:
    """Show database statistics."""
    from snipgraph.surfacing import format_stats

    try:
        with open_services() as services:
            print(format_stats(services["db"]))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_health() -> int:
    """Show component health."""
    from snipgraph.health import format_health_report, run_health_check

    print(format_health_report(run_health_check()))
    return 0


def save_text(text: str) -> int:
    try:
        return capture(text)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main() -> int:
    """
    Main entry point.

    Optimized for minimal startup time on the capture path.
    """
    args = sys.argv[1:]

    # No args - check for piped input
    if not args:
        if not sys.stdin.isatty():
            # Reading from pipe
            text = sys.stdin.read().strip()
            if text:
                return save_text(text)
        print_help()
        return 0

    # Handle flags and commands
    first_arg = args[0]

    if first_arg in ("--help", "-h", "help"):
        print_help()
        return 0

    if first_arg in ("--version", "-v", "version"):
        print_version()
        return 0

    # Subcommands (lazy import to keep startup fast)
    if first_arg == "list":
        return cmd_list(args[1:])

    if first_arg == "find":
        return cmd_find(args[1:])

    if first_arg == "delete":
        return cmd_delete(args[1:])

    if first_arg == "suggest":
        return cmd_suggest(args[1:])

    if first_arg == "tags":
        return cmd_tags(args[1:])

    if first_arg == "stats":
        return cmd_stats()

    if first_arg == "health":
        return cmd_health()

    # Everything else is a snippet to save
    # Join all args (allows: snipgraph Pasta recipe #pasta)
    text = " ".join(args)

    if not text.strip():
        print("Error: Empty snippet", file=sys.stderr)
        return 1

    return save_text(text)


if __name__ == "__main__":
    sys.exit(main())
