"""
Health check module for Snipgraph.

Reports system status across all components.
"""

from typing import Any

from snipgraph.config import get_config_path, get_db_path, load_config


def check_config() -> tuple[str, str]:
    """Check config file status."""
    config_path = get_config_path()
    if not config_path.exists():
        return "-", "Defaults (no config.toml)"

    try:
        load_config()
        return "✓", f"OK ({config_path})"
    except Exception as e:
        return "✗", f"Error: {e}"


def check_database() -> tuple[str, str]:
    """Check database status."""
    db_path = get_db_path()
    if not db_path.exists():
        return "-", "Not created yet"

    try:
        from snipgraph.db import Database
        with Database(db_path) as db:
            stats = db.get_stats()
        return "✓", f"OK ({stats['snippets']} snippets)"
    except Exception as e:
        return "✗", f"Error: {e}"


def check_graph() -> tuple[str, str]:
    """Check how much the knowledge graph has learned."""
    db_path = get_db_path()
    if not db_path.exists():
        return "-", "Nothing learned yet"

    try:
        from snipgraph.db import Database
        with Database(db_path) as db:
            stats = db.get_stats()
        if stats["tags"] == 0:
            return "!", "Empty (save snippets with #tags to train)"
        return "✓", f"OK ({stats['tags']} tags, {stats['pairs']} pairs, {stats['domains']} domains)"
    except Exception as e:
        return "✗", f"Error: {e}"


def check_metadata(config: dict[str, Any] | None = None) -> tuple[str, str]:
    """Check link metadata configuration."""
    config = config or load_config()
    meta_config = config.get("metadata", {})

    if not meta_config.get("enabled", True):
        return "-", "Disabled"
    return "✓", f"OK ({meta_config.get('endpoint')})"


def run_health_check() -> dict[str, tuple[str, str]]:
    """Run all health checks."""
    return {
        "Config": check_config(),
        "Database": check_database(),
        "Knowledge Graph": check_graph(),
        "Link Metadata": check_metadata(),
    }


def format_health_report(checks: dict[str, tuple[str, str]]) -> str:
    """Format health check results."""
    lines = ["Snipgraph Health Check", "-" * 40]

    for name, (status, message) in checks.items():
        lines.append(f"{status} {name}: {message}")

    return "\n".join(lines)
