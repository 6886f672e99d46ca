"""
MCP Server for Snipgraph.

Exposes snippet capture and tag suggestions as tools for MCP clients.
"""

import logging

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from snipgraph.config import configure_logging, ensure_dirs, load_config
from snipgraph.db import Database
from snipgraph.editor import suggest_for_text
from snipgraph.graph import KnowledgeGraph
from snipgraph.repository import SnippetRepository, build_snippet
from snipgraph.surfacing import (
    format_stats,
    format_tags,
    get_snippets_formatted,
    search_snippets_formatted,
)

logger = logging.getLogger(__name__)

TOOLS = [
    Tool(
        name="snip_add",
        description="Save a snippet. Write #tags inline; the tags are learned for future suggestions.",
        inputSchema={
            "type": "object",
            "properties": {
                "text": {
                    "type": "string",
                    "description": "Snippet text, may contain a URL and #tags",
                },
            },
            "required": ["text"],
        },
    ),
    Tool(
        name="snip_suggest",
        description="Suggest tags for a snippet being written, based on tags used together before and the link's domain.",
        inputSchema={
            "type": "object",
            "properties": {
                "text": {
                    "type": "string",
                    "description": "Snippet text so far",
                },
            },
            "required": ["text"],
        },
    ),
    Tool(
        name="snip_list",
        description="List snippets, optionally only those with a tag, only links, or only plain text.",
        inputSchema={
            "type": "object",
            "properties": {
                "tag": {
                    "type": "string",
                    "description": "Only snippets with this tag (optional)",
                },
                "kind": {
                    "type": "string",
                    "description": "all, links or text (default: all)",
                    "enum": ["all", "links", "text"],
                    "default": "all",
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum results to return (default: 20)",
                    "default": 20,
                },
            },
        },
    ),
    Tool(
        name="snip_search",
        description="Search snippet text (case-insensitive substring match).",
        inputSchema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query",
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum results to return (default: 10)",
                    "default": 10,
                },
            },
            "required": ["query"],
        },
    ),
    Tool(
        name="snip_tags",
        description="List tags used on snippets, or every tag ever learned.",
        inputSchema={
            "type": "object",
            "properties": {
                "known": {
                    "type": "boolean",
                    "description": "Include tags from deleted snippets (default: false)",
                    "default": False,
                },
            },
        },
    ),
    Tool(
        name="snip_delete",
        description="Delete a snippet by ID. Learned tag statistics are kept.",
        inputSchema={
            "type": "object",
            "properties": {
                "snippet_id": {
                    "type": "integer",
                    "description": "The ID of the snippet to delete",
                },
            },
            "required": ["snippet_id"],
        },
    ),
    Tool(
        name="snip_stats",
        description="Show snippet counts and the strongest tag associations.",
        inputSchema={
            "type": "object",
            "properties": {},
        },
    ),
]


def text(message: str) -> list[TextContent]:
    return [TextContent(type="text", text=message)]


async def tool_add(repository: SnippetRepository, args: dict) -> list[TextContent]:
    """Save a snippet."""
    body = args.get("text", "").strip()
    if not body:
        return text("Error: Empty snippet")

    saved = repository.save(build_snippet(body))
    tags = " ".join(f"#{tag}" for tag in saved.tags)
    return text(f"Saved: {saved.id} {tags}".rstrip())


async def tool_suggest(repository: SnippetRepository, args: dict) -> list[TextContent]:
    """Suggest tags for text."""
    suggestions = suggest_for_text(repository.graph, args.get("text", ""))
    if not suggestions:
        return text("No suggestions.")
    return text(" ".join(f"#{tag}" for tag in suggestions))


async def tool_list(repository: SnippetRepository, args: dict) -> list[TextContent]:
    """List snippets."""
    mode = args.get("kind", "all")
    if tag := args.get("tag"):
        mode = f"tag:{tag.lstrip('#')}"
    return text(get_snippets_formatted(repository, mode=mode, limit=args.get("limit", 20)))


async def tool_search(repository: SnippetRepository, args: dict) -> list[TextContent]:
    """Search snippets."""
    query = args.get("query", "").strip()
    if not query:
        return text("Error: Empty query")
    return text(search_snippets_formatted(query, repository, limit=args.get("limit", 10)))


async def tool_tags(repository: SnippetRepository, args: dict) -> list[TextContent]:
    """List tags."""
    if args.get("known", False):
        return text(format_tags(repository.known_tags(), title="KNOWN TAGS"))
    return text(format_tags(repository.available_tags()))


async def tool_delete(repository: SnippetRepository, args: dict) -> list[TextContent]:
    """Delete a snippet."""
    snippet_id = args.get("snippet_id")
    if snippet_id is None:
        return text("Error: No snippet_id provided")

    if repository.delete(int(snippet_id)):
        return text(f"Deleted: {snippet_id}")
    return text(f"Not found: {snippet_id}")


async def tool_stats(repository: SnippetRepository, args: dict) -> list[TextContent]:
    """Show statistics."""
    return text(format_stats(repository.db))


HANDLERS = {
    "snip_add": tool_add,
    "snip_suggest": tool_suggest,
    "snip_list": tool_list,
    "snip_search": tool_search,
    "snip_tags": tool_tags,
    "snip_delete": tool_delete,
    "snip_stats": tool_stats,
}


async def dispatch(repository: SnippetRepository, name: str, arguments: dict | None) -> list[TextContent]:
    """Run one tool call. Failures come back as 'Error: ...' text."""
    handler = HANDLERS.get(name)
    if handler is None:
        return text(f"Unknown tool: {name}")
    try:
        return await handler(repository, arguments or {})
    except Exception as e:
        logger.exception("Tool %s failed", name)
        return text(f"Error: {e}")


def create_server(repository: SnippetRepository) -> Server:
    """Build the MCP server around an open repository."""
    server = Server("snipgraph")

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available tools."""
        return TOOLS

    @server.call_tool()
    async def call_tool(name: str, arguments: dict) -> list[TextContent]:
        """Handle tool calls."""
        return await dispatch(repository, name, arguments)

    return server


async def main():
    """Run the MCP server."""
    config = load_config()
    configure_logging(config)
    ensure_dirs()

    with Database() as db:
        repository = SnippetRepository(db, KnowledgeGraph.from_config(db, config))
        server = create_server(repository)
        try:
            async with stdio_server() as (read_stream, write_stream):
                await server.run(read_stream, write_stream, server.create_initialization_options())
        finally:
            repository.close()


def run() -> None:
    """Console script entry point."""
    import asyncio
    asyncio.run(main())


if __name__ == "__main__":
    run()
