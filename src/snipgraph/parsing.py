"""
Text parsing helpers for snippets.

Pure functions: turn raw snippet text into the tag list and domain that the
knowledge graph consumes. The graph itself never parses text.
"""

import re
from urllib.parse import urlparse

URL_RE = re.compile(r"https?://[^\s]+")
TAG_RE = re.compile(r"(?:^|\s)#([\w-]+)")


def parse_tags(text: str) -> list[str]:
    """Extract #tags in order of first appearance, without the '#'."""
    seen: dict[str, None] = {}
    for match in TAG_RE.finditer(text or ""):
        seen.setdefault(match.group(1), None)
    return list(seen)


def extract_url(text: str) -> str | None:
    """Return the first URL in text, if any."""
    match = URL_RE.search(text or "")
    return match.group(0) if match else None


def extract_domain(text: str) -> str | None:
    """Hostname of the first URL in text, or None if there is no usable URL."""
    url = extract_url(text)
    if not url:
        return None
    try:
        return urlparse(url).hostname or None
    except ValueError:
        return None


def has_link(text: str) -> bool:
    return extract_url(text) is not None


def display_text(text: str) -> str:
    """Snippet text with the link and #tags removed, whitespace collapsed."""
    content = text or ""
    if url := extract_url(content):
        content = content.replace(url, "", 1)
    content = TAG_RE.sub(" ", content)
    return " ".join(content.split())
