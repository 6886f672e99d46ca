"""
Record types for Snipgraph.

The statistics store owns Tag, CoOccurrencePair and DomainProfile.
Snippet and LinkMeta belong to the snippet repository.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Tag(BaseModel):
    """A known tag name. Created on first use, never deleted."""

    name: str
    created_at: datetime = Field(default_factory=utcnow)
    parent: str | None = Field(default=None, description="Unused hierarchy hook")
    color: str | None = Field(default=None, description="Unused display hook")


class CoOccurrencePair(BaseModel):
    """How often two distinct tags were saved together."""

    pair: str = Field(description="Canonical key: sorted names joined by '|'")
    tag_a: str
    tag_b: str
    count: int = Field(ge=1)
    last_seen: datetime = Field(default_factory=utcnow)

    def other(self, tag: str) -> str:
        """Return the partner of tag in this pair."""
        return self.tag_b if tag == self.tag_a else self.tag_a


class DomainProfile(BaseModel):
    """Tag frequencies for snippets saved from one hostname."""

    domain: str
    tag_counts: dict[str, int] = Field(default_factory=dict)

    def increment(self, tag: str, by: int = 1) -> int:
        """Add to a tag's count, creating the entry if needed. Returns the new count."""
        self.tag_counts[tag] = self.tag_counts.get(tag, 0) + by
        return self.tag_counts[tag]

    def count(self, tag: str) -> int:
        return self.tag_counts.get(tag, 0)

    def top_tags(self, n: int) -> list[str]:
        """Most frequent tags first; ties keep their stored order."""
        ranked = sorted(self.tag_counts.items(), key=lambda item: -item[1])
        return [tag for tag, _ in ranked[:n]]


class LinkMeta(BaseModel):
    """Preview data for a link found in a snippet."""

    url: str
    title: str | None = None
    description: str | None = None
    image: str | None = None
    domain: str | None = None


class Snippet(BaseModel):
    """A saved piece of text, optionally containing a link."""

    id: int | None = None
    text: str
    timestamp: int = Field(description="Unix timestamp in milliseconds")
    tags: list[str] = Field(default_factory=list)
    meta: LinkMeta | None = None
