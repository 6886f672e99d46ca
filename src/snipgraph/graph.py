"""
Knowledge graph for Snipgraph.

Learns which tags are used together, and which tags are used on which
domains, then turns those counts into ranked tag suggestions.

No state is kept between calls: every learn() and predict() re-reads the
database, so a prediction sees whatever learning has committed so far.
"""

import logging
from collections.abc import Iterable
from typing import Any

from snipgraph.db import Database
from snipgraph.errors import MalformedInput
from snipgraph.models import CoOccurrencePair, DomainProfile, Tag, utcnow

logger = logging.getLogger(__name__)

PAIR_SEPARATOR = "|"

# Scoring defaults
DOMAIN_TOP_N = 3
DOMAIN_BONUS = 5
MAX_SUGGESTIONS = 5


def pair_key(tag_a: str, tag_b: str) -> str:
    """Canonical, order-independent key for two tags."""
    return PAIR_SEPARATOR.join(sorted((tag_a, tag_b)))


def split_pair_key(key: str) -> tuple[str, str]:
    tag_a, tag_b = key.split(PAIR_SEPARATOR, 1)
    return tag_a, tag_b


def normalize_tags(tags: Iterable[str] | None) -> list[str]:
    """
    Validate a tag collection and drop duplicates, keeping first-seen order.

    Names are used exactly as given (no case folding, no trimming).
    """
    if tags is None:
        return []
    if isinstance(tags, (str, bytes)):
        raise MalformedInput(f"Expected a collection of tags, got a single string: {tags!r}")

    seen: dict[str, None] = {}
    for tag in tags:
        if not isinstance(tag, str):
            raise MalformedInput(f"Tag must be a string, got {type(tag).__name__}: {tag!r}")
        if not tag:
            raise MalformedInput("Tag must not be empty")
        if PAIR_SEPARATOR in tag:
            raise MalformedInput(f"Tag must not contain '{PAIR_SEPARATOR}': {tag!r}")
        seen.setdefault(tag, None)
    return list(seen)


def normalize_domain(domain: str | None) -> str | None:
    """Empty domain means no domain."""
    if domain is None:
        return None
    if not isinstance(domain, str):
        raise MalformedInput(f"Domain must be a string, got {type(domain).__name__}: {domain!r}")
    return domain or None


class KnowledgeGraph:
    """Tag association and prediction engine over a Database."""

    def __init__(
        self,
        db: Database,
        domain_top_n: int = DOMAIN_TOP_N,
        domain_bonus: int = DOMAIN_BONUS,
        max_suggestions: int = MAX_SUGGESTIONS,
    ):
        self.db = db
        self.domain_top_n = domain_top_n
        self.domain_bonus = domain_bonus
        # Never more than MAX_SUGGESTIONS, whatever the config says
        self.max_suggestions = min(max_suggestions, MAX_SUGGESTIONS)

    @classmethod
    def from_config(cls, db: Database, config: dict[str, Any]) -> "KnowledgeGraph":
        graph_config = config.get("graph", {})
        return cls(
            db,
            domain_top_n=graph_config.get("domain_top_n", DOMAIN_TOP_N),
            domain_bonus=graph_config.get("domain_bonus", DOMAIN_BONUS),
            max_suggestions=graph_config.get("max_suggestions", MAX_SUGGESTIONS),
        )

    def learn(self, tags: Iterable[str], domain: str | None = None) -> None:
        """
        Record that tags were used together, optionally on a domain.

        1. Register unseen tags.
        2. Increment the counter of every unordered pair of distinct tags.
        3. Increment each tag's count in the domain's profile.

        All three steps commit together or not at all. An empty tag set is
        a no-op, even when a domain is given.
        """
        names = normalize_tags(tags)
        domain = normalize_domain(domain)
        if not names:
            return

        now = utcnow()

        with self.db.transaction() as stats:
            for name in names:
                if stats.get_tag(name) is None:
                    stats.put_tag(Tag(name=name, created_at=now))

            for i, first in enumerate(names):
                for second in names[i + 1:]:
                    key = pair_key(first, second)
                    record = stats.get_pair(key)
                    if record is None:
                        tag_a, tag_b = split_pair_key(key)
                        record = CoOccurrencePair(pair=key, tag_a=tag_a, tag_b=tag_b, count=1, last_seen=now)
                    else:
                        record.count += 1
                        record.last_seen = now
                    stats.put_pair(record)

            if domain:
                profile = stats.get_domain(domain) or DomainProfile(domain=domain)
                for name in names:
                    profile.increment(name)
                stats.put_domain(profile)

        logger.debug("Learned %d tags (domain=%s)", len(names), domain)

    def predict(self, current_tags: Iterable[str], domain: str | None = None) -> list[str]:
        """
        Suggest up to max_suggestions (at most 5) tags for a snippet being typed.

        Scores add up from two sources:
        - the domain's most used tags get a fixed bonus each
        - for every stored pair with exactly one side already typed, the
          other side gets the pair's count

        Typed tags are never suggested. Equal scores keep the order in which
        candidates were first scored (domain tags first, then pairs in the
        order they were first learned).
        """
        current = normalize_tags(current_tags)
        domain = normalize_domain(domain)
        scores: dict[str, int] = {}

        if domain:
            profile = self.db.get_domain(domain)
            if profile:
                for tag in profile.top_tags(self.domain_top_n):
                    scores[tag] = scores.get(tag, 0) + self.domain_bonus

        if current:
            typed = set(current)
            for record in self.db.get_all_pairs():
                has_a = record.tag_a in typed
                has_b = record.tag_b in typed
                if has_a and not has_b:
                    scores[record.tag_b] = scores.get(record.tag_b, 0) + record.count
                elif has_b and not has_a:
                    scores[record.tag_a] = scores.get(record.tag_a, 0) + record.count

        for tag in current:
            scores.pop(tag, None)

        ranked = sorted(scores.items(), key=lambda item: -item[1])
        return [tag for tag, _ in ranked[: self.max_suggestions]]

    def known_tags(self) -> list[str]:
        """Names of every tag learned so far."""
        return [tag.name for tag in self.db.list_tags()]
