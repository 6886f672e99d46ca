"""
Link metadata for Snipgraph.

Fetches a title, description and preview image for the link in a snippet.
Best effort: when the lookup fails a minimal preview built from the URL is
stored instead, so a link always ends up with some metadata.
"""

import logging
from typing import Any
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError

from snipgraph.models import LinkMeta, Snippet
from snipgraph.parsing import extract_url
from snipgraph.repository import SnippetRepository

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.microlink.io"
FALLBACK_DOMAIN = "External Link"


def fallback_meta(url: str) -> LinkMeta:
    """Minimal preview when the metadata service can't help."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        hostname = None
    return LinkMeta(url=url, title=hostname or url, image=None, domain=FALLBACK_DOMAIN)


class MetadataFetcher:
    """Looks up link previews through a microlink-compatible API."""

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "MetadataFetcher":
        meta_config = config.get("metadata", {})
        return cls(
            endpoint=meta_config.get("endpoint", DEFAULT_ENDPOINT),
            timeout=meta_config.get("timeout", 10.0),
        )

    def _get(self, url: str) -> dict[str, Any]:
        if self._client is not None:
            response = self._client.get(self.endpoint, params={"url": url})
            response.raise_for_status()
            return response.json()

        with httpx.Client(timeout=self.timeout) as client:
            response = client.get(self.endpoint, params={"url": url})
            response.raise_for_status()
            return response.json()

    def fetch(self, url: str) -> LinkMeta:
        """Fetch preview data for url. Never raises for network or data errors."""
        try:
            payload = self._get(url)
            if not isinstance(payload, dict):
                raise ValueError(f"Metadata lookup returned {type(payload).__name__}, expected an object")
            if payload.get("status") != "success":
                raise ValueError(f"Metadata lookup returned status {payload.get('status')!r}")

            data = payload.get("data") or {}
            if not isinstance(data, dict):
                raise ValueError(f"Metadata data is {type(data).__name__}, expected an object")
            image = data.get("image") or {}
            return LinkMeta(
                url=url,
                title=data.get("title"),
                description=data.get("description"),
                image=image.get("url") if isinstance(image, dict) else None,
                domain=data.get("publisher") or urlparse(url).hostname,
            )
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            logger.warning("Metadata fetch failed for %s, using fallback: %s", url, e)
            return fallback_meta(url)

    def enrich(self, repository: SnippetRepository, snippet: Snippet) -> LinkMeta | None:
        """Fetch metadata for the snippet's link and store it. None if no link."""
        url = extract_url(snippet.text)
        if not url or snippet.id is None:
            return None

        meta = self.fetch(url)
        repository.update_meta(snippet.id, meta)
        snippet.meta = meta
        return meta
