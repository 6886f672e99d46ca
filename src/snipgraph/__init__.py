"""
Snipgraph: Local-first snippet organizer with self-trained tag suggestions.

A personal note keeper that provides:
- Zero-friction capture of text and links with #tags
- A co-occurrence "knowledge graph" learned from every save
- Ranked tag suggestions while typing
"""

__version__ = "0.1.0"
