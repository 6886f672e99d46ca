"""Exceptions raised by Snipgraph."""


class SnipgraphError(Exception):
    """Base class for all Snipgraph errors."""


class StorageUnavailable(SnipgraphError):
    """The statistics store could not be opened, or was already closed."""


class MalformedInput(SnipgraphError, ValueError):
    """Input that cannot be learned from or predicted on (e.g. a non-string tag)."""
