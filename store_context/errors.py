"""
Error types raised inside loaders and sources.

None of these reach the caller of the retrieval pipeline: sources catch
them at their boundary, log, and contribute no documents instead.
"""


class ContextError(Exception):
    """Base error for the context retrieval package."""


class SourceUnavailable(ContextError):
    """A file is missing/unreadable or a remote lookup failed."""


class MalformedRecord(ContextError):
    """A row or entry lacks the fields needed to identify a document."""
