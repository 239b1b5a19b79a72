"""Typed containers shared across pipeline modules."""

from __future__ import annotations

from dataclasses import dataclass

from .config import DocumentRecord


@dataclass
class ScoredCandidate:
    """A catalog document paired with its term-overlap score."""

    record: DocumentRecord
    score: int
