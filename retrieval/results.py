from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ScoredChunk:
    id: str
    title: str
    text: str
    score: float
    source: str = "lexical"  # "dictionary" | "lexical" | "approximate"
