from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from common.logger import get_logger
from ingestion.normalizer import tokenize
from retrieval.results import ScoredChunk
from retrieval.service import KnowledgeBaseService

log = get_logger(__name__)

NO_ANSWER = "I don't know. No relevant context was found."
SHORT_SENTENCE_TOKENS = 20
SHORT_SENTENCE_BONUS = 0.1

_SENTENCE_SPLIT = re.compile(r"(?<=[.?!])\s+")


@dataclass(frozen=True)
class Answer:
    answer: str
    sources: List[Dict[str, Any]]


@dataclass(frozen=True)
class _Candidate:
    text: str
    source: str
    score: float


def _format_sources(chunks: Sequence[ScoredChunk]) -> List[Dict[str, Any]]:
    return [
        {"id": c.id, "title": c.title, "score": c.score, "snippet": c.text[:300]}
        for c in chunks
    ]


def _best_sentence(query_terms: set, chunk: ScoredChunk) -> _Candidate:
    """
    The chunk sentence sharing most terms with the query, with a small bonus
    for short sentences. Falls back to the first 200 characters.
    """
    best: Optional[str] = None
    best_score = -1.0
    for sent in filter(None, _SENTENCE_SPLIT.split(chunk.text)):
        toks = set(tokenize(sent))
        sc = len(query_terms & toks) + (SHORT_SENTENCE_BONUS if len(toks) <= SHORT_SENTENCE_TOKENS else 0)
        if sc > best_score:
            best, best_score = sent, sc
    src = chunk.title or chunk.id
    if best is None:
        return _Candidate(chunk.text[:200].strip(), src, chunk.score)
    return _Candidate(best.strip(), src, best_score + chunk.score)


def synthesize_answer(query: str, retrieved: Sequence[ScoredChunk], max_sentences: int = 2) -> Answer:
    """
    Extractive answer: the top sentences across retrieved chunks, citing the
    best-scoring source.
    """
    if not retrieved:
        return Answer(answer=NO_ANSWER, sources=[])

    qterms = set(tokenize(query))
    candidates = sorted(
        (_best_sentence(qterms, c) for c in retrieved), key=lambda c: -c.score
    )
    chosen = [c.text for c in candidates[:max_sentences] if c.text]
    cite = f" (source: {candidates[0].source})" if candidates[0].source else ""
    return Answer(answer=" ".join(chosen) + cite, sources=_format_sources(retrieved))


def ask(kb: KnowledgeBaseService, question: str, top_k: int | None = None) -> Answer:
    retrieved = kb.retrieve(question, top_k=top_k)
    log.info("Retrieved %d chunks for question", len(retrieved))
    return synthesize_answer(question, retrieved)
