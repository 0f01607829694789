"""
Inverted index over chunk terms and the IDF-weighted lexical scorer.

Scoring runs in two passes:
  1) accumulate ln(1 + N / |postings|) per query term over its posting list
  2) re-rank the top `top_k * shortlist_factor` by adding
     overlap / (1 + |chunk terms|), which damps the advantage of long chunks

Only posting lists of query terms and the shortlisted chunks are read, never
the whole corpus.
"""

from __future__ import annotations

import math
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence

from common.config import yaml_config
from common.errors import StoreError
from common.logger import get_logger
from ingestion.normalizer import unique_terms
from kbstore.base import CHUNKS, KnowledgeStore
from retrieval.results import ScoredChunk

log = get_logger(__name__)


def idf_weight(total_chunks: int, posting_size: int) -> float:
    return math.log(1 + total_chunks / max(1, posting_size))


class InvertedIndex:
    def __init__(self, store: KnowledgeStore, shortlist_factor: int | None = None):
        self.store = store
        self.shortlist_factor = shortlist_factor or yaml_config.retrieval.shortlist_factor

    def import_chunk(
        self, chunk_id: str, text: str, previous_text: Optional[str] = None
    ) -> int:
        """
        Add `chunk_id` to the posting list of every distinct term of `text`.

        Safe to repeat: ids already present are left alone. When the chunk
        previously held `previous_text`, its id is also removed from terms it
        no longer contains. Write failures are logged and counted, never
        raised. Returns the number of failed posting writes.
        """
        terms = unique_terms(text)
        failures = 0
        for term in terms:
            try:
                ids = self.store.get_posting(term) or set()
                if chunk_id in ids:
                    continue
                ids.add(chunk_id)
                self.store.put_posting(term, ids)
            except StoreError as e:
                failures += 1
                log.warning("Posting write failed for term %r (%s): %s", term, chunk_id, e)

        if previous_text:
            stale = set(unique_terms(previous_text)) - set(terms)
            for term in stale:
                try:
                    ids = self.store.get_posting(term)
                    if not ids or chunk_id not in ids:
                        continue
                    ids.discard(chunk_id)
                    self.store.put_posting(term, ids)
                except StoreError as e:
                    failures += 1
                    log.warning("Posting cleanup failed for term %r (%s): %s", term, chunk_id, e)
        return failures

    def accumulate(self, query_terms: Sequence[str]) -> Dict[str, float]:
        """First pass: summed IDF weights per chunk id."""
        total = self.store.count(CHUNKS)
        scores: Dict[str, float] = defaultdict(float)
        for term in query_terms:
            ids = self.store.get_posting(term)
            if not ids:
                continue
            w = idf_weight(total, len(ids))
            for chunk_id in ids:
                scores[chunk_id] += w
        return dict(scores)

    def search(self, query_terms: Iterable[str], top_k: int | None = None) -> List[ScoredChunk]:
        """
        Rank chunks for already-normalized query terms. Store failures end
        the lexical path with no results.
        """
        if top_k is None:
            top_k = yaml_config.retrieval.top_k
        if top_k < 0:
            raise ValueError(f"top_k must be non-negative, got {top_k}")
        terms = list(dict.fromkeys(query_terms))
        if not terms:
            return []
        try:
            scores = self.accumulate(terms)
            shortlist = sorted(scores.items(), key=lambda kv: (-kv[1], kv[0]))
            shortlist = shortlist[: top_k * self.shortlist_factor]

            qset = set(terms)
            refined: List[ScoredChunk] = []
            for chunk_id, base in shortlist:
                chunk = self.store.get_chunk(chunk_id)
                if not chunk:
                    continue
                chunk_terms = set(unique_terms(chunk.get("text", "")))
                overlap = len(qset & chunk_terms)
                refined.append(
                    ScoredChunk(
                        id=chunk_id,
                        title=chunk.get("title", ""),
                        text=chunk.get("text", ""),
                        score=base + overlap / (1 + len(chunk_terms)),
                        source="lexical",
                    )
                )
        except StoreError as e:
            log.warning("Lexical search unavailable: %s", e)
            return []

        refined.sort(key=lambda r: (-r.score, r.id))
        log.debug("Lexical path: %d candidates, %d refined", len(scores), len(refined))
        return refined[:top_k]
