"""
Paraphrase / near-duplicate recall via MinHash signatures.

Below `scan_ceiling` chunks every stored signature is compared with the
query signature. Above it the matcher only looks at candidate ids handed in
by the caller (usually the lexical hits), or does nothing when there are
none. Results are supplementary recall, never required for correctness.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional, Tuple

from common.config import yaml_config
from common.errors import StoreError
from common.logger import get_logger
from ingestion.signatures import (
    SignatureParams,
    jaccard_estimate,
    minhash_signature,
    shingles_from_text,
)
from kbstore.base import CHUNKS, KnowledgeStore
from retrieval.results import ScoredChunk

log = get_logger(__name__)


class ApproximateMatcher:
    def __init__(
        self,
        store: KnowledgeStore,
        params: SignatureParams | None = None,
        scan_ceiling: int | None = None,
        threshold: float | None = None,
        top_n: int | None = None,
        priority_score: float | None = None,
    ):
        cfg = yaml_config.retrieval
        self.store = store
        self.params = params or SignatureParams.from_config()
        self.scan_ceiling = cfg.approx_scan_ceiling if scan_ceiling is None else scan_ceiling
        self.threshold = cfg.approx_threshold if threshold is None else threshold
        self.top_n = cfg.approx_top_n if top_n is None else top_n
        self.priority_score = cfg.approx_score if priority_score is None else priority_score

    def _candidates(
        self, total: int, candidate_ids: Optional[Iterable[str]]
    ) -> Iterator[Tuple[str, List[int]]]:
        if total < self.scan_ceiling:
            yield from self.store.scan_signatures()
            return
        if candidate_ids is None:
            log.debug("Corpus of %d chunks exceeds scan ceiling, skipping", total)
            return
        for chunk_id in dict.fromkeys(candidate_ids):
            sig = self.store.get_signature(chunk_id)
            if sig is not None:
                yield chunk_id, sig

    def similar(
        self, query_text: str, candidate_ids: Optional[Iterable[str]] = None
    ) -> List[Tuple[str, float]]:
        """(chunk_id, jaccard estimate) pairs above the threshold, best first."""
        shingles = shingles_from_text(query_text, self.params.shingle_size)
        if not shingles or self.top_n <= 0:
            return []
        qsig = minhash_signature(
            shingles, num_perm=self.params.num_perm, seed_base=self.params.seed_base
        )

        total = self.store.count(CHUNKS)
        if total == 0:
            return []
        hits: List[Tuple[str, float]] = []
        for chunk_id, sig in self._candidates(total, candidate_ids):
            est = jaccard_estimate(qsig, sig)
            if est > self.threshold:
                hits.append((chunk_id, est))
        hits.sort(key=lambda h: (-h[1], h[0]))
        return hits[: self.top_n]

    def match(
        self, query_text: str, candidate_ids: Optional[Iterable[str]] = None
    ) -> List[ScoredChunk]:
        try:
            hits = self.similar(query_text, candidate_ids)
            out: List[ScoredChunk] = []
            for chunk_id, est in hits:
                chunk = self.store.get_chunk(chunk_id)
                if not chunk:
                    continue
                log.debug("Approximate hit %s (jaccard ~ %.3f)", chunk_id, est)
                out.append(
                    ScoredChunk(
                        id=chunk_id,
                        title=chunk.get("title", ""),
                        text=chunk.get("text", ""),
                        score=self.priority_score,
                        source="approximate",
                    )
                )
            return out
        except StoreError as e:
            log.warning("Approximate search unavailable: %s", e)
            return []
