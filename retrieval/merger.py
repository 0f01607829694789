from __future__ import annotations

from typing import Dict, Iterable, List

from retrieval.results import ScoredChunk


def merge_results(result_lists: Iterable[Iterable[ScoredChunk]], top_k: int) -> List[ScoredChunk]:
    """
    Deduplicate by id keeping the highest score seen for each id, then order
    by score (descending) and id (ascending) and cut to `top_k`.
    """
    best: Dict[str, ScoredChunk] = {}
    for results in result_lists:
        for r in results:
            if r is None:
                continue
            cur = best.get(r.id)
            if cur is None or r.score > cur.score:
                best[r.id] = r
    merged = sorted(best.values(), key=lambda r: (-r.score, r.id))
    return merged[: max(0, top_k)]
