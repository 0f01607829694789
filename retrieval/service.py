from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from common.config import GlobalYAMLConfig, yaml_config
from common.errors import StoreError
from common.logger import get_logger
from ingestion.ingest_pipeline import CORPUS_META_KEY, ImportReport, import_chunks
from ingestion.normalizer import normalize_text
from ingestion.scheduler import BatchScheduler
from ingestion.signatures import SignatureParams
from kbstore.base import CHUNKS, SIGNATURES, KnowledgeStore
from retrieval.approximate import ApproximateMatcher
from retrieval.lexical import InvertedIndex
from retrieval.matchers import DictionaryMatchers, KnowledgeDictionary
from retrieval.merger import merge_results
from retrieval.results import ScoredChunk

log = get_logger(__name__)


@dataclass(frozen=True)
class CorpusStats:
    total_chunks: int
    total_signatures: int
    last_import: Optional[str]


class KnowledgeBaseService:
    """
    Owns one knowledge store and the indexes over it.

    Construct one per corpus and pass it to whoever needs to import or
    query; `reset()` empties the corpus and `close()` releases the store.
    Imports must not run concurrently with each other.
    """

    def __init__(
        self,
        store: KnowledgeStore,
        *,
        config: GlobalYAMLConfig | None = None,
        dictionary: Optional[KnowledgeDictionary] = None,
    ):
        self.config = config or yaml_config
        self.store = store
        sig = self.config.signature
        self.params = SignatureParams(
            shingle_size=sig.shingle_size, num_perm=sig.num_perm, seed_base=sig.seed_base
        )
        retr = self.config.retrieval
        self.index = InvertedIndex(store, shortlist_factor=retr.shortlist_factor)
        self.approx = ApproximateMatcher(
            store,
            params=self.params,
            scan_ceiling=retr.approx_scan_ceiling,
            threshold=retr.approx_threshold,
            top_n=retr.approx_top_n,
            priority_score=retr.approx_score,
        )
        if dictionary is None and self.config.dictionary.enabled:
            dictionary = KnowledgeDictionary.load(self.config.dictionary.path)
        self.dictionary = dictionary or KnowledgeDictionary()
        self.matchers = DictionaryMatchers.from_dictionary(
            self.dictionary, entity_score=retr.entity_score, topic_score=retr.topic_score
        )

    def import_payload(
        self,
        payload: Any,
        *,
        batch_size: int | None = None,
        batch_delay: float | None = None,
        show_progress: bool = False,
    ) -> ImportReport:
        ing = self.config.ingestion
        scheduler = BatchScheduler(
            batch_size=batch_size or ing.batch_size,
            delay=ing.batch_delay if batch_delay is None else batch_delay,
            show_progress=show_progress,
        )
        return import_chunks(
            self.store, payload, params=self.params, scheduler=scheduler, index=self.index
        )

    def retrieve(self, query: str, top_k: int | None = None) -> List[ScoredChunk]:
        """
        Rank chunks for a free-text query: dictionary hits, lexical hits and
        approximate hits merged by id. Empty when the query normalizes to
        nothing.
        """
        if top_k is None:
            top_k = self.config.retrieval.top_k
        if top_k < 0:
            raise ValueError(f"top_k must be non-negative, got {top_k}")
        qnorm = normalize_text(query)
        if not qnorm:
            return []

        dictionary_hits = self.matchers.match_all(qnorm)
        lexical_hits = self.index.search(qnorm.split(), top_k=top_k)
        approx_hits = self.approx.match(qnorm, candidate_ids=[h.id for h in lexical_hits])
        log.debug(
            "Query %r: %d dictionary, %d lexical, %d approximate",
            qnorm,
            len(dictionary_hits),
            len(lexical_hits),
            len(approx_hits),
        )
        return merge_results([dictionary_hits, lexical_hits, approx_hits], top_k)

    def stats(self) -> CorpusStats:
        meta = self.store.get_meta(CORPUS_META_KEY) or {}
        return CorpusStats(
            total_chunks=self.store.count(CHUNKS),
            total_signatures=self.store.count(SIGNATURES),
            last_import=meta.get("last_import"),
        )

    def reset(self) -> None:
        self.store.reset()
        log.info("Knowledge base reset")

    def close(self) -> None:
        try:
            self.store.close()
        except StoreError as e:
            log.warning("Error while closing store: %s", e)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
