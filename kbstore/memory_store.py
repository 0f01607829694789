from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Tuple

from common.errors import StoreError
from kbstore.base import CHUNKS, META, POSTINGS, SIGNATURES, KnowledgeStore


class MemoryStore(KnowledgeStore):
    """
    Dict-backed store for tests and throwaway sessions.
    Values are copied in and out so callers never share state with the store.
    """

    def __init__(self):
        self._tables: Dict[str, Dict[str, Any]] = {
            CHUNKS: {},
            POSTINGS: {},
            SIGNATURES: {},
            META: {},
        }

    def put_chunk(self, chunk_id: str, record: Dict[str, Any]) -> None:
        self._tables[CHUNKS][chunk_id] = copy.deepcopy(record)

    def get_chunk(self, chunk_id: str) -> Optional[Dict[str, Any]]:
        rec = self._tables[CHUNKS].get(chunk_id)
        return copy.deepcopy(rec) if rec is not None else None

    def put_posting(self, term: str, ids: Iterable[str]) -> None:
        self._tables[POSTINGS][term] = set(ids)

    def get_posting(self, term: str) -> Optional[Set[str]]:
        ids = self._tables[POSTINGS].get(term)
        return set(ids) if ids is not None else None

    def put_signature(self, chunk_id: str, signature: List[int]) -> None:
        self._tables[SIGNATURES][chunk_id] = list(signature)

    def get_signature(self, chunk_id: str) -> Optional[List[int]]:
        sig = self._tables[SIGNATURES].get(chunk_id)
        return list(sig) if sig is not None else None

    def scan_signatures(self) -> Iterator[Tuple[str, List[int]]]:
        for chunk_id, sig in list(self._tables[SIGNATURES].items()):
            yield chunk_id, list(sig)

    def count(self, store_name: str) -> int:
        if store_name not in self._tables:
            raise StoreError(f"Unknown store: {store_name}")
        return len(self._tables[store_name])

    def put_meta(self, key: str, value: Any) -> None:
        self._tables[META][key] = copy.deepcopy(value)

    def get_meta(self, key: str) -> Any:
        return copy.deepcopy(self._tables[META].get(key))

    def reset(self) -> None:
        for table in self._tables.values():
            table.clear()
