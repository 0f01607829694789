from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Tuple

CHUNKS = "chunks"
POSTINGS = "postings"
SIGNATURES = "signatures"
META = "meta"
STORE_NAMES = (CHUNKS, POSTINGS, SIGNATURES, META)


class KnowledgeStore(ABC):
    """
    Persistence for chunks, postings, signatures and corpus metadata.

    Every call is atomic for a single record and raises
    `common.errors.StoreError` when the backend fails.
    """

    @abstractmethod
    def put_chunk(self, chunk_id: str, record: Dict[str, Any]) -> None: ...

    @abstractmethod
    def get_chunk(self, chunk_id: str) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    def put_posting(self, term: str, ids: Iterable[str]) -> None: ...

    @abstractmethod
    def get_posting(self, term: str) -> Optional[Set[str]]: ...

    @abstractmethod
    def put_signature(self, chunk_id: str, signature: List[int]) -> None: ...

    @abstractmethod
    def get_signature(self, chunk_id: str) -> Optional[List[int]]: ...

    @abstractmethod
    def scan_signatures(self) -> Iterator[Tuple[str, List[int]]]: ...

    @abstractmethod
    def count(self, store_name: str) -> int: ...

    @abstractmethod
    def put_meta(self, key: str, value: Any) -> None: ...

    @abstractmethod
    def get_meta(self, key: str) -> Any: ...

    @abstractmethod
    def reset(self) -> None:
        """Drop every record from every store."""

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
