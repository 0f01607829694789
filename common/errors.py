from __future__ import annotations

from typing import Any, Dict, List, Optional


class KnowledgeBaseError(Exception):
    """Base class for errors raised by the knowledge base."""


class PayloadError(KnowledgeBaseError, ValueError):
    """
    Raised when an ingestion payload is malformed.

    `index` is the position of the offending record (None when the payload
    as a whole is rejected) and `errors` holds pydantic's structured details.
    """

    def __init__(
        self,
        message: str,
        index: Optional[int] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(message)
        self.index = index
        self.errors = errors or []

    def to_dict(self) -> Dict[str, Any]:
        return {"message": str(self), "index": self.index, "errors": self.errors}


class StoreError(KnowledgeBaseError):
    """A persistence call failed (store unavailable, quota exceeded, ...)."""
