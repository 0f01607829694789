from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

MAX_UINT32 = 0xFFFFFFFF


def _check_utf8(s: str) -> None:
    # lone surrogates cannot be hashed or stored
    try:
        s.encode("utf-8")
    except UnicodeEncodeError as e:
        raise ValueError(f"string is not valid unicode: {e.reason}") from e


@dataclass
class RawDoc:
    title: str  # document title, also the chunk id prefix
    text: str  # full raw text
    metadata: Dict[str, Any] = field(default_factory=dict)  # { "source": "...", "type": "text" }


class ChunkRecord(BaseModel):
    """One entry of the chunk-record array exchanged by builder and importer."""

    id: str = Field(min_length=1)
    title: str
    text: str
    shingles: Optional[List[str]] = None
    signature: Optional[List[int]] = None

    @field_validator("id", "title", "text")
    @classmethod
    def _encodable_text(cls, v: str) -> str:
        _check_utf8(v)
        return v

    @field_validator("shingles")
    @classmethod
    def _encodable_shingles(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is not None:
            for s in v:
                _check_utf8(s)
        return v

    @field_validator("signature")
    @classmethod
    def _uint32_channels(cls, v: Optional[List[int]]) -> Optional[List[int]]:
        if v is not None:
            for x in v:
                if x < 0 or x > MAX_UINT32:
                    raise ValueError(f"signature value {x} is not an unsigned 32-bit integer")
        return v

    def to_store(self) -> Dict[str, Any]:
        return self.model_dump()
