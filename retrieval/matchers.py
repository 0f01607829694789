"""
Dictionary path: exact / near-exact lookups in a small curated knowledge
dictionary, tried before any index is touched.

Each matcher is a plain strategy object tagged with `kind` and exposing
`try_match(normalized_query) -> ScoredChunk | None`. `DictionaryMatchers`
evaluates them in priority order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Protocol, Sequence

import yaml

from common.config import yaml_config
from common.logger import get_logger
from ingestion.normalizer import normalize_text
from retrieval.results import ScoredChunk

log = get_logger(__name__)

MAX_EDIT_DISTANCE = 2
MIN_FUZZY_LENGTH = 4


def levenshtein(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        curr = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            curr.append(min(prev[j] + 1, curr[j - 1] + 1, prev[j - 1] + cost))
        prev = curr
    return prev[-1]


def title_case(s: str) -> str:
    return " ".join(w[:1].upper() + w[1:] for w in s.split(" "))


def find_key(query: str, keys: Sequence[str]) -> Optional[str]:
    """
    Resolve a normalized query to a dictionary key: exact match, then a key
    appearing as whole words inside the query, then the closest key within
    MAX_EDIT_DISTANCE of the whole query (queries of MIN_FUZZY_LENGTH+ only).
    """
    if not query or not keys:
        return None
    if query in keys:
        return query
    padded = f" {query} "
    for k in keys:
        if f" {k} " in padded:
            return k
    if len(query) < MIN_FUZZY_LENGTH:
        return None
    best, best_d = None, MAX_EDIT_DISTANCE + 1
    for k in keys:
        d = levenshtein(query, k)
        if d < best_d:
            best, best_d = k, d
    return best


@dataclass
class KnowledgeDictionary:
    entities: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    topics: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "KnowledgeDictionary":
        return cls(
            entities={
                normalize_text(k): dict(v or {}) for k, v in (raw.get("entities") or {}).items()
            },
            topics={normalize_text(k): str(v) for k, v in (raw.get("topics") or {}).items()},
        )

    @classmethod
    def load(cls, path: Path | None = None) -> "KnowledgeDictionary":
        path = Path(path or yaml_config.dictionary.path)
        if not path.exists():
            log.warning("Knowledge dictionary not found at %s, using an empty one", path)
            return cls()
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(yaml.safe_load(f) or {})


class Matcher(Protocol):
    kind: str

    def try_match(self, query: str) -> Optional[ScoredChunk]: ...


@dataclass
class EntityMatcher:
    entities: Dict[str, Dict[str, Any]]
    score: float = 999.0
    max_attributes: int = 4
    kind: Literal["entity"] = "entity"

    def try_match(self, query: str) -> Optional[ScoredChunk]:
        key = find_key(query, list(self.entities))
        if key is None:
            return None
        attrs = [(k, v) for k, v in self.entities[key].items() if k != "type"]
        blurb = "; ".join(f"{title_case(str(k))}: {v}" for k, v in attrs[: self.max_attributes])
        return ScoredChunk(
            id=f"entity:{key}",
            title=title_case(key),
            text=blurb,
            score=self.score,
            source="dictionary",
        )


@dataclass
class TopicMatcher:
    topics: Dict[str, str]
    score: float = 998.0
    kind: Literal["topic"] = "topic"

    def try_match(self, query: str) -> Optional[ScoredChunk]:
        key = find_key(query, list(self.topics))
        if key is None:
            return None
        return ScoredChunk(
            id=f"topic:{key}",
            title=title_case(key),
            text=self.topics[key],
            score=self.score,
            source="dictionary",
        )


class DictionaryMatchers:
    """Ordered matcher capabilities, highest priority first."""

    def __init__(self, matchers: Sequence[Matcher]):
        self.matchers = list(matchers)

    @classmethod
    def from_dictionary(
        cls,
        kd: KnowledgeDictionary,
        entity_score: float | None = None,
        topic_score: float | None = None,
    ) -> "DictionaryMatchers":
        cfg = yaml_config.retrieval
        if entity_score is None:
            entity_score = cfg.entity_score
        if topic_score is None:
            topic_score = cfg.topic_score
        return cls(
            [
                EntityMatcher(kd.entities, score=entity_score),
                TopicMatcher(kd.topics, score=topic_score),
            ]
        )

    def match_all(self, query: str) -> List[ScoredChunk]:
        hits = []
        for m in self.matchers:
            hit = m.try_match(query)
            if hit is not None:
                hits.append(hit)
        return hits
