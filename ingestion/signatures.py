"""
Shingling and MinHash signatures.

A signature is K per-channel minima of a seeded 32-bit hash over a chunk's
character shingles. The fraction of equal channels between two signatures
estimates the Jaccard similarity of the underlying shingle sets, so chunks
and queries must be signed with the same k, K and seed base.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Set

from common.config import yaml_config
from ingestion.hash_utils import MASK32, code_units, mix32
from ingestion.normalizer import normalize_text

MAX_HASH = MASK32


@dataclass(frozen=True)
class SignatureParams:
    shingle_size: int = 5
    num_perm: int = 128
    seed_base: int = 0x9E3779B9

    @classmethod
    def from_config(cls) -> "SignatureParams":
        sig = yaml_config.signature
        return cls(
            shingle_size=sig.shingle_size,
            num_perm=sig.num_perm,
            seed_base=sig.seed_base,
        )


def shingles_from_text(text: str, k: int = 5) -> Set[str]:
    """All length-k substrings of the normalized text."""
    s = normalize_text(text)
    return {s[i : i + k] for i in range(len(s) - k + 1)}


def minhash_signature(
    shingles: Iterable[str], num_perm: int = 128, seed_base: int = 0x9E3779B9
) -> List[int]:
    """
    Per-channel minimum of hash32(shingle, seed_base ^ channel).
    No shingles gives the all-MAX_HASH signature.
    """
    seeds = [(seed_base ^ i) & MASK32 for i in range(num_perm)]
    sig = [MAX_HASH] * num_perm
    for s in shingles:
        units = code_units(s)
        for i, seed in enumerate(seeds):
            h = mix32(units, seed)
            if h < sig[i]:
                sig[i] = h
    return sig


def signature_for_text(text: str, params: SignatureParams | None = None) -> List[int]:
    params = params or SignatureParams.from_config()
    return minhash_signature(
        shingles_from_text(text, params.shingle_size),
        num_perm=params.num_perm,
        seed_base=params.seed_base,
    )


def jaccard_estimate(sig_a: Sequence[int] | None, sig_b: Sequence[int] | None) -> float:
    """Share of equal channels. Missing or mismatched signatures score 0."""
    if not sig_a or not sig_b or len(sig_a) != len(sig_b):
        return 0.0
    same = sum(1 for a, b in zip(sig_a, sig_b) if a == b)
    return same / len(sig_a)
