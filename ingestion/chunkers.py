from __future__ import annotations

import re
from typing import List, Sequence

from common.config import yaml_config
from ingestion.document_models import ChunkRecord, RawDoc
from ingestion.normalizer import tokenize
from ingestion.signatures import SignatureParams, minhash_signature, shingles_from_text

_WS = re.compile(r"\s+")


def make_chunk_id(title: str, ordinal: int) -> str:
    """
    Stable chunk id from (title, ordinal), so re-importing a document
    overwrites its chunks instead of adding new ones.
    """
    return f"{_WS.sub('_', title.strip())}_{ordinal}"


def chunk_tokens(tokens: Sequence[str], window: int | None = None) -> List[str]:
    """
    Split a token stream into ceil(N / window) non-overlapping windows.
    The last window may be shorter.
    """
    if window is None:
        window = yaml_config.chunking.window
    if window < 1:
        raise ValueError("window must be >= 1")
    return [" ".join(tokens[i : i + window]) for i in range(0, len(tokens), window)]


def chunk_document(
    doc: RawDoc,
    window: int | None = None,
    params: SignatureParams | None = None,
    with_signatures: bool = True,
) -> List[ChunkRecord]:
    """
    Tokenize a document, cut it into windows and, unless disabled, attach the
    shingles and MinHash signature of every window.
    """
    params = params or SignatureParams.from_config()
    out: List[ChunkRecord] = []
    for i, piece in enumerate(chunk_tokens(tokenize(doc.text), window)):
        shingles = signature = None
        if with_signatures:
            shingle_set = shingles_from_text(piece, params.shingle_size)
            shingles = sorted(shingle_set)
            signature = minhash_signature(
                shingle_set, num_perm=params.num_perm, seed_base=params.seed_base
            )
        out.append(
            ChunkRecord(
                id=make_chunk_id(doc.title, i),
                title=doc.title,
                text=piece,
                shingles=shingles,
                signature=signature,
            )
        )
    return out
