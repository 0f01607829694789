"""
Offline knowledge-base builder: a folder of plain-text documents in, a
chunk-record JSON array (with shingles and signatures precomputed) out.
"""

from __future__ import annotations

from pathlib import Path
from typing import List

import orjson
from tqdm import tqdm

from common.logger import get_logger
from ingestion.chunkers import chunk_document
from ingestion.document_models import ChunkRecord, RawDoc
from ingestion.signatures import SignatureParams

log = get_logger(__name__)

ALLOWED_EXTS = (".txt", ".md")


def discover_files(root: Path) -> List[Path]:
    """Supported text files directly under `root`, sorted by name."""
    return sorted(p for p in Path(root).iterdir() if p.is_file() and p.suffix.lower() in ALLOWED_EXTS)


def load_text_file(path: Path) -> RawDoc:
    txt = path.read_text(encoding="utf-8", errors="ignore")
    return RawDoc(title=path.stem, text=txt, metadata={"source": path.name, "type": "text"})


def build_records(
    input_dir: Path,
    window: int | None = None,
    params: SignatureParams | None = None,
) -> List[ChunkRecord]:
    params = params or SignatureParams.from_config()
    files = discover_files(input_dir)
    log.info("Discovered %d files", len(files))

    records: List[ChunkRecord] = []
    for f in tqdm(files, desc="Chunking files"):
        chunks = chunk_document(load_text_file(f), window=window, params=params)
        log.info("Processed %s -> %d chunks", f.name, len(chunks))
        records.extend(chunks)
    return records


def write_records(records: List[ChunkRecord], output_file: Path) -> Path:
    out = Path(output_file)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(
        orjson.dumps([r.model_dump() for r in records], option=orjson.OPT_INDENT_2)
    )
    log.info("Wrote %d chunks to %s", len(records), out)
    return out


def build_knowledge_base(
    input_dir: Path,
    output_file: Path,
    window: int | None = None,
    params: SignatureParams | None = None,
) -> int:
    """Build and write the chunk-record array. Returns the number of chunks."""
    records = build_records(input_dir, window=window, params=params)
    write_records(records, output_file)
    return len(records)
