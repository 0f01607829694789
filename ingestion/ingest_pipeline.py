from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Sequence

import orjson
from pydantic import ValidationError

from common.errors import PayloadError, StoreError
from common.logger import get_logger
from ingestion.document_models import ChunkRecord
from ingestion.scheduler import Batch, BatchScheduler
from ingestion.signatures import SignatureParams, minhash_signature, shingles_from_text
from kbstore.base import KnowledgeStore
from retrieval.lexical import InvertedIndex

log = get_logger(__name__)

CORPUS_META_KEY = "corpus"


@dataclass
class ImportReport:
    imported: int = 0
    batches: int = 0
    computed_signatures: int = 0
    posting_failures: int = 0
    signature_failures: int = 0
    failed_ids: List[str] = field(default_factory=list)


def load_payload(path: Path) -> Any:
    """Read a chunk-record JSON file written by the offline builder."""
    try:
        return orjson.loads(Path(path).read_bytes())
    except orjson.JSONDecodeError as e:
        raise PayloadError(f"{path} is not valid JSON: {e}") from e


def validate_record(raw: Any, index: int, params: SignatureParams) -> ChunkRecord:
    try:
        rec = ChunkRecord.model_validate(raw)
    except ValidationError as e:
        raise PayloadError(
            f"Invalid chunk record at index {index}",
            index=index,
            errors=e.errors(include_url=False, include_context=False),
        ) from e
    if rec.signature is not None and len(rec.signature) != params.num_perm:
        raise PayloadError(
            f"Chunk {rec.id!r} has a signature of length {len(rec.signature)}, "
            f"expected {params.num_perm}",
            index=index,
        )
    return rec


def _import_record(
    store: KnowledgeStore,
    index: InvertedIndex,
    rec: ChunkRecord,
    params: SignatureParams,
    report: ImportReport,
) -> None:
    if rec.signature is None:
        shingles = set(rec.shingles) if rec.shingles is not None else shingles_from_text(
            rec.text, params.shingle_size
        )
        rec = rec.model_copy(
            update={
                "shingles": sorted(shingles),
                "signature": minhash_signature(
                    shingles, num_perm=params.num_perm, seed_base=params.seed_base
                ),
            }
        )
        report.computed_signatures += 1
    elif rec.shingles is None:
        rec = rec.model_copy(
            update={"shingles": sorted(shingles_from_text(rec.text, params.shingle_size))}
        )

    previous = store.get_chunk(rec.id)
    # chunk writes are not best-effort: a failure here aborts the import
    store.put_chunk(rec.id, rec.to_store())

    failures = index.import_chunk(
        rec.id, rec.text, previous_text=previous.get("text") if previous else None
    )
    report.posting_failures += failures

    try:
        store.put_signature(rec.id, rec.signature)
    except StoreError as e:
        report.signature_failures += 1
        log.warning("Signature write failed for %s: %s", rec.id, e)

    if failures:
        report.failed_ids.append(rec.id)
    report.imported += 1


def _record_import(store: KnowledgeStore, report: ImportReport) -> None:
    meta: Dict[str, Any] = {
        "imported_chunks": report.imported,
        "last_import": datetime.now(timezone.utc).isoformat(),
    }
    try:
        store.put_meta(CORPUS_META_KEY, meta)
    except StoreError as e:
        log.warning("Could not record corpus metadata: %s", e)


def import_chunks(
    store: KnowledgeStore,
    payload: Any,
    *,
    params: SignatureParams | None = None,
    scheduler: BatchScheduler | None = None,
    index: InvertedIndex | None = None,
) -> ImportReport:
    """
    Import an array of chunk records in bounded batches.

    Records are validated batch by batch, so a malformed record raises
    PayloadError after earlier batches were committed (no rollback).
    Records without a signature get one computed here.
    """
    if not isinstance(payload, Sequence) or isinstance(payload, (str, bytes)):
        raise PayloadError("Knowledge payload must be an array of chunk records")

    params = params or SignatureParams.from_config()
    scheduler = scheduler or BatchScheduler()
    index = index or InvertedIndex(store)
    report = ImportReport()

    def handle(batch: Batch) -> None:
        records = [
            validate_record(raw, batch.start + i, params) for i, raw in enumerate(batch.items)
        ]
        for rec in records:
            _import_record(store, index, rec, params, report)
        report.batches += 1
        log.debug("Imported batch %d (%d records)", batch.index, len(records))

    try:
        scheduler.run(payload, handle, desc="Importing chunks")
    finally:
        # earlier batches stay committed when a later one fails
        _record_import(store, report)

    log.info(
        "Import complete: %d chunks in %d batches (%d signatures computed, "
        "%d posting failures, %d signature failures)",
        report.imported,
        report.batches,
        report.computed_signatures,
        report.posting_failures,
        report.signature_failures,
    )
    return report
