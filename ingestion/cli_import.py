from __future__ import annotations

import argparse
from pathlib import Path

from common.config import yaml_config
from common.errors import PayloadError, StoreError
from common.logger import get_logger, set_log_level
from ingestion.ingest_pipeline import load_payload
from kbstore.sqlite_store import SQLiteStore
from retrieval.service import KnowledgeBaseService

log = get_logger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Import a chunk-record JSON file into the local knowledge store."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("kb_file", type=str, help="Chunk-record JSON array")
    parser.add_argument(
        "--db_path", type=str, default=str(yaml_config.app.db_path), help="SQLite file"
    )
    parser.add_argument("--batch_size", type=int, default=None)
    parser.add_argument(
        "--reset", action="store_true", help="Empty the store before importing"
    )
    args = parser.parse_args(argv)
    if args.verbose:
        set_log_level("DEBUG")

    kb_file = Path(args.kb_file)
    if not kb_file.exists():
        log.error("Knowledge file does not exist: %s", kb_file)
        raise SystemExit(1)

    try:
        with KnowledgeBaseService(SQLiteStore(args.db_path)) as kb:
            if args.reset:
                kb.reset()
            report = kb.import_payload(
                load_payload(kb_file), batch_size=args.batch_size, show_progress=True
            )
            stats = kb.stats()
    except PayloadError as e:
        log.error("Import failed: %s (index=%s) %s", e, e.index, e.errors)
        raise SystemExit(2)
    except StoreError as e:
        log.error("Knowledge store error: %s", e)
        raise SystemExit(3)

    print(
        f"KB import completed: {report.imported} chunks added "
        f"({stats.total_chunks} chunks in store, last import {stats.last_import})."
    )


if __name__ == "__main__":
    main()
