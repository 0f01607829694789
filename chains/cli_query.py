from __future__ import annotations

import argparse

from chains.answerer import synthesize_answer
from common.config import yaml_config
from common.errors import PayloadError, StoreError
from common.logger import get_logger, set_log_level
from ingestion.ingest_pipeline import load_payload
from kbstore.memory_store import MemoryStore
from kbstore.sqlite_store import SQLiteStore
from retrieval.service import KnowledgeBaseService

log = get_logger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Query the local knowledge store (lexical + MinHash + dictionary)."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument(
        "--db_path", type=str, default=str(yaml_config.app.db_path), help="SQLite file"
    )
    parser.add_argument(
        "--kb_file",
        type=str,
        default=None,
        help="Query a chunk-record JSON file in memory instead of the SQLite store",
    )
    parser.add_argument("--k", type=int, default=yaml_config.retrieval.top_k)
    parser.add_argument(
        "--answer", action="store_true", help="Also print an extractive answer"
    )
    parser.add_argument("question", type=str, help="Your question")
    args = parser.parse_args(argv)
    if args.verbose:
        set_log_level("DEBUG")
    if args.k < 0:
        parser.error("--k must be non-negative")

    try:
        if args.kb_file:
            store = MemoryStore()
        else:
            store = SQLiteStore(args.db_path)
        with KnowledgeBaseService(store) as kb:
            if args.kb_file:
                kb.import_payload(load_payload(args.kb_file), batch_delay=0.0)
            results = kb.retrieve(args.question, top_k=args.k)
    except PayloadError as e:
        log.error("Invalid knowledge payload: %s", e)
        raise SystemExit(2)
    except StoreError as e:
        log.error("Knowledge store error: %s", e)
        raise SystemExit(3)

    if args.answer:
        answer = synthesize_answer(args.question, results)
        print("\n=== ANSWER ===\n")
        print(answer.answer)

    print("\n=== RESULTS ===\n")
    if not results:
        print("(no results)")
    for r in results:
        print(f"- [{r.score:.3f}] {r.title} ({r.id}, {r.source})")
        print(f"  snippet: {r.text[:200]}\n")


if __name__ == "__main__":
    main()
