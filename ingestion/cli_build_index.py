from __future__ import annotations

import argparse
from pathlib import Path

from common.logger import get_logger, set_log_level
from ingestion.kb_builder import build_knowledge_base

log = get_logger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Build a chunk-record JSON file (with MinHash signatures) from a folder of text files."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument(
        "--input_dir", type=str, default="data/docs", help="Folder with TXT/MD files"
    )
    parser.add_argument(
        "--output_file",
        type=str,
        default="data/chunks.json",
        help="Where to write the chunk-record array",
    )
    parser.add_argument(
        "--window", type=int, default=None, help="Tokens per chunk (default from config)"
    )
    args = parser.parse_args(argv)
    if args.verbose:
        set_log_level("DEBUG")

    input_dir = Path(args.input_dir)
    if not input_dir.is_dir():
        log.error("Input directory does not exist: %s", input_dir)
        raise SystemExit(1)

    build_knowledge_base(input_dir, Path(args.output_file), window=args.window)


if __name__ == "__main__":
    main()
