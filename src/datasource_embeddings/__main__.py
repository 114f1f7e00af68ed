"""Command-line entry point — chunk (and optionally embed) one text document.

Writes one JSON object per line to stdout::

    {"chunk_index": 0, "text": "...", "embedding": [...], "embedding_dim": 1536}

With ``--chunks-only`` no backend is contacted and each line carries the
chunk offsets instead of the vector::

    {"chunk_index": 0, "text": "...", "start_char": 0, "end_char": 487, "overlap": 0}
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from datasource_embeddings.config import get_settings
from datasource_embeddings.ingestion.chunker import SentenceChunker
from datasource_embeddings.ingestion.models import Document
from datasource_embeddings.pipeline import SplitAndEmbedPipeline

log = logging.getLogger("datasource_embeddings")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="datasource-embeddings",
        description="Split a document into overlapping chunks and embed them",
    )
    parser.add_argument("path", nargs="?", help="Text file to read (default: stdin)")
    parser.add_argument("--chunk-size", type=int, help="Override DATASOURCES_CHUNK_SIZE")
    parser.add_argument("--chunk-overlap", type=int, help="Override DATASOURCES_CHUNK_OVERLAP")
    parser.add_argument(
        "--chunks-only",
        action="store_true",
        help="Only print chunks; do not call the embedding backend",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        stream=sys.stderr,
    )

    overrides = {}
    if args.chunk_size is not None:
        overrides["chunk_size"] = args.chunk_size
    if args.chunk_overlap is not None:
        overrides["chunk_overlap"] = args.chunk_overlap
    settings = get_settings().model_copy(update=overrides)

    if args.path:
        with open(args.path, encoding="utf-8") as fh:
            text = fh.read()
    else:
        text = sys.stdin.read()
    document = Document(text=text)

    if args.chunks_only:
        chunker = SentenceChunker(
            chunk_size=settings.chunk_size, chunk_overlap=settings.chunk_overlap
        )
        for chunk in chunker.chunk(document):
            sys.stdout.write(
                json.dumps(
                    {
                        "chunk_index": chunk.index,
                        "text": chunk.store_view,
                        "start_char": chunk.start_char,
                        "end_char": chunk.end_char,
                        "overlap": chunk.overlap,
                    },
                    ensure_ascii=False,
                )
                + "\n"
            )
        return 0

    pipeline = SplitAndEmbedPipeline(settings)
    records = asyncio.run(pipeline.run(document))
    for idx, record in enumerate(records):
        sys.stdout.write(
            json.dumps(
                {
                    "chunk_index": idx,
                    "text": record.text,
                    "embedding": record.embedding,
                    "embedding_dim": record.dimensions,
                },
                ensure_ascii=False,
            )
            + "\n"
        )
    log.info("Wrote %d records", len(records))
    return 0


if __name__ == "__main__":
    sys.exit(main())
