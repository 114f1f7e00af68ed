"""
Ingestion — sentence splitting, chunk assembly, and embedding.

This module converts one raw text document into ordered, overlapping
chunks and embeds them with the configured backend.
"""

from datasource_embeddings.ingestion.chunker import SentenceChunker, chunk_document
from datasource_embeddings.ingestion.embedder import EmbeddingClient, get_embedding_function
from datasource_embeddings.ingestion.models import (
    Chunk,
    Document,
    EmbeddingRecord,
    MetadataMode,
    Span,
)
from datasource_embeddings.ingestion.splitter import SentenceSplitter, SpanSequence

__all__ = [
    "Chunk",
    "Document",
    "EmbeddingClient",
    "EmbeddingRecord",
    "MetadataMode",
    "SentenceChunker",
    "SentenceSplitter",
    "Span",
    "SpanSequence",
    "chunk_document",
    "get_embedding_function",
]
