"""
Datasource embeddings — split a document into overlapping chunks and embed them.

Public surface
--------------
- :func:`split_and_embed` — main entry point, returns ordered :class:`EmbeddingRecord` s.
- :class:`SplitAndEmbedPipeline` — reusable pipeline bound to one :class:`Settings`.
- :class:`ConfigurationError`, :class:`EmbeddingServiceError` — failure modes.
"""

from datasource_embeddings.config import Settings
from datasource_embeddings.errors import (
    ConfigurationError,
    DatasourceEmbeddingsError,
    EmbeddingServiceError,
)
from datasource_embeddings.ingestion.models import Chunk, Document, EmbeddingRecord
from datasource_embeddings.pipeline import (
    SplitAndEmbedPipeline,
    split_and_embed,
    split_and_embed_sync,
)

__all__ = [
    "Chunk",
    "ConfigurationError",
    "DatasourceEmbeddingsError",
    "Document",
    "EmbeddingRecord",
    "EmbeddingServiceError",
    "Settings",
    "SplitAndEmbedPipeline",
    "split_and_embed",
    "split_and_embed_sync",
]
