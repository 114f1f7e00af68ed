"""Document → chunks → embeddings orchestration."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from langchain_core.embeddings import Embeddings

from datasource_embeddings.config import Settings, get_settings
from datasource_embeddings.ingestion.chunker import SentenceChunker
from datasource_embeddings.ingestion.embedder import EmbeddingClient
from datasource_embeddings.ingestion.models import Chunk, Document, EmbeddingRecord

logger = logging.getLogger(__name__)


class SplitAndEmbedPipeline:
    """Stateless chunk-and-embed pipeline bound to one configuration.

    The chunker and embedding client are built eagerly so that invalid
    chunking parameters or backend settings raise
    :class:`~datasource_embeddings.errors.ConfigurationError` before any
    document is processed. A single instance can serve concurrent calls.

    Parameters
    ----------
    settings:
        Chunking and backend configuration. Read from the environment when
        omitted.
    embeddings:
        Optional LangChain ``Embeddings`` used instead of the backend named
        in *settings* (e.g. a fake in tests).
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        embeddings: Embeddings | None = None,
    ) -> None:
        self.settings = settings if settings is not None else get_settings()
        self.chunker = SentenceChunker(
            chunk_size=self.settings.chunk_size,
            chunk_overlap=self.settings.chunk_overlap,
        )
        self.client = EmbeddingClient.from_settings(self.settings, embeddings)

    def chunk(self, document: Document) -> list[Chunk]:
        """Return the ordered chunks of *document* without embedding them."""
        return self.chunker.chunk(document)

    async def run(self, document: Document) -> list[EmbeddingRecord]:
        """Chunk *document*, embed every chunk in one call, and pair the results.

        Either every chunk gets a record or an exception propagates; partial
        output is never returned.
        """
        chunks = self.chunk(document)
        if not chunks:
            logger.info("Document produced no chunks; skipping embedding call")
            return []

        embed_texts = [chunk.embed_view for chunk in chunks]
        store_texts = [chunk.store_view for chunk in chunks]
        embeddings = await self.client.aembed(embed_texts)

        return [
            EmbeddingRecord(text=text, embedding=embedding)
            for text, embedding in zip(store_texts, embeddings, strict=True)
        ]


async def split_and_embed(
    document: str,
    *,
    settings: Settings | None = None,
    embeddings: Embeddings | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> list[EmbeddingRecord]:
    """Split *document* into overlapping chunks and embed them.

    Parameters
    ----------
    document:
        Raw document text.
    settings:
        Chunking and backend configuration; defaults to the environment.
    embeddings:
        Optional backend override.
    metadata:
        Optional document metadata, included in the embedded text of every
        chunk but not in the returned ``text``.

    Returns
    -------
    list[EmbeddingRecord]
        One record per chunk, in document order.
    """
    pipeline = SplitAndEmbedPipeline(settings, embeddings=embeddings)
    return await pipeline.run(Document(text=document, metadata=dict(metadata or {})))


def split_and_embed_sync(document: str, **kwargs: Any) -> list[EmbeddingRecord]:
    """Blocking variant of :func:`split_and_embed`."""
    return asyncio.run(split_and_embed(document, **kwargs))
