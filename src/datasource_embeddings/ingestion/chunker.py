"""Text chunking strategies."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from langchain_text_splitters import TextSplitter

from datasource_embeddings.ingestion.models import Chunk, Document, MetadataMode, Span
from datasource_embeddings.ingestion.splitter import SentenceSplitter, validate_chunk_params

logger = logging.getLogger(__name__)


class SentenceChunker(TextSplitter):
    """Pack sentence spans into bounded, overlapping chunks.

    Sizes are measured in characters. Spans are appended greedily while the
    chunk stays within ``chunk_size``. When a chunk is emitted, the next one
    starts with a suffix of it no longer than ``chunk_overlap``:

    1. the longest run of whole trailing sentences that fits, otherwise
    2. the last ``chunk_overlap`` characters, moved forward to the next word
       start when the cut lands inside a word.

    If that overlap plus the incoming span would exceed ``chunk_size`` (only
    possible with ``split_long_sentences=False``) the overlap is dropped.

    Only the store view is bounded. When the document carries embeddable
    metadata, each embed view is the metadata header plus the store view and
    may be longer than ``chunk_size``.

    Parameters
    ----------
    chunk_size:
        Maximum number of characters per chunk.
    chunk_overlap:
        Maximum number of characters shared by consecutive chunks.
    split_long_sentences:
        Forwarded to :class:`SentenceSplitter`.
    """

    def __init__(
        self,
        chunk_size: int = 512,
        chunk_overlap: int = 20,
        *,
        split_long_sentences: bool = True,
        **kwargs: Any,
    ) -> None:
        validate_chunk_params(chunk_size, chunk_overlap)
        super().__init__(chunk_size=chunk_size, chunk_overlap=chunk_overlap, **kwargs)
        self.sentence_splitter = SentenceSplitter(
            chunk_size, chunk_overlap, split_long_sentences=split_long_sentences
        )

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def chunk_overlap(self) -> int:
        return self._chunk_overlap

    def split_text(self, text: str) -> list[str]:
        """Return the store view of every chunk of *text*."""
        return [chunk.store_view for chunk in self.chunk(Document(text=text))]

    def chunk(self, document: Document) -> list[Chunk]:
        """Split *document* into ordered :class:`Chunk` objects."""
        text = document.text
        chunks = []
        for index, (start, end, overlap) in enumerate(
            self._assemble(text, self.sentence_splitter.spans(text))
        ):
            store_view = document.render(text[start:end], MetadataMode.NONE)
            chunks.append(
                Chunk(
                    embed_view=document.render(store_view, MetadataMode.EMBED),
                    store_view=store_view,
                    index=index,
                    start_char=start,
                    end_char=end,
                    overlap=overlap,
                )
            )
        logger.info("Split %d chars into %d chunks", len(text), len(chunks))
        return chunks

    # -- assembly ---------------------------------------------------------

    def _assemble(self, text: str, spans: Iterable[Span]) -> Iterator[tuple[int, int, int]]:
        """Yield ``(start, end, overlap)`` for each chunk, in document order."""
        start = end = overlap = 0
        members: list[Span] = []
        has_new_content = False

        for span in spans:
            if has_new_content and span.end - start > self._chunk_size:
                logger.debug("Chunk [%d, %d) closed, overlap=%d", start, end, overlap)
                yield start, end, overlap
                start = self._next_start(text, start, end, members, span)
                overlap = end - start
                members = [m for m in members if m.start >= start]
            members.append(span)
            end = span.end
            has_new_content = True

        if has_new_content:
            yield start, end, overlap

    def _next_start(
        self, text: str, start: int, end: int, members: list[Span], incoming: Span
    ) -> int:
        """Pick where the chunk after ``[start, end)`` begins."""
        candidates = [
            m.start for m in members if start < m.start and end - m.start <= self._chunk_overlap
        ]
        if not candidates:
            tail = self._word_aligned_tail(text, start, end)
            if tail is not None:
                candidates = [tail]
        for candidate in candidates:
            if incoming.end - candidate <= self._chunk_size:
                return candidate
        return end

    def _word_aligned_tail(self, text: str, start: int, end: int) -> int | None:
        if self._chunk_overlap == 0:
            return None
        cut = max(end - self._chunk_overlap, start + 1)
        if cut >= end:
            return None
        if _is_word_start(text, cut):
            return cut
        for i in range(cut + 1, end):
            if _is_word_start(text, i):
                return i
        return cut


def _is_word_start(text: str, i: int) -> bool:
    return not text[i].isspace() and (i == 0 or text[i - 1].isspace())


def chunk_document(
    document: Document,
    chunk_size: int = 512,
    chunk_overlap: int = 20,
) -> list[Chunk]:
    """Split *document* into overlapping chunks for embedding.

    Parameters
    ----------
    document:
        The document to split.
    chunk_size:
        Maximum number of characters per chunk.
    chunk_overlap:
        Number of overlapping characters between consecutive chunks.

    Returns
    -------
    list[Chunk]
        Chunks ready for embedding, in document order.
    """
    return SentenceChunker(chunk_size=chunk_size, chunk_overlap=chunk_overlap).chunk(document)
