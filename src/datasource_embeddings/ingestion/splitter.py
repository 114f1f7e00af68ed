"""Sentence-level splitting with a forced fallback for over-long sentences."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator

from datasource_embeddings.errors import ConfigurationError
from datasource_embeddings.ingestion.models import Span

logger = logging.getLogger(__name__)

# Terminal punctuation (optionally closed by quotes/brackets) followed by
# whitespace, or a blank line. The whitespace stays with the preceding span.
_SENTENCE_BOUNDARY = re.compile(r"""[.!?]+["'”’)\]]*\s+|\n[ \t]*\n\s*""")


def validate_chunk_params(chunk_size: int, chunk_overlap: int) -> None:
    """Raise :class:`ConfigurationError` unless ``0 <= chunk_overlap < chunk_size``."""
    if chunk_size <= 0:
        raise ConfigurationError(f"chunk_size ({chunk_size}) must be > 0")
    if chunk_overlap < 0:
        raise ConfigurationError(f"chunk_overlap ({chunk_overlap}) must be >= 0")
    if chunk_overlap >= chunk_size:
        raise ConfigurationError(
            f"chunk_overlap ({chunk_overlap}) must be < chunk_size ({chunk_size})"
        )


class SpanSequence:
    """Lazy, restartable view over the spans of one text.

    Each call to ``iter()`` rescans the text, so the sequence can be consumed
    any number of times and always yields the same spans.
    """

    def __init__(self, text: str, max_span_length: int | None) -> None:
        self.text = text
        self.max_span_length = max_span_length

    def __iter__(self) -> Iterator[Span]:
        for span in self._sentences():
            if self.max_span_length is not None and len(span) > self.max_span_length:
                logger.debug(
                    "Force-splitting %d-char sentence at offset %d", len(span), span.start
                )
                yield from self._force_split(span)
            else:
                yield span

    def _sentences(self) -> Iterator[Span]:
        text = self.text
        if not text.strip():
            return
        start = 0
        for match in _SENTENCE_BOUNDARY.finditer(text):
            end = match.end()
            # Leading blank lines are folded into the first real sentence.
            if not text[start:end].strip():
                continue
            yield Span(start=start, end=end)
            start = end
        if start < len(text):
            yield Span(start=start, end=len(text))

    def _force_split(self, span: Span) -> Iterator[Span]:
        assert self.max_span_length is not None
        limit = self.max_span_length
        pos = span.start
        while span.end - pos > limit:
            cut = _word_break(self.text, pos, pos + limit)
            yield Span(start=pos, end=cut)
            pos = cut
        if pos < span.end:
            yield Span(start=pos, end=span.end)


def _word_break(text: str, start: int, limit_end: int) -> int:
    """Return the last word start in ``(start, limit_end]``, or *limit_end* if none."""
    for i in range(limit_end, start, -1):
        if text[i - 1].isspace() and not text[i].isspace():
            return i
    return limit_end


class SentenceSplitter:
    """Divide text into ordered, gap-free sentence spans.

    Parameters
    ----------
    chunk_size:
        Maximum characters per downstream chunk.
    chunk_overlap:
        Characters of shared context the chunker may prepend to a span.
    split_long_sentences:
        When ``True`` (default) any sentence longer than
        ``chunk_size - chunk_overlap`` is cut into pieces of at most that
        length, so overlap plus one span always fits in a chunk.
    """

    def __init__(
        self,
        chunk_size: int = 512,
        chunk_overlap: int = 20,
        *,
        split_long_sentences: bool = True,
    ) -> None:
        validate_chunk_params(chunk_size, chunk_overlap)
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.split_long_sentences = split_long_sentences

    @property
    def max_span_length(self) -> int | None:
        if not self.split_long_sentences:
            return None
        return self.chunk_size - self.chunk_overlap

    def spans(self, text: str) -> SpanSequence:
        """Return the (lazy) span sequence covering *text*."""
        return SpanSequence(text, self.max_span_length)

    def split_text(self, text: str) -> list[str]:
        """Return the text of every span, in order."""
        return [span.text(text) for span in self.spans(text)]
