"""Domain models flowing through the chunk-and-embed pipeline."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MetadataMode(str, Enum):
    """Which content view of a document or chunk to render."""

    EMBED = "embed"
    NONE = "none"


class Document(BaseModel):
    """Raw input text plus optional metadata — the unit of work.

    Attributes
    ----------
    text:
        Full document text. Chunk offsets index into this string.
    metadata:
        Arbitrary key/value pairs. Rendered as ``"key: value"`` lines at the
        top of each chunk's embed view.
    excluded_embed_metadata_keys:
        Metadata keys kept on the document but left out of the embed view.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    excluded_embed_metadata_keys: list[str] = Field(default_factory=list)

    metadata_template: str = "{key}: {value}"
    metadata_separator: str = "\n"
    text_template: str = "{metadata_str}\n\n{content}"

    def metadata_str(self, mode: MetadataMode = MetadataMode.EMBED) -> str:
        """Render metadata for *mode*; empty for :attr:`MetadataMode.NONE`."""
        if mode is MetadataMode.NONE:
            return ""
        return self.metadata_separator.join(
            self.metadata_template.format(key=key, value=value)
            for key, value in self.metadata.items()
            if key not in self.excluded_embed_metadata_keys
        )

    def render(self, content: str, mode: MetadataMode) -> str:
        """Return *content* wrapped with this document's metadata header for *mode*."""
        metadata_str = self.metadata_str(mode)
        if not metadata_str:
            return content
        return self.text_template.format(metadata_str=metadata_str, content=content)


class Span(BaseModel):
    """Half-open character range ``[start, end)`` of a sentence-like unit."""

    model_config = ConfigDict(frozen=True)

    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start

    def text(self, source: str) -> str:
        return source[self.start : self.end]


class Chunk(BaseModel):
    """A bounded, contiguous slice of a document prepared for embedding.

    ``store_view`` is always ``document.text[start_char:end_char]``; its first
    ``overlap`` characters repeat the tail of the previous chunk.
    """

    model_config = ConfigDict(frozen=True)

    embed_view: str
    store_view: str
    index: int
    start_char: int
    end_char: int
    overlap: int = 0

    def __len__(self) -> int:
        return len(self.store_view)


class EmbeddingRecord(BaseModel):
    """A chunk's stored text paired with its embedding vector."""

    text: str
    embedding: list[float]

    @property
    def dimensions(self) -> int:
        return len(self.embedding)
