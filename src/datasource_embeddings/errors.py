"""Exception hierarchy for the chunk-and-embed pipeline."""

from __future__ import annotations


class DatasourceEmbeddingsError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(DatasourceEmbeddingsError, ValueError):
    """Invalid chunking parameters or embedding backend selection.

    Always raised before any request reaches the embedding backend.
    """


class EmbeddingServiceError(DatasourceEmbeddingsError, RuntimeError):
    """The embedding backend failed, timed out, or returned a malformed batch.

    The backend's own exception is available as ``__cause__``.
    """
