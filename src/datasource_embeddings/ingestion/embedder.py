"""Embedding backend client — single place to swap providers.

Supports three providers, selected by ``Settings.embedding_provider``:

1. **azure** (default) — Azure OpenAI deployment via ``AzureOpenAIEmbeddings``.
2. **openai** — OpenAI cloud (or any OpenAI-compatible endpoint via
   ``openai_base_url``) via ``OpenAIEmbeddings``.
3. **huggingface** — local sentence-transformers model via
   ``HuggingFaceEmbeddings`` (``pip install datasource-embeddings[huggingface]``).
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence

import httpx
import openai
from langchain_core.embeddings import Embeddings

from datasource_embeddings.config import Settings
from datasource_embeddings.errors import ConfigurationError, EmbeddingServiceError

logger = logging.getLogger(__name__)

# Failures that originate in the backend rather than in our own code.
_BACKEND_ERRORS: tuple[type[BaseException], ...] = (
    openai.OpenAIError,
    httpx.HTTPError,
    asyncio.TimeoutError,
    OSError,
)


def get_embedding_function(settings: Settings) -> Embeddings:
    """Return the LangChain embeddings backend described by *settings*.

    Raises
    ------
    ConfigurationError
        If the provider, model, deployment, endpoint or credentials are
        missing. No network request is made.
    """
    model = settings.embedding_model.strip()
    if not model:
        raise ConfigurationError("embedding_model must not be empty")

    provider = settings.embedding_provider
    if provider == "azure":
        if not settings.azure_openai_endpoint:
            raise ConfigurationError("azure_openai_endpoint is required for the azure provider")
        if not settings.azure_openai_api_key:
            raise ConfigurationError("azure_openai_api_key is required for the azure provider")
        from langchain_openai import AzureOpenAIEmbeddings

        logger.info("Using Azure OpenAI deployment: %s", settings.deployment_name)
        return AzureOpenAIEmbeddings(
            model=model,
            azure_deployment=settings.deployment_name,
            azure_endpoint=settings.azure_openai_endpoint,
            api_key=settings.azure_openai_api_key,
            api_version=settings.azure_openai_api_version,
            dimensions=settings.embedding_dimensions,
            max_retries=0,
        )

    if provider == "openai":
        if not settings.openai_api_key:
            raise ConfigurationError("openai_api_key is required for the openai provider")
        from langchain_openai import OpenAIEmbeddings

        kwargs: dict = {
            "model": model,
            "api_key": settings.openai_api_key,
            "dimensions": settings.embedding_dimensions,
            "max_retries": 0,
        }
        if settings.openai_base_url:
            logger.info("Using OpenAI-compatible endpoint: %s", settings.openai_base_url)
            kwargs["base_url"] = settings.openai_base_url
        return OpenAIEmbeddings(**kwargs)

    if provider == "huggingface":
        try:
            from langchain_huggingface import HuggingFaceEmbeddings
        except ImportError as exc:
            raise ConfigurationError(
                "the huggingface provider needs the 'huggingface' extra installed"
            ) from exc
        return HuggingFaceEmbeddings(model_name=model)

    raise ConfigurationError(f"Unsupported embedding_provider: {provider!r}")


class EmbeddingClient:
    """Order-preserving, all-or-nothing batch embedding.

    Parameters
    ----------
    embeddings:
        Any LangChain ``Embeddings`` implementation.
    batch_size:
        Maximum number of texts per backend request. Larger inputs are sent
        as consecutive sub-batches and concatenated in order.
    timeout:
        Seconds allowed for the whole call, across all sub-batches.
    dimensions:
        Expected vector length. When ``None`` only consistency within one
        response is checked.
    """

    def __init__(
        self,
        embeddings: Embeddings,
        *,
        batch_size: int = 512,
        timeout: float | None = None,
        dimensions: int | None = None,
    ) -> None:
        if batch_size <= 0:
            raise ConfigurationError(f"batch_size ({batch_size}) must be > 0")
        self.embeddings = embeddings
        self.batch_size = batch_size
        self.timeout = timeout
        self.dimensions = dimensions

    @classmethod
    def from_settings(
        cls, settings: Settings, embeddings: Embeddings | None = None
    ) -> EmbeddingClient:
        """Build a client from *settings*, optionally overriding the backend."""
        return cls(
            embeddings if embeddings is not None else get_embedding_function(settings),
            batch_size=settings.embedding_batch_size,
            timeout=settings.embedding_timeout,
            dimensions=settings.embedding_dimensions,
        )

    async def aembed(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed *texts*, returning one vector per text in the same order.

        Raises
        ------
        EmbeddingServiceError
            On any backend failure, timeout, or malformed response. Nothing
            is returned in that case, not even the batches that succeeded.
        """
        if not texts:
            return []

        t0 = time.monotonic()
        try:
            if self.timeout is None:
                vectors = await self._embed_batches(list(texts))
            else:
                vectors = await asyncio.wait_for(
                    self._embed_batches(list(texts)), timeout=self.timeout
                )
        except _BACKEND_ERRORS as exc:
            raise EmbeddingServiceError(
                f"Embedding backend failed for {len(texts)} texts: {exc!r}"
            ) from exc

        self._check_response(len(texts), vectors)
        logger.info(
            "Embedded %d texts (dim=%d) in %.2fs",
            len(vectors),
            len(vectors[0]),
            time.monotonic() - t0,
        )
        return vectors

    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        """Blocking wrapper around :meth:`aembed` for callers without a loop."""
        return asyncio.run(self.aembed(texts))

    async def _embed_batches(self, texts: list[str]) -> list[list[float]]:
        vectors: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = texts[start : start + self.batch_size]
            result = await self.embeddings.aembed_documents(batch)
            if len(result) != len(batch):
                raise EmbeddingServiceError(
                    f"Backend returned {len(result)} vectors for a batch of {len(batch)}"
                )
            vectors.extend(list(vector) for vector in result)
            logger.debug("  embedded %d / %d", len(vectors), len(texts))
        return vectors

    def _check_response(self, expected: int, vectors: list[list[float]]) -> None:
        if len(vectors) != expected:
            raise EmbeddingServiceError(f"Expected {expected} embeddings, got {len(vectors)}")
        dims = {len(vector) for vector in vectors}
        if len(dims) != 1:
            raise EmbeddingServiceError(f"Inconsistent embedding dimensions: {sorted(dims)}")
        dim = dims.pop()
        if self.dimensions is not None and dim != self.dimensions:
            raise EmbeddingServiceError(
                f"Expected {self.dimensions}-dimensional embeddings, got {dim}"
            )
