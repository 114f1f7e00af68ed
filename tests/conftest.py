"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import httpx
import openai
import pytest
from langchain_core.embeddings import Embeddings

from datasource_embeddings.config import Settings


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fake embedding backends ─────────────────────────────────────────────


class RecordingEmbeddings(Embeddings):
    """In-memory backend that records every batch it receives.

    Vector ``i`` of a batch is ``[len(text), position_in_whole_call, 1.0]`` so
    tests can check ordering across sub-batches.
    """

    def __init__(self, dim: int = 3) -> None:
        self.dim = dim
        self.calls: list[list[str]] = []

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        offset = sum(len(batch) for batch in self.calls)
        self.calls.append(list(texts))
        return [
            ([float(len(text)), float(offset + i)] + [1.0] * self.dim)[: self.dim]
            for i, text in enumerate(texts)
        ]

    def embed_query(self, text: str) -> list[float]:
        return self.embed_documents([text])[0]


class FailingEmbeddings(RecordingEmbeddings):
    """Backend whose every request fails with a connection error."""

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        raise openai.APIConnectionError(
            request=httpx.Request("POST", "https://embeddings.example.invalid/v1/embeddings")
        )


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def recording_embeddings() -> RecordingEmbeddings:
    return RecordingEmbeddings()


@pytest.fixture()
def failing_embeddings() -> FailingEmbeddings:
    return FailingEmbeddings()


@pytest.fixture()
def settings() -> Settings:
    """Small chunks and an OpenAI backend that is never reached in unit tests."""
    return Settings(
        _env_file=None,
        chunk_size=20,
        chunk_overlap=5,
        embedding_provider="openai",
        embedding_model="text-embedding-3-small",
        openai_api_key="sk-test",
    )
