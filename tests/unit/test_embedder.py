"""Unit tests for the embedding client and backend factory."""

from __future__ import annotations

import asyncio
import sys
import types

import openai
import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding, Embeddings
from langchain_openai import AzureOpenAIEmbeddings, OpenAIEmbeddings

from datasource_embeddings.config import Settings
from datasource_embeddings.errors import ConfigurationError, EmbeddingServiceError
from datasource_embeddings.ingestion.embedder import EmbeddingClient, get_embedding_function


class _ShortEmbeddings(Embeddings):
    """Drops the last vector of every batch."""

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [[0.0, 1.0] for _ in texts][:-1]

    def embed_query(self, text: str) -> list[float]:
        return [0.0, 1.0]


class _SlowEmbeddings(_ShortEmbeddings):
    async def aembed_documents(self, texts: list[str]) -> list[list[float]]:
        await asyncio.sleep(5)
        return [[0.0, 1.0] for _ in texts]


class _UnreachableEmbeddings(_ShortEmbeddings):
    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        raise ConnectionRefusedError("backend unreachable")


# ──────────────────────────────────────────────────────────────────────
# EmbeddingClient
# ──────────────────────────────────────────────────────────────────────


class TestEmbeddingClient:
    @pytest.mark.asyncio
    async def test_preserves_order_across_sub_batches(self, recording_embeddings) -> None:
        client = EmbeddingClient(recording_embeddings, batch_size=2)
        texts = ["a", "bb", "ccc", "dddd", "eeeee"]

        vectors = await client.aembed(texts)

        assert len(recording_embeddings.calls) == 3
        assert recording_embeddings.calls == [["a", "bb"], ["ccc", "dddd"], ["eeeee"]]
        assert [v[0] for v in vectors] == [1.0, 2.0, 3.0, 4.0, 5.0]
        assert [v[1] for v in vectors] == [0.0, 1.0, 2.0, 3.0, 4.0]

    @pytest.mark.asyncio
    async def test_single_request_when_batch_fits(self, recording_embeddings) -> None:
        client = EmbeddingClient(recording_embeddings)
        await client.aembed(["x", "y", "z"])
        assert recording_embeddings.calls == [["x", "y", "z"]]

    @pytest.mark.asyncio
    async def test_empty_input_skips_backend(self, recording_embeddings) -> None:
        client = EmbeddingClient(recording_embeddings)
        assert await client.aembed([]) == []
        assert recording_embeddings.calls == []

    @pytest.mark.asyncio
    async def test_backend_failure_raises_service_error(self, failing_embeddings) -> None:
        client = EmbeddingClient(failing_embeddings)
        with pytest.raises(EmbeddingServiceError) as excinfo:
            await client.aembed(["one", "two"])
        assert isinstance(excinfo.value.__cause__, openai.APIConnectionError)

    @pytest.mark.asyncio
    async def test_socket_error_raises_service_error(self) -> None:
        client = EmbeddingClient(_UnreachableEmbeddings())
        with pytest.raises(EmbeddingServiceError, match="backend unreachable") as excinfo:
            await client.aembed(["one"])
        assert isinstance(excinfo.value.__cause__, ConnectionRefusedError)

    @pytest.mark.asyncio
    async def test_timeout_aborts_whole_call(self) -> None:
        client = EmbeddingClient(_SlowEmbeddings(), timeout=0.01)
        with pytest.raises(EmbeddingServiceError):
            await client.aembed(["slow"])

    @pytest.mark.asyncio
    async def test_short_response_is_rejected(self) -> None:
        client = EmbeddingClient(_ShortEmbeddings())
        with pytest.raises(EmbeddingServiceError, match="2 vectors for a batch of 3"):
            await client.aembed(["a", "b", "c"])

    @pytest.mark.asyncio
    async def test_unexpected_dimensions_are_rejected(self) -> None:
        client = EmbeddingClient(DeterministicFakeEmbedding(size=4), dimensions=8)
        with pytest.raises(EmbeddingServiceError, match="8-dimensional"):
            await client.aembed(["a"])

    def test_sync_wrapper(self) -> None:
        client = EmbeddingClient(DeterministicFakeEmbedding(size=6))
        vectors = client.embed(["alpha", "beta"])
        assert len(vectors) == 2
        assert all(len(v) == 6 for v in vectors)
        assert vectors == client.embed(["alpha", "beta"])

    def test_invalid_batch_size(self, recording_embeddings) -> None:
        with pytest.raises(ConfigurationError):
            EmbeddingClient(recording_embeddings, batch_size=0)

    def test_from_settings_uses_override(self, settings: Settings, recording_embeddings) -> None:
        client = EmbeddingClient.from_settings(
            settings.model_copy(update={"embedding_batch_size": 7, "embedding_timeout": 3.0}),
            recording_embeddings,
        )
        assert client.embeddings is recording_embeddings
        assert client.batch_size == 7
        assert client.timeout == 3.0


# ──────────────────────────────────────────────────────────────────────
# get_embedding_function
# ──────────────────────────────────────────────────────────────────────


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestGetEmbeddingFunction:
    def test_openai_backend(self) -> None:
        backend = get_embedding_function(
            _settings(embedding_provider="openai", openai_api_key="sk-test")
        )
        assert isinstance(backend, OpenAIEmbeddings)
        assert backend.model == "text-embedding-3-small"

    def test_azure_backend_uses_deployment(self) -> None:
        backend = get_embedding_function(
            _settings(
                embedding_provider="azure",
                embedding_deployment="embeddings-prod",
                azure_openai_endpoint="https://example.openai.azure.com",
                azure_openai_api_key="azure-key",
            )
        )
        assert isinstance(backend, AzureOpenAIEmbeddings)
        assert backend.deployment == "embeddings-prod"

    def test_azure_deployment_defaults_to_model(self) -> None:
        assert _settings(embedding_model="my-model").deployment_name == "my-model"

    def test_azure_requires_endpoint(self) -> None:
        with pytest.raises(ConfigurationError, match="azure_openai_endpoint"):
            get_embedding_function(
                _settings(
                    embedding_provider="azure",
                    azure_openai_endpoint="",
                    azure_openai_api_key="azure-key",
                )
            )

    def test_openai_requires_key(self) -> None:
        with pytest.raises(ConfigurationError, match="openai_api_key"):
            get_embedding_function(_settings(embedding_provider="openai", openai_api_key=""))

    def test_empty_model_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="embedding_model"):
            get_embedding_function(
                _settings(embedding_provider="openai", openai_api_key="k", embedding_model=" ")
            )

    def test_huggingface_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        class _HuggingFaceEmbeddings:
            def __init__(self, model_name: str) -> None:
                self.model_name = model_name

        fake_module = types.ModuleType("langchain_huggingface")
        fake_module.HuggingFaceEmbeddings = _HuggingFaceEmbeddings
        monkeypatch.setitem(sys.modules, "langchain_huggingface", fake_module)

        backend = get_embedding_function(
            _settings(embedding_provider="huggingface", embedding_model="all-MiniLM-L6-v2")
        )
        assert isinstance(backend, _HuggingFaceEmbeddings)
        assert backend.model_name == "all-MiniLM-L6-v2"

    def test_huggingface_without_extra_installed(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setitem(sys.modules, "langchain_huggingface", None)
        with pytest.raises(ConfigurationError, match="huggingface"):
            get_embedding_function(_settings(embedding_provider="huggingface"))
