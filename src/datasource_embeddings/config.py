"""Shared configuration loaded from environment / ``.env``."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

EmbeddingProvider = Literal["openai", "azure", "huggingface"]


class Settings(BaseSettings):
    """Chunking and embedding settings, populated from ``DATASOURCES_*`` env vars or .env file."""

    # Chunking
    chunk_size: int = Field(default=512, gt=0, description="Maximum characters per chunk")
    chunk_overlap: int = Field(
        default=20, ge=0, description="Characters shared between adjacent chunks"
    )

    # Embedding
    embedding_provider: EmbeddingProvider = "azure"
    embedding_model: str = "text-embedding-3-small"
    embedding_deployment: str = Field(
        default="",
        description="Azure OpenAI deployment name. Leave empty to reuse ``embedding_model``.",
    )
    embedding_dimensions: int | None = Field(
        default=None, gt=0, description="Expected vector size; checked on every response when set"
    )
    embedding_batch_size: int = Field(
        default=512, gt=0, description="Maximum texts per backend request"
    )
    embedding_timeout: float | None = Field(
        default=None, gt=0, description="Seconds before the whole embedding call is abandoned"
    )

    # OpenAI cloud
    openai_api_key: str = ""
    openai_base_url: str = ""

    # Azure OpenAI
    azure_openai_endpoint: str = ""
    azure_openai_api_key: str = ""
    azure_openai_api_version: str = "2024-02-01"

    model_config = SettingsConfigDict(
        env_prefix="DATASOURCES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def deployment_name(self) -> str:
        """Azure deployment to call, defaulting to the model identifier."""
        return self.embedding_deployment or self.embedding_model


def get_settings() -> Settings:
    """Build a fresh :class:`Settings` from the current environment."""
    return Settings()
