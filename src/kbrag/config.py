"""Application settings loaded from YAML with environment variable overrides.

Precedence, highest first: environment variables, ``.env.local``, ``.env``,
the YAML settings file, field defaults. Section fields are overridden with
``KBRAG_<SECTION>__<FIELD>`` (e.g. ``KBRAG_RETRIEVAL__MIN_SCORE=0.5``);
list fields accept JSON or a comma-separated string.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from kbrag.documents.extractor import SUPPORTED_EXTENSIONS
from kbrag.errors import ConfigurationError

# ---------------------------------------------------------------------------
# Settings sections
# ---------------------------------------------------------------------------


class EmbeddingSettings(BaseModel):
    provider: str = "openai"
    model: str = "text-embedding-3-small"
    dimension: int = 1536
    batch_size: int = Field(default=10, gt=0)
    rate_limit_cooldown: float = 60.0
    max_rate_limit_retries: int = Field(default=5, gt=0)
    inter_batch_delay: float = 0.1


class VectorStoreSettings(BaseModel):
    backend: str = "faiss"
    path: str = "local_data/vectorstore"
    collection: str = "training_docs"
    url: str | None = None
    api_key: str | None = None
    upsert_batch_size: int = Field(default=100, gt=0)


class LLMSettings(BaseModel):
    provider: str = "openai"
    model: str = "gpt-4o-mini"
    temperature: float = 0.5
    max_tokens: int = 1024


class ChunkingSettings(BaseModel):
    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)

    @model_validator(mode="after")
    def _overlap_below_size(self) -> ChunkingSettings:
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be less than "
                f"chunk_size ({self.chunk_size})"
            )
        return self


class RetrievalSettings(BaseModel):
    top_k: int = Field(default=5, gt=0)
    min_score: float = 0.4


class IngestionSettings(BaseModel):
    docs_dir: str = "docs"
    # ``str`` lets a comma-separated env value through JSON decoding
    supported_formats: list[str] | str = Field(default_factory=lambda: [".pdf"])
    preview_chars: int = 1000

    @field_validator("supported_formats", mode="before")
    @classmethod
    def _split_formats(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @field_validator("supported_formats")
    @classmethod
    def _known_formats(cls, value: list[str]) -> list[str]:
        formats = [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in value]
        unsupported = sorted(set(formats) - SUPPORTED_EXTENSIONS)
        if unsupported:
            raise ValueError(
                f"unsupported formats {unsupported}; supported: {sorted(SUPPORTED_EXTENSIONS)}"
            )
        return formats


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="KBRAG_",
        env_nested_delimiter="__",
        # Later files win
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    vectorstore: VectorStoreSettings = Field(default_factory=VectorStoreSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)

    # Credentials and hosted-deployment names, read under their usual names
    openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    anthropic_api_key: str | None = Field(default=None, validation_alias="ANTHROPIC_API_KEY")
    qdrant_url: str | None = Field(default=None, validation_alias="QDRANT_URL")
    qdrant_api_key: str | None = Field(default=None, validation_alias="QDRANT_API_KEY")
    collection: str | None = None  # KBRAG_COLLECTION

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Keyword arguments carry the YAML file, which the environment overrides
        return env_settings, dotenv_settings, init_settings

    @field_validator(
        "embedding", "vectorstore", "llm", "chunking", "retrieval", "ingestion",
        mode="before",
    )
    @classmethod
    def _empty_section(cls, value: Any) -> Any:
        # A bare ``retrieval:`` line in YAML parses as None
        return {} if value is None else value

    @model_validator(mode="after")
    def _apply_hosted_names(self) -> Settings:
        if self.qdrant_url:
            self.vectorstore.url = self.qdrant_url
        if self.qdrant_api_key:
            self.vectorstore.api_key = self.qdrant_api_key
        if self.collection:
            self.vectorstore.collection = self.collection
        return self


def _find_settings_file() -> Path | None:
    """Walk up from cwd looking for settings.yaml."""
    profile = os.getenv("KBRAG_PROFILE", "")
    names = [f"settings-{profile}.yaml", "settings.yaml"] if profile else ["settings.yaml"]

    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        for name in names:
            candidate = parent / name
            if candidate.exists():
                return candidate
    return None


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from YAML file and environment, falling back to defaults.

    Raises:
        ConfigurationError: If the settings file cannot be parsed or the
            merged settings fail validation.
    """
    settings_path = Path(path) if path else _find_settings_file()
    try:
        raw = YamlConfigSettingsSource(
            Settings, yaml_file=settings_path, yaml_file_encoding="utf-8",
        )()
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid settings file {settings_path}: {exc}") from exc
    try:
        return Settings(**raw)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid settings: {exc}") from exc


def missing_credentials(settings: Settings, need_llm: bool = False) -> list[str]:
    """Return the names of required credentials that are not set.

    Args:
        settings: Loaded settings.
        need_llm: Also check the chat model's credentials.
    """
    missing: list[str] = []
    providers = {settings.embedding.provider.lower()}
    if need_llm:
        providers.add(settings.llm.provider.lower())

    if "openai" in providers and not settings.openai_api_key:
        missing.append("OPENAI_API_KEY")
    if "anthropic" in providers and not settings.anthropic_api_key:
        missing.append("ANTHROPIC_API_KEY")

    vs = settings.vectorstore
    if vs.backend.lower() == "qdrant" and not vs.url:
        missing.append("QDRANT_URL")
    if not vs.collection:
        missing.append("KBRAG_COLLECTION")
    return missing
