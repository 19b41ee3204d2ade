"""Tests for settings loading, credential checks and client construction."""

from __future__ import annotations

from pathlib import Path

import pytest

from kbrag.clients import build_clients
from kbrag.config import Settings, load_settings, missing_credentials
from kbrag.embeddings.openai_provider import OpenAIEmbeddingProvider
from kbrag.errors import ConfigurationError
from kbrag.llm.openai_provider import OpenAILLMProvider
from kbrag.vectorstore.faiss_store import FAISSStore

pytestmark = pytest.mark.usefixtures("isolated_env")


class TestLoadSettings:
    def test_defaults(self):
        settings = load_settings()
        assert settings.embedding.provider == "openai"
        assert settings.embedding.batch_size == 10
        assert settings.embedding.rate_limit_cooldown == 60.0
        assert settings.vectorstore.collection == "training_docs"
        assert settings.vectorstore.upsert_batch_size == 100
        assert settings.chunking.chunk_size == 1000
        assert settings.chunking.chunk_overlap == 200
        assert settings.retrieval.top_k == 5
        assert settings.retrieval.min_score == 0.4
        assert settings.ingestion.supported_formats == [".pdf"]

    def test_yaml_file(self, tmp_path: Path):
        path = tmp_path / "custom.yaml"
        path.write_text("retrieval:\n  top_k: 8\nvectorstore:\n  backend: qdrant\n")
        settings = load_settings(path)
        assert settings.retrieval.top_k == 8
        assert settings.vectorstore.backend == "qdrant"

    def test_settings_file_found_walking_up(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        (tmp_path / "settings.yaml").write_text("chunking:\n  chunk_size: 600\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        assert load_settings().chunking.chunk_size == 600

    def test_profile(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        (tmp_path / "settings.yaml").write_text("retrieval:\n  top_k: 3\n")
        (tmp_path / "settings-prod.yaml").write_text("retrieval:\n  top_k: 9\n")
        monkeypatch.setenv("KBRAG_PROFILE", "prod")
        assert load_settings().retrieval.top_k == 9

    def test_section_env_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("KBRAG_RETRIEVAL__MIN_SCORE", "0.55")
        monkeypatch.setenv("KBRAG_EMBEDDING__BATCH_SIZE", "20")
        settings = load_settings()
        assert settings.retrieval.min_score == 0.55
        assert settings.embedding.batch_size == 20

    def test_unknown_section_ignored(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("KBRAG_NOPE__VALUE", "1")
        assert load_settings() == Settings()

    def test_hosted_names(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("QDRANT_URL", "https://qdrant.example:6333")
        monkeypatch.setenv("QDRANT_API_KEY", "secret")
        monkeypatch.setenv("KBRAG_COLLECTION", "kb_prod")
        vs = load_settings().vectorstore
        assert vs.url == "https://qdrant.example:6333"
        assert vs.api_key == "secret"
        assert vs.collection == "kb_prod"

    def test_dotenv_file(self, tmp_path: Path):
        (tmp_path / ".env").write_text("KBRAG_RETRIEVAL__TOP_K=7\n")
        assert load_settings().retrieval.top_k == 7

    def test_env_local_wins_over_env(self, tmp_path: Path):
        (tmp_path / ".env.local").write_text("KBRAG_RETRIEVAL__TOP_K=2\n")
        (tmp_path / ".env").write_text("KBRAG_RETRIEVAL__TOP_K=7\n")
        assert load_settings().retrieval.top_k == 2

    def test_overlap_not_below_size_rejected(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("KBRAG_CHUNKING__CHUNK_OVERLAP", "1000")
        with pytest.raises(ConfigurationError, match="chunk_overlap"):
            load_settings()

    def test_invalid_value_rejected(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("KBRAG_RETRIEVAL__TOP_K", "many")
        with pytest.raises(ConfigurationError):
            load_settings()

    def test_env_wins_over_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        (tmp_path / "settings.yaml").write_text("retrieval:\n  top_k: 8\n  min_score: 0.6\n")
        monkeypatch.setenv("KBRAG_RETRIEVAL__TOP_K", "3")
        retrieval = load_settings().retrieval
        assert retrieval.top_k == 3
        assert retrieval.min_score == 0.6

    def test_list_override_comma_separated(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("KBRAG_INGESTION__SUPPORTED_FORMATS", ".pdf,.docx")
        assert load_settings().ingestion.supported_formats == [".pdf", ".docx"]

    def test_list_override_json(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("KBRAG_INGESTION__SUPPORTED_FORMATS", '[".txt", "PDF"]')
        assert load_settings().ingestion.supported_formats == [".txt", ".pdf"]

    def test_unsupported_format_rejected(self, tmp_path: Path):
        (tmp_path / "settings.yaml").write_text("ingestion:\n  supported_formats: ['.md']\n")
        with pytest.raises(ConfigurationError, match="unsupported formats"):
            load_settings()

    def test_empty_yaml_section_uses_defaults(self, tmp_path: Path):
        (tmp_path / "settings.yaml").write_text("retrieval:\n")
        assert load_settings().retrieval.min_score == 0.4

    def test_empty_yaml_section_with_env_override(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ):
        (tmp_path / "settings.yaml").write_text("retrieval:\n")
        monkeypatch.setenv("KBRAG_RETRIEVAL__MIN_SCORE", "0.5")
        retrieval = load_settings().retrieval
        assert retrieval.min_score == 0.5
        assert retrieval.top_k == 5

    def test_malformed_yaml_rejected(self, tmp_path: Path):
        (tmp_path / "settings.yaml").write_text("retrieval: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid settings file"):
            load_settings()

    def test_api_key_from_dotenv(self, tmp_path: Path):
        (tmp_path / ".env").write_text("OPENAI_API_KEY=sk-from-file\n")
        settings = load_settings()
        assert settings.openai_api_key == "sk-from-file"
        assert missing_credentials(settings) == []


class TestMissingCredentials:
    def test_openai_key(self):
        assert missing_credentials(Settings()) == ["OPENAI_API_KEY"]

    def test_all_present(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        assert missing_credentials(Settings(), need_llm=True) == []

    def test_llm_only_checked_when_needed(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        settings = Settings(llm={"provider": "anthropic"})
        assert missing_credentials(settings) == []
        assert missing_credentials(settings, need_llm=True) == ["ANTHROPIC_API_KEY"]

    def test_qdrant_requires_url_and_collection(self):
        settings = Settings(
            embedding={"provider": "ollama"},
            vectorstore={"backend": "qdrant", "collection": ""},
        )
        assert missing_credentials(settings) == ["QDRANT_URL", "KBRAG_COLLECTION"]


class TestBuildClients:
    def test_names_every_missing_variable(self):
        settings = Settings(vectorstore={"backend": "qdrant"})
        with pytest.raises(ConfigurationError) as exc_info:
            build_clients(settings, need_llm=True)
        assert "OPENAI_API_KEY" in str(exc_info.value)
        assert "QDRANT_URL" in str(exc_info.value)

    def test_builds_clients(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        settings = Settings(vectorstore={"path": str(tmp_path / "vs")})

        clients = build_clients(settings, need_llm=True)

        assert isinstance(clients.embedding_provider, OpenAIEmbeddingProvider)
        assert isinstance(clients.vector_store, FAISSStore)
        assert isinstance(clients.llm_provider, OpenAILLMProvider)
        assert clients.llm_provider.model == "gpt-4o-mini"

    def test_llm_optional(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        settings = Settings(vectorstore={"path": str(tmp_path / "vs")})
        assert build_clients(settings).llm_provider is None
