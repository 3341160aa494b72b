"""Tests for application configuration."""

from __future__ import annotations

import pytest

from folderchat.config import AppConfig


class TestAppConfig:
    """Test AppConfig dataclass."""

    def test_default_config(self) -> None:
        """Should create config with default values."""
        config = AppConfig()

        assert config.model_name == "sentence-transformers/all-MiniLM-L6-v2"
        assert config.chunk_size == 512
        assert config.chunk_overlap == 50
        assert config.questions_per_chunk == 3
        assert config.top_k == 5
        assert config.relevance_threshold == 0.70
        assert config.history_turns == 4
        assert config.max_citations == 5
        assert config.warmup_url is None

    def test_custom_config(self) -> None:
        """Should create config with custom values."""
        config = AppConfig(model_name="custom-model", chunk_size=256, warmup_url="http://x")

        assert config.model_name == "custom-model"
        assert config.chunk_size == 256
        assert config.warmup_url == "http://x"


class TestFromEnv:
    """Test environment-driven configuration."""

    def test_from_env_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Unset variables keep the defaults."""
        for name in (
            "FOLDERCHAT_EMBEDDING_MODEL",
            "FOLDERCHAT_LLM_MODEL",
            "FOLDERCHAT_RELEVANCE_THRESHOLD",
            "FOLDERCHAT_BASE_URL",
            "FOLDERCHAT_WARMUP_DOCUMENTS",
            "OPENAI_API_KEY",
        ):
            monkeypatch.delenv(name, raising=False)

        config = AppConfig.from_env()

        assert config.model_name == AppConfig().model_name
        assert config.openai_api_key is None
        assert config.warmup_url is None
        assert config.warmup_include_documents is True

    def test_from_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Environment variables override the defaults."""
        monkeypatch.setenv("FOLDERCHAT_EMBEDDING_MODEL", "my-embedder")
        monkeypatch.setenv("FOLDERCHAT_LLM_MODEL", "my-llm")
        monkeypatch.setenv("FOLDERCHAT_RELEVANCE_THRESHOLD", "0.5")
        monkeypatch.setenv("FOLDERCHAT_BASE_URL", "https://chat.example.com")
        monkeypatch.setenv("FOLDERCHAT_WARMUP_DOCUMENTS", "false")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        config = AppConfig.from_env()

        assert config.model_name == "my-embedder"
        assert config.llm_model == "my-llm"
        assert config.relevance_threshold == 0.5
        assert config.warmup_url == "https://chat.example.com"
        assert config.warmup_include_documents is False
        assert config.openai_api_key == "sk-test"
