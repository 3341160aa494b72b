"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass

from folderchat.embedding.encoder import DEFAULT_MODEL

DEFAULT_LLM_MODEL = "gpt-4o-mini"


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return float(value)


@dataclass(slots=True)
class AppConfig:
    model_name: str = DEFAULT_MODEL
    llm_model: str = DEFAULT_LLM_MODEL
    openai_api_key: str | None = None
    chunk_size: int = 512
    chunk_overlap: int = 50
    questions_per_chunk: int = 3
    top_k: int = 5
    relevance_threshold: float = 0.70
    history_turns: int = 4
    max_citations: int = 5
    max_files: int = 100
    file_delay: float = 0.1
    between_files_delay: float = 0.2
    warmup_url: str | None = None
    warmup_include_documents: bool = True
    warmup_timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build a config from ``FOLDERCHAT_*`` and ``OPENAI_API_KEY`` variables."""
        defaults = cls()
        include_docs = os.getenv("FOLDERCHAT_WARMUP_DOCUMENTS", "1").strip().lower()
        return cls(
            model_name=os.getenv("FOLDERCHAT_EMBEDDING_MODEL") or defaults.model_name,
            llm_model=os.getenv("FOLDERCHAT_LLM_MODEL") or defaults.llm_model,
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            relevance_threshold=_env_float(
                "FOLDERCHAT_RELEVANCE_THRESHOLD", defaults.relevance_threshold
            ),
            file_delay=_env_float("FOLDERCHAT_FILE_DELAY", defaults.file_delay),
            between_files_delay=_env_float(
                "FOLDERCHAT_BETWEEN_FILES_DELAY", defaults.between_files_delay
            ),
            warmup_url=os.getenv("FOLDERCHAT_BASE_URL") or None,
            warmup_include_documents=include_docs not in {"0", "false", "no"},
        )
