"""OpenAI chat-completion client."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from openai import OpenAI

from folderchat.config import DEFAULT_LLM_MODEL

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LLMConfig:
    model: str = DEFAULT_LLM_MODEL
    temperature: float = 0.0
    max_tokens: int = 800
    api_key: Optional[str] = None
    base_url: Optional[str] = None


class LLMClient:
    """Minimal synchronous completion wrapper.

    Usage:
        client = LLMClient(LLMConfig(model="gpt-4o-mini"))
        text = client.complete("Summarise this", system="Be brief.")
    """

    def __init__(self, config: Optional[LLMConfig] = None) -> None:
        self.config = config or LLMConfig()
        api_key = self.config.api_key or os.getenv("OPENAI_API_KEY")
        base_url = self.config.base_url or os.getenv("OPENAI_BASE_URL")
        self._client = OpenAI(api_key=api_key, base_url=base_url)
        logger.info("LLM client initialized: %s", self.config.model)

    def complete(self, prompt: str, *, system: Optional[str] = None) -> str:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        response = self._client.chat.completions.create(
            model=self.config.model,
            messages=messages,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )
        return (response.choices[0].message.content or "").strip()
