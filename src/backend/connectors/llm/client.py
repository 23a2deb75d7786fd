from __future__ import annotations

import logging
from typing import Optional

from openai import APIStatusError, OpenAI, OpenAIError

from .config import LLMConfig


logger = logging.getLogger(__name__)


class LLMError(RuntimeError):
    def __init__(self, status: int, message: str, body: str | None = None):
        super().__init__(f"LLM HTTP {status}: {message}")
        self.status = status
        self.body = body


class OpenAITextGenerator:
    """Single-prompt chat completion against the OpenAI API."""

    def __init__(self, config: LLMConfig, *, client: Optional[OpenAI] = None):
        self._config = config
        self._client = client or OpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            max_retries=config.max_retries,
        )

    @property
    def model(self) -> str:
        return self._config.model

    def generate(self, prompt: str) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self._config.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self._config.temperature,
            )
        except APIStatusError as exc:
            raise LLMError(exc.status_code, exc.message, exc.response.text) from exc
        except OpenAIError as exc:
            raise LLMError(0, str(exc)) from exc

        if not response.choices:
            raise LLMError(0, "Empty completion response")
        return response.choices[0].message.content or ""


def create_generator(config: LLMConfig) -> Optional[OpenAITextGenerator]:
    """Build the generator once at startup; None means heuristic-only parsing."""
    if not config.credential_present:
        logger.warning("No AI provider API key found; instruction parsing will use heuristics only")
        return None
    try:
        generator = OpenAITextGenerator(config)
    except OpenAIError as exc:
        logger.error("Failed to initialize AI provider client: %s", exc)
        return None
    logger.info("AI rule parser initialized with model %s", config.model)
    return generator
