from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


load_dotenv()

# Checked in order; the first non-empty value is the credential.
API_KEY_ENV_NAMES = ("OPENAI_API_KEY", "AUDIT_RULES_API_KEY")

DEFAULT_MODEL = "gpt-4o-mini"


@dataclass(frozen=True)
class LLMConfig:
    api_key: str
    model: str = DEFAULT_MODEL
    temperature: float = 0.1
    timeout_seconds: float = 30.0
    max_retries: int = 2
    base_url: Optional[str] = None

    @property
    def credential_present(self) -> bool:
        return bool(self.api_key)


def get_llm_config() -> LLMConfig:
    """
    Load text-generation configuration from environment variables.

    A missing API key is not an error: the parser then runs heuristics only.
    Reads OPENAI_API_KEY (or AUDIT_RULES_API_KEY), LLM_MODEL, LLM_TEMPERATURE,
    LLM_TIMEOUT_SECONDS, LLM_MAX_RETRIES, OPENAI_BASE_URL.
    """
    return LLMConfig(
        api_key=_first_env(API_KEY_ENV_NAMES),
        model=os.getenv("LLM_MODEL", "").strip() or DEFAULT_MODEL,
        temperature=_float_env("LLM_TEMPERATURE", 0.1),
        timeout_seconds=_float_env("LLM_TIMEOUT_SECONDS", 30.0),
        max_retries=int(_float_env("LLM_MAX_RETRIES", 2)),
        base_url=os.getenv("OPENAI_BASE_URL", "").strip() or None,
    )


def _first_env(names: tuple[str, ...]) -> str:
    for name in names:
        value = os.getenv(name, "").strip()
        if value:
            return value
    return ""


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be numeric, got {raw!r}") from exc
