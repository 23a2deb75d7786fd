"""Text-generation connector (provider SDK lives here; parsing logic lives in common/audit_rules)."""

from .client import LLMError, OpenAITextGenerator, create_generator
from .config import LLMConfig, get_llm_config
from .wiring import build_instruction_parser

__all__ = [
    "LLMConfig",
    "LLMError",
    "OpenAITextGenerator",
    "build_instruction_parser",
    "create_generator",
    "get_llm_config",
]
