from __future__ import annotations

from typing import Optional

from common.audit_rules.ai_parser import AIRuleParser
from common.audit_rules.parser import InstructionParser

from .client import create_generator
from .config import LLMConfig, get_llm_config


def build_instruction_parser(config: Optional[LLMConfig] = None) -> InstructionParser:
    """Wire an InstructionParser to the configured text generator, if one can be built."""
    cfg = config or get_llm_config()
    return InstructionParser(
        AIRuleParser(
            create_generator(cfg),
            credential_present=cfg.credential_present,
            model_name=cfg.model,
        )
    )
