from __future__ import annotations

import logging
from typing import Optional

from .ai_parser import AIRuleParser
from .models import ConversionResult, ParserStatus


logger = logging.getLogger(__name__)

EMPTY_INSTRUCTION_ERROR = "Instruction cannot be empty"

RECOVERY_SUGGESTIONS = [
    "Check your internet connection",
    "Verify your AI provider API key is configured correctly",
    "Try simplifying your instruction",
]


class InstructionParser:
    def __init__(self, ai_parser: AIRuleParser):
        self._ai_parser = ai_parser

    def parse_instruction(self, instruction: str) -> ConversionResult:
        if is_empty_instruction(instruction):
            return ConversionResult.failure(EMPTY_INSTRUCTION_ERROR, ["Please provide a clear audit instruction"])

        try:
            return self._ai_parser.parse(instruction)
        except Exception as exc:
            logger.exception("Rule parsing error")
            return ConversionResult.failure(f"Failed to parse instruction: {exc}", RECOVERY_SUGGESTIONS)

    def get_status(self) -> ParserStatus:
        return self._ai_parser.status()

    def is_available(self) -> bool:
        return self._ai_parser.is_available()


def is_empty_instruction(instruction: Optional[str]) -> bool:
    return not instruction or not instruction.strip()
