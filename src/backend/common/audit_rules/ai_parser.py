from __future__ import annotations

import json
import logging
from numbers import Real
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from .heuristics import fallback_parse
from .json_extract import extract_json_object
from .models import ConversionResult, ParsedRule, ParserStatus
from .prompt import build_prompt


logger = logging.getLogger(__name__)

RESPONSE_SUGGESTIONS = [
    "Try rephrasing your instruction more clearly",
    "Include specific amounts, categories, or conditions",
    'Use clear action words like "flag", "review", "reject", or "approve"',
]


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str:
        """Return the model's raw text completion for ``prompt``."""
        ...


class RuleResponseError(ValueError):
    pass


def validate_rule_payload(payload: Any) -> bool:
    if not isinstance(payload, dict):
        return False
    score = payload.get("confidence_score")
    if isinstance(score, bool) or not isinstance(score, Real):
        return False
    if not (
        isinstance(payload.get("rule_type"), str)
        and isinstance(payload.get("conditions"), list)
        and isinstance(payload.get("action"), str)
        and isinstance(payload.get("reason"), str)
        and 0 <= score <= 1
    ):
        return False
    # A condition value may be falsy (0, "", null) but the key must be present.
    return all(
        isinstance(cond, dict) and cond.get("field") and cond.get("operator") and "value" in cond
        for cond in payload["conditions"]
    )


def rule_from_response(text: str) -> ParsedRule:
    raw = extract_json_object(text)
    if raw is None:
        raise RuleResponseError("No JSON found in response")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise RuleResponseError(f"Malformed JSON in response: {exc.msg}") from exc
    if not validate_rule_payload(payload):
        raise RuleResponseError("Invalid rule structure from AI response")
    try:
        return ParsedRule.model_validate(payload)
    except ValidationError as exc:
        raise RuleResponseError(f"Invalid rule structure from AI response: {exc.error_count()} error(s)") from exc


class AIRuleParser:
    """Turns an instruction into a rule via a text generator, degrading to heuristics.

    ``parse`` never raises: an absent generator, a generator failure, or an
    unusable response all fall through to :func:`fallback_parse`.
    """

    def __init__(
        self,
        generator: Optional[TextGenerator] = None,
        *,
        credential_present: bool = False,
        model_name: Optional[str] = None,
    ):
        self._generator = generator
        self._credential_present = credential_present
        self._model_name = model_name

    def is_available(self) -> bool:
        return self._generator is not None

    def status(self) -> ParserStatus:
        available = self.is_available()
        return ParserStatus(
            available=available,
            credential_present=self._credential_present,
            model=self._model_name if available else None,
        )

    def parse(self, instruction: str) -> ConversionResult:
        if self._generator is None:
            logger.info("AI parser unavailable; using heuristic parsing")
            return fallback_parse(instruction)

        try:
            text = self._generator.generate(build_prompt(instruction))
        except Exception as exc:
            logger.warning("Text generation failed, falling back to heuristics: %s", exc)
            return fallback_parse(instruction)

        result = self.parse_response(text)
        if not result.success:
            logger.warning("Unusable AI response, falling back to heuristics: %s", result.error)
            return fallback_parse(instruction)
        return result

    @staticmethod
    def parse_response(text: str) -> ConversionResult:
        try:
            return ConversionResult.ok(rule_from_response(text))
        except RuleResponseError as exc:
            return ConversionResult.failure(f"Failed to parse AI response: {exc}", RESPONSE_SUGGESTIONS)
