from __future__ import annotations

import re
from typing import List, Optional

from .models import ConversionResult, ParsedRule, RuleAction, RuleCondition, RuleType


# Fallback rules are approximations; callers should verify them manually.
HEURISTIC_CONFIDENCE = 0.6

# Iteration order is significant: the first category with a matching keyword wins.
ACTION_KEYWORDS: tuple[tuple[RuleAction, tuple[str, ...]], ...] = (
    (RuleAction.FLAG, ("flag", "mark", "highlight", "identify")),
    (RuleAction.REVIEW, ("review", "check", "examine", "investigate")),
    (RuleAction.REJECT, ("reject", "deny", "block", "prevent")),
    (RuleAction.APPROVE, ("approve", "accept", "allow", "permit")),
)

# Precedence order; first match wins.
RULE_TYPE_PATTERNS: tuple[tuple[RuleType, re.Pattern[str]], ...] = (
    (
        RuleType.EXPENSE_AMOUNT_THRESHOLD,
        re.compile(r"expense.*amount|amount.*above|cost.*over|expense.*(?:above|over|exceed)", re.IGNORECASE),
    ),
    (RuleType.VENDOR_FREQUENCY, re.compile(r"vendor.*frequency|appears.*times|vendor.*day", re.IGNORECASE)),
    (
        RuleType.CATEGORY_AMOUNT_THRESHOLD,
        re.compile(r"category.*amount|tagged.*over|categorized.*above", re.IGNORECASE),
    ),
    (RuleType.DUPLICATE_DETECTION, re.compile(r"duplicate|same.*transaction|identical", re.IGNORECASE)),
    (RuleType.TIME_BASED, re.compile(r"time|after|before|am|pm", re.IGNORECASE)),
)

_AMOUNT_RE = re.compile(r"\$?(\d+(?:,\d{3})*(?:\.\d{2})?)")

FALLBACK_SUGGESTIONS = [
    "Ensure OPENAI_API_KEY is set in your environment or .env file",
    'Try using more specific keywords like "expense", "vendor", "category"',
    "Include threshold amounts with $ symbol",
]


def normalize_instruction(instruction: str) -> str:
    return instruction.lower().strip()


def extract_action(instruction: str) -> RuleAction:
    for action, keywords in ACTION_KEYWORDS:
        if any(keyword in instruction for keyword in keywords):
            return action
    return RuleAction.FLAG


def determine_rule_type(instruction: str) -> Optional[RuleType]:
    for rule_type, pattern in RULE_TYPE_PATTERNS:
        if pattern.search(instruction):
            return rule_type
    return None


def extract_basic_conditions(instruction: str) -> List[RuleCondition]:
    """Only the first amount-like token is ever extracted, as ``amount > N``."""
    match = _AMOUNT_RE.search(instruction)
    if not match:
        return []
    value = float(match.group(1).replace(",", ""))
    return [RuleCondition(field="amount", operator="gt", value=value)]


def extract_rule(normalized_instruction: str) -> Optional[ParsedRule]:
    rule_type = determine_rule_type(normalized_instruction)
    if rule_type is None:
        return None

    action = extract_action(normalized_instruction)
    return ParsedRule(
        rule_type=rule_type,
        conditions=extract_basic_conditions(normalized_instruction),
        action=action,
        reason=f"{action.value.capitalize()} based on {rule_type.value.replace('_', ' ')}",
        confidence_score=HEURISTIC_CONFIDENCE,
    )


def fallback_parse(instruction: str) -> ConversionResult:
    rule = extract_rule(normalize_instruction(instruction))
    if rule is None:
        return ConversionResult.failure(
            "Could not determine rule type. Please check your AI parser configuration.",
            FALLBACK_SUGGESTIONS,
        )
    return ConversionResult.ok(rule)
