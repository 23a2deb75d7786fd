from __future__ import annotations

import json

from .models import ConditionOperator, RuleAction, RuleType


def _choices(enum_cls) -> str:
    return ", ".join(member.value for member in enum_cls)


PROMPT_TEMPLATE = """
You are an expert audit rule parser. Convert the following natural language audit instruction into a structured JSON rule.

INSTRUCTION: {instruction}

Analyze the instruction and return a JSON object with the following structure:
{{
  "rule_type": "string (one of: {rule_types})",
  "conditions": [
    {{
      "field": "string (e.g., amount, vendor, category, time, etc.)",
      "operator": "string (one of: {operators})",
      "value": "any (the threshold value, category name, etc.)",
      "logical_operator": "string (AND, OR) - optional"
    }}
  ],
  "action": "string (one of: {actions})",
  "reason": "string (human-readable explanation of what the rule does)",
  "confidence_score": "number (0.0 to 1.0 indicating confidence in the parsing)"
}}

IMPORTANT RULES:
1. Extract specific numeric thresholds (amounts, frequencies, percentages)
2. Identify the main action ({actions})
3. Determine the rule type based on what is being checked
4. Create logical conditions that can be evaluated programmatically
5. Provide a confidence score based on how clear the instruction is
6. If the instruction mentions "not" or exclusions, use appropriate operators
7. For time-based rules, extract specific times or time ranges
8. For duplicate detection, focus on matching criteria (amount, vendor, date, etc.)

EXAMPLES:
- "Flag any expense above $1,000 not tagged as capital expenditure" -> expense_amount_threshold with amount gt 1000 AND category not_contains "capital"
- "If a vendor appears more than twice in one day, flag for review" -> vendor_frequency with frequency gt 2 AND timeframe eq "day"
- "Review any expense after 10 PM" -> time_based with time gt "22:00"

Return ONLY a single JSON object as the entire response, no additional text or explanation.
"""


def build_prompt(instruction: str) -> str:
    # json.dumps quotes and escapes the instruction so it cannot break the template.
    return PROMPT_TEMPLATE.format(
        instruction=json.dumps(instruction),
        rule_types=_choices(RuleType),
        operators=_choices(ConditionOperator),
        actions=_choices(RuleAction),
    )
