import pytest

from common.audit_rules.models import ParsedRule


@pytest.fixture
def make_parsed_rule():
    def _make(
        *,
        rule_type: str = "expense_amount_threshold",
        conditions=None,
        action: str = "flag",
        reason: str = "Flag based on expense amount threshold",
        confidence_score: float = 0.9,
    ) -> ParsedRule:
        if conditions is None:
            conditions = [{"field": "amount", "operator": "gt", "value": 1000}]
        return ParsedRule(
            rule_type=rule_type,
            conditions=conditions,
            action=action,
            reason=reason,
            confidence_score=confidence_score,
        )

    return _make
