from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RuleType(str, Enum):
    EXPENSE_AMOUNT_THRESHOLD = "expense_amount_threshold"
    VENDOR_FREQUENCY = "vendor_frequency"
    CATEGORY_AMOUNT_THRESHOLD = "category_amount_threshold"
    DUPLICATE_DETECTION = "duplicate_detection"
    TIME_BASED = "time_based"
    COMPLIANCE_CHECK = "compliance_check"


class ConditionOperator(str, Enum):
    GT = "gt"
    LT = "lt"
    EQ = "eq"
    NE = "ne"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    IN = "in"
    NOT_IN = "not_in"


class LogicalOperator(str, Enum):
    AND = "AND"
    OR = "OR"


class RuleAction(str, Enum):
    FLAG = "flag"
    REVIEW = "review"
    REJECT = "reject"
    APPROVE = "approve"


class RuleCondition(BaseModel):
    field: str = Field(min_length=1)
    operator: ConditionOperator
    # Scalar or list; None is a legal (falsy) value as long as the key was given.
    value: Any
    logical_operator: Optional[LogicalOperator] = None


class ParsedRule(BaseModel):
    rule_type: RuleType
    conditions: List[RuleCondition] = Field(default_factory=list)
    action: RuleAction
    reason: str = Field(min_length=1)
    confidence_score: float = Field(ge=0.0, le=1.0)

    def signature(self) -> tuple[str, list[dict[str, Any]]]:
        """Lineage key: rule type plus conditions, order and value sensitive."""
        return self.rule_type.value, [c.model_dump(mode="json") for c in self.conditions]


class AuditRule(ParsedRule):
    id: str = Field(min_length=1)
    version: int = Field(ge=1)
    original_instruction: str = ""
    created_at: str
    created_by: str = "system"
    is_active: bool = True


class VersionHistoryEntry(BaseModel):
    rule_id: str
    rule_type: RuleType
    version: int
    timestamp: str
    created_by: str
    action: str = "created"


class ConversionResult(BaseModel):
    """Uniform return contract for every parsing entry point.

    Either ``success=True`` with ``rule`` set, or ``success=False`` with an
    ``error`` and recovery ``suggestions``.
    """

    success: bool
    rule: Optional[ParsedRule] = None
    error: Optional[str] = None
    suggestions: Optional[List[str]] = None

    @classmethod
    def ok(cls, rule: ParsedRule) -> "ConversionResult":
        return cls(success=True, rule=rule)

    @classmethod
    def failure(cls, error: str, suggestions: Optional[List[str]] = None) -> "ConversionResult":
        return cls(success=False, error=error, suggestions=list(suggestions or []))

    def to_payload(self) -> Dict[str, Any]:
        # Only the unused branch keys are dropped; a condition value of None stays in the rule.
        unused = {key for key in ("rule", "error", "suggestions") if getattr(self, key) is None}
        return self.model_dump(mode="json", exclude=unused)


class ParserStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    available: bool
    credential_present: bool = Field(alias="credentialPresent")
    model: Optional[str] = None


class RuleStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int = 0
    active: int = 0
    by_type: Dict[str, int] = Field(default_factory=dict, alias="byType")
    by_action: Dict[str, int] = Field(default_factory=dict, alias="byAction")
