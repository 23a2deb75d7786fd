"""Natural-language audit rule parsing and versioned rule storage.

This package contains only domain logic:
- Parsing takes an instruction string and an injected text generator.
- Storage goes through a key-value substrate; no provider SDKs live here.
"""

from .ai_parser import AIRuleParser, TextGenerator
from .heuristics import extract_rule, fallback_parse
from .json_extract import extract_json_object
from .models import (
    AuditRule,
    ConditionOperator,
    ConversionResult,
    LogicalOperator,
    ParsedRule,
    ParserStatus,
    RuleAction,
    RuleCondition,
    RuleStats,
    RuleType,
)
from .parser import InstructionParser
from .storage import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore
from .store import RuleStore, RuleStoreError
