from __future__ import annotations

from functools import lru_cache

from common.audit_rules.parser import InstructionParser
from common.audit_rules.storage import JsonFileKeyValueStore
from common.audit_rules.store import RuleStore
from connectors.llm import build_instruction_parser


# Built once per process: credential presence is read at startup, not per request.
@lru_cache(maxsize=1)
def get_instruction_parser() -> InstructionParser:
    return build_instruction_parser()


@lru_cache(maxsize=1)
def get_rule_store() -> RuleStore:
    return RuleStore(JsonFileKeyValueStore())
