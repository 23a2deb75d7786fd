import os
import sys


# Ensure `src/backend` is on sys.path so imports like `import common...` work,
# even when pytest's rootdir is the repository root.
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

import json

import pytest

from common.audit_rules.ai_parser import AIRuleParser
from common.audit_rules.parser import InstructionParser
from common.audit_rules.storage import InMemoryKeyValueStore
from common.audit_rules.store import RuleStore


class FakeGenerator:
    """Records prompts and replays a canned response (or raises a canned error)."""

    def __init__(self, response: str = "", error: Exception | None = None):
        self.response = response
        self.error = error
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def ai_rule_payload() -> dict:
    return {
        "rule_type": "expense_amount_threshold",
        "conditions": [
            {"field": "amount", "operator": "gt", "value": 1000},
            {"field": "category", "operator": "not_contains", "value": "capital", "logical_operator": "AND"},
        ],
        "action": "flag",
        "reason": "Flag expenses above $1,000 not tagged as capital expenditure",
        "confidence_score": 0.92,
    }


@pytest.fixture
def make_generator():
    def _make(*, response=None, error: Exception | None = None) -> FakeGenerator:
        if isinstance(response, dict):
            response = json.dumps(response)
        return FakeGenerator(response or "", error)

    return _make


@pytest.fixture
def make_parser():
    def _make(generator=None, *, credential_present: bool | None = None) -> InstructionParser:
        if credential_present is None:
            credential_present = generator is not None
        return InstructionParser(
            AIRuleParser(generator, credential_present=credential_present, model_name="test-model")
        )

    return _make


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def rule_store(kv_store) -> RuleStore:
    return RuleStore(kv_store)
