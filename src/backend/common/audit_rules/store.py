from __future__ import annotations

import functools
import json
import logging
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import ValidationError

from .models import AuditRule, ParsedRule, RuleStats, RuleType, VersionHistoryEntry
from .storage import KeyValueStore


logger = logging.getLogger(__name__)

RULES_KEY = "audit_rules"
VERSION_HISTORY_KEY = "audit_rule_versions"

_REQUIRED_IMPORT_FIELDS = ("id", "rule_type", "action")


class RuleStoreError(RuntimeError):
    pass


def _locked(method):
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


@contextmanager
def _corruption_guard(key: str):
    try:
        yield
    except json.JSONDecodeError as exc:
        logger.error("Stored value under %r is not valid JSON: %s", key, exc)
        raise RuleStoreError(f"Corrupt rule store data under key {key!r}") from exc


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _rule_type_value(rule_type: RuleType | str) -> str:
    return rule_type.value if isinstance(rule_type, RuleType) else str(rule_type)


class RuleStore:
    """Versioned persistence for audit rules on top of a key-value substrate.

    Rules sharing ``(rule_type, conditions)`` form a lineage with one active
    version. Every operation is a read-modify-write of the whole collection
    and runs under a per-instance lock, so request threads sharing one store
    are serialized. Separate processes sharing the same backing storage are
    not coordinated.
    """

    def __init__(
        self,
        storage: KeyValueStore,
        *,
        rules_key: str = RULES_KEY,
        history_key: str = VERSION_HISTORY_KEY,
    ):
        self._storage = storage
        self._rules_key = rules_key
        self._history_key = history_key
        self._lock = threading.RLock()

    @_locked
    def save(self, parsed_rule: ParsedRule, original_instruction: str, created_by: str = "system") -> AuditRule:
        rules = self.get_all()
        signature = parsed_rule.signature()
        existing = next((r for r in rules if r.is_active and r.signature() == signature), None)

        now = _now_iso()
        if existing is not None:
            new_rule = existing.model_copy(
                update={
                    "id": str(uuid.uuid4()),
                    "version": existing.version + 1,
                    "original_instruction": original_instruction,
                    "created_at": now,
                    "created_by": created_by,
                    "confidence_score": parsed_rule.confidence_score,
                    "is_active": True,
                },
                deep=True,
            )
            existing.is_active = False
        else:
            new_rule = AuditRule(
                **parsed_rule.model_dump(),
                id=str(uuid.uuid4()),
                version=1,
                original_instruction=original_instruction,
                created_at=now,
                created_by=created_by,
                is_active=True,
            )

        rules.append(new_rule)
        self._write_rules(rules)
        self._append_history(new_rule)
        return new_rule

    @_locked
    def get_all(self) -> List[AuditRule]:
        return [AuditRule.model_validate(item) for item in self._read_json(self._rules_key)]

    @_locked
    def get_active(self) -> List[AuditRule]:
        return [r for r in self.get_all() if r.is_active]

    @_locked
    def get_by_id(self, rule_id: str) -> Optional[AuditRule]:
        return next((r for r in self.get_all() if r.id == rule_id), None)

    @_locked
    def get_versions(self, rule_type: RuleType | str) -> List[AuditRule]:
        wanted = _rule_type_value(rule_type)
        matches = [r for r in self.get_all() if r.rule_type.value == wanted]
        return sorted(matches, key=lambda r: r.version, reverse=True)

    @_locked
    def get_version_history(self) -> List[VersionHistoryEntry]:
        return [VersionHistoryEntry.model_validate(item) for item in self._read_json(self._history_key)]

    @_locked
    def deactivate(self, rule_id: str) -> bool:
        rules = self.get_all()
        for rule in rules:
            if rule.id == rule_id:
                rule.is_active = False
                self._write_rules(rules)
                return True
        return False

    @_locked
    def rollback(self, rule_type: RuleType | str, version: int) -> Optional[AuditRule]:
        wanted = _rule_type_value(rule_type)
        rules = self.get_all()
        target = next((r for r in rules if r.rule_type.value == wanted and r.version == version), None)
        if target is None:
            return None
        if target.is_active:
            return target

        active = [r for r in rules if r.rule_type.value == wanted and r.is_active]
        if len(active) > 1:
            logger.warning(
                "Found %d active rules of type %s before rollback (ids=%s); deactivating all",
                len(active),
                wanted,
                [r.id for r in active],
            )
        for rule in active:
            rule.is_active = False
        target.is_active = True

        self._write_rules(rules)
        return target

    @_locked
    def delete(self, rule_id: str) -> bool:
        rules = self.get_all()
        remaining = [r for r in rules if r.id != rule_id]
        if len(remaining) == len(rules):
            return False
        self._write_rules(remaining)
        return True

    @_locked
    def export_all(self) -> str:
        return json.dumps([r.model_dump(mode="json") for r in self.get_all()], indent=2)

    @_locked
    def import_all(self, rules_json: str) -> bool:
        """Replace the whole collection with ``rules_json``; False leaves the store untouched."""
        try:
            payload = json.loads(rules_json)
        except (TypeError, json.JSONDecodeError):
            return False
        if not isinstance(payload, list):
            return False
        if not all(_importable(item) for item in payload):
            return False
        try:
            rules = [AuditRule.model_validate(item) for item in payload]
        except ValidationError as exc:
            logger.info("Rejected rule import: %s", exc)
            return False

        self._write_rules(rules)
        return True

    @_locked
    def clear(self) -> None:
        with _corruption_guard(self._rules_key):
            self._storage.delete(self._rules_key)
            self._storage.delete(self._history_key)

    @_locked
    def stats(self) -> RuleStats:
        rules = self.get_all()
        active = [r for r in rules if r.is_active]
        by_type: dict[str, int] = {}
        by_action: dict[str, int] = {}
        for rule in active:
            by_type[rule.rule_type.value] = by_type.get(rule.rule_type.value, 0) + 1
            by_action[rule.action.value] = by_action.get(rule.action.value, 0) + 1
        return RuleStats(total=len(rules), active=len(active), by_type=by_type, by_action=by_action)

    def _read_json(self, key: str) -> list[Any]:
        with _corruption_guard(key):
            raw = self._storage.get(key)
            data = json.loads(raw) if raw else []
        return data if isinstance(data, list) else []

    def _write_rules(self, rules: List[AuditRule]) -> None:
        with _corruption_guard(self._rules_key):
            self._storage.set(self._rules_key, json.dumps([r.model_dump(mode="json") for r in rules]))

    def _append_history(self, rule: AuditRule) -> None:
        history = self._read_json(self._history_key)
        entry = VersionHistoryEntry(
            rule_id=rule.id,
            rule_type=rule.rule_type,
            version=rule.version,
            timestamp=rule.created_at,
            created_by=rule.created_by,
        )
        history.append(entry.model_dump(mode="json"))
        self._storage.set(self._history_key, json.dumps(history))


def _importable(item: Any) -> bool:
    if not isinstance(item, dict):
        return False
    if not all(item.get(name) for name in _REQUIRED_IMPORT_FIELDS):
        return False
    # An empty conditions list is a legal (degenerate) rule; the key must still be there.
    return item.get("conditions") is not None and item.get("version") is not None
