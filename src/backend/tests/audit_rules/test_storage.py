import json
import threading

import pytest

from common.audit_rules.storage import JsonFileKeyValueStore, rule_store_path
from common.audit_rules.store import RuleStore, RuleStoreError


def test_json_file_store_round_trip(tmp_path):
    path = tmp_path / "rules.json"
    store = JsonFileKeyValueStore(str(path))
    assert store.get("missing") is None

    store.set("a", "1")
    store.set("b", "[]")
    assert json.loads(path.read_text(encoding="utf-8")) == {"a": "1", "b": "[]"}

    store.delete("a")
    assert JsonFileKeyValueStore(str(path)).get("a") is None
    assert JsonFileKeyValueStore(str(path)).get("b") == "[]"


def test_rule_store_path_from_env(monkeypatch):
    monkeypatch.setenv("RULE_STORE_PATH", "/tmp/custom-rules.json")
    assert rule_store_path() == "/tmp/custom-rules.json"
    assert JsonFileKeyValueStore().path == "/tmp/custom-rules.json"


def test_rules_survive_reopening_the_file(tmp_path, make_parsed_rule):
    path = str(tmp_path / "rules.json")
    saved = RuleStore(JsonFileKeyValueStore(path)).save(make_parsed_rule(), "x")
    reopened = RuleStore(JsonFileKeyValueStore(path))
    assert reopened.get_by_id(saved.id) == saved
    assert len(reopened.get_version_history()) == 1


def test_concurrent_saves_keep_one_lineage(tmp_path, make_parsed_rule):
    store = RuleStore(JsonFileKeyValueStore(str(tmp_path / "rules.json")))
    barrier = threading.Barrier(8)
    errors: list[Exception] = []

    def _save():
        barrier.wait()
        try:
            store.save(make_parsed_rule(), "x")
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=_save) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    rules = store.get_all()
    assert sorted(r.version for r in rules) == list(range(1, 9))
    assert len(store.get_active()) == 1
    assert len(store.get_version_history()) == 8


def test_writes_leave_no_temp_files(tmp_path):
    store = JsonFileKeyValueStore(str(tmp_path / "rules.json"))
    store.set("a", "1")
    store.set("a", "2")
    assert [p.name for p in tmp_path.iterdir()] == ["rules.json"]


def test_corrupt_file_raises_store_error(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(RuleStoreError):
        RuleStore(JsonFileKeyValueStore(str(path))).get_all()
