import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from api.deps import get_rule_store
from common.audit_rules.store import RULES_KEY


RULE = {
    "rule_type": "expense_amount_threshold",
    "conditions": [{"field": "amount", "operator": "gt", "value": 1000}],
    "action": "flag",
    "reason": "Flag based on expense amount threshold",
    "confidence_score": 0.6,
}


@pytest.fixture
def client(rule_store) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_rule_store] = lambda: rule_store
    return TestClient(app)


def _save(client, **extra):
    body = {"rule": RULE, "original_instruction": "Flag any expense above $1,000", **extra}
    resp = client.post("/rules", json=body)
    assert resp.status_code == 201
    return resp.json()


def test_save_versions_and_rollback(client):
    first = _save(client, created_by="alice")
    second = _save(client)
    assert (first["version"], second["version"]) == (1, 2)
    assert second["created_by"] == "system"

    versions = client.get("/rules/types/expense_amount_threshold/versions").json()
    assert [v["version"] for v in versions] == [2, 1]

    resp = client.post("/rules/types/expense_amount_threshold/rollback", json={"version": 1})
    assert resp.status_code == 200
    assert resp.json()["id"] == first["id"]
    assert [r["id"] for r in client.get("/rules/active").json()] == [first["id"]]

    missing = client.post("/rules/types/expense_amount_threshold/rollback", json={"version": 9})
    assert missing.status_code == 404


def test_get_deactivate_delete(client):
    rule = _save(client)
    assert client.get(f"/rules/{rule['id']}").json()["id"] == rule["id"]
    assert client.get("/rules/nope").status_code == 404

    assert client.post(f"/rules/{rule['id']}/deactivate").status_code == 200
    assert client.get("/rules/active").json() == []
    assert client.post("/rules/nope/deactivate").status_code == 404

    assert client.delete(f"/rules/{rule['id']}").status_code == 200
    assert client.delete(f"/rules/{rule['id']}").status_code == 404
    assert client.get("/rules").json() == []


def test_stats_and_history(client):
    rule = _save(client)
    stats = client.get("/rules/stats").json()
    assert stats == {
        "total": 1,
        "active": 1,
        "byType": {"expense_amount_threshold": 1},
        "byAction": {"flag": 1},
    }
    history = client.get("/rules/history").json()
    assert history[0]["rule_id"] == rule["id"]


def test_export_import_and_clear(client):
    _save(client)
    exported = client.get("/rules/export").text

    assert client.delete("/rules").status_code == 204
    assert client.get("/rules").json() == []

    bad = client.post("/rules/import", content=b'[{"id": "x"}]')
    assert bad.status_code == 400

    ok = client.post("/rules/import", content=exported.encode("utf-8"))
    assert ok.status_code == 200
    assert ok.json()["imported"] == 1


def test_invalid_rule_body_is_422(client):
    resp = client.post("/rules", json={"rule": dict(RULE, confidence_score=2)})
    assert resp.status_code == 422


def test_import_non_utf8_body_is_400(client):
    _save(client)
    resp = client.post("/rules/import", content=b"\xff\xfe[]")
    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Invalid rules payload")
    assert len(client.get("/rules").json()) == 1


def test_corrupt_store_is_500(client, kv_store):
    kv_store.set(RULES_KEY, "{not json")
    resp = client.get("/rules")
    assert resp.status_code == 500
    assert "Corrupt rule store data" in resp.json()["detail"]
