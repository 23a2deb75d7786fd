from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from common.audit_rules.models import AuditRule, ParsedRule, RuleStats, RuleType, VersionHistoryEntry
from common.audit_rules.store import RuleStore

from .deps import get_rule_store


router = APIRouter(prefix="/rules", tags=["rules"])

INVALID_IMPORT_DETAIL = "Invalid rules payload; existing rules left unchanged."


class SaveRuleRequest(BaseModel):
    rule: ParsedRule
    original_instruction: str = ""
    created_by: str = "system"


class RollbackRequest(BaseModel):
    version: int = Field(ge=1)


@router.get("", response_model=List[AuditRule])
def list_rules(store: RuleStore = Depends(get_rule_store)):
    return store.get_all()


@router.post("", response_model=AuditRule, status_code=status.HTTP_201_CREATED)
def save_rule(body: SaveRuleRequest, store: RuleStore = Depends(get_rule_store)):
    return store.save(body.rule, body.original_instruction, body.created_by)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def clear_rules(store: RuleStore = Depends(get_rule_store)):
    store.clear()


@router.get("/active", response_model=List[AuditRule])
def list_active_rules(store: RuleStore = Depends(get_rule_store)):
    return store.get_active()


@router.get("/stats", response_model=RuleStats)
def rule_stats(store: RuleStore = Depends(get_rule_store)):
    return store.stats()


@router.get("/history", response_model=List[VersionHistoryEntry])
def version_history(store: RuleStore = Depends(get_rule_store)):
    return store.get_version_history()


@router.get("/export", response_class=PlainTextResponse)
def export_rules(store: RuleStore = Depends(get_rule_store)):
    return PlainTextResponse(store.export_all(), media_type="application/json")


@router.post("/import")
async def import_rules(request: Request, store: RuleStore = Depends(get_rule_store)):
    try:
        raw = (await request.body()).decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail=INVALID_IMPORT_DETAIL)
    if not store.import_all(raw):
        raise HTTPException(status_code=400, detail=INVALID_IMPORT_DETAIL)
    return {"status": "ok", "imported": len(store.get_all())}


@router.get("/types/{rule_type}/versions", response_model=List[AuditRule])
def rule_versions(rule_type: RuleType, store: RuleStore = Depends(get_rule_store)):
    return store.get_versions(rule_type)


@router.post("/types/{rule_type}/rollback", response_model=AuditRule)
def rollback_rule(rule_type: RuleType, body: RollbackRequest, store: RuleStore = Depends(get_rule_store)):
    rule = store.rollback(rule_type, body.version)
    if rule is None:
        raise HTTPException(status_code=404, detail=f"No {rule_type.value} rule at version {body.version}.")
    return rule


@router.get("/{rule_id}", response_model=AuditRule)
def get_rule(rule_id: str, store: RuleStore = Depends(get_rule_store)):
    rule = store.get_by_id(rule_id)
    if rule is None:
        raise HTTPException(status_code=404, detail="Rule not found.")
    return rule


@router.post("/{rule_id}/deactivate")
def deactivate_rule(rule_id: str, store: RuleStore = Depends(get_rule_store)):
    if not store.deactivate(rule_id):
        raise HTTPException(status_code=404, detail="Rule not found.")
    return {"status": "ok", "id": rule_id}


@router.delete("/{rule_id}")
def delete_rule(rule_id: str, store: RuleStore = Depends(get_rule_store)):
    if not store.delete(rule_id):
        raise HTTPException(status_code=404, detail="Rule not found.")
    return {"status": "ok", "id": rule_id}
