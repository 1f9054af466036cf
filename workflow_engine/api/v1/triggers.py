"""
Trigger endpoints: catalogs for rule authoring, plus evaluation and
dispatch of business events against the active rules.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ...core.auth import UserContext, get_current_user
from ...core.db import get_db
from ...schemas.enums import TriggerType
from ...schemas.execution import PlannedActionOut, TriggerEventIn
from ...services import catalog
from ...services.dispatcher import dispatch_trigger, evaluate_rules


router = APIRouter(prefix="/api/v1/workflow-triggers", tags=["workflow-triggers"])


def _parse_trigger(raw: str) -> TriggerType:
    for trigger in TriggerType:
        if trigger.value.lower() == raw.strip().lower():
            return trigger
    raise HTTPException(status_code=404, detail=f"Unknown trigger type '{raw}'")


@router.get("")
def list_trigger_types() -> list[dict]:
    return catalog.list_trigger_types()


@router.get("/actions")
def list_action_types() -> list[dict]:
    return catalog.list_action_types()


@router.get("/operators")
def list_condition_types() -> list[dict]:
    return catalog.list_condition_types()


@router.get("/{trigger_type}/fields")
def trigger_fields(trigger_type: str) -> list[dict]:
    return catalog.get_trigger_fields(_parse_trigger(trigger_type))


@router.post("/{trigger_type}/evaluate", response_model=List[PlannedActionOut])
def evaluate(
    trigger_type: str,
    event: TriggerEventIn,
    db: Session = Depends(get_db),
) -> List[PlannedActionOut]:
    trigger = _parse_trigger(trigger_type)
    return [PlannedActionOut.model_validate(a) for a in evaluate_rules(db, trigger, event.payload)]


@router.post("/{trigger_type}/dispatch")
def dispatch(
    trigger_type: str,
    event: TriggerEventIn,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> dict:
    trigger = _parse_trigger(trigger_type)
    result = dispatch_trigger(db, trigger, event.payload, user=user)
    return {
        "trigger_type": result.trigger_type,
        "rules_evaluated": result.rules_evaluated,
        "rules_matched": result.rules_matched,
        "history_ids": result.history_ids,
        "executions": [
            {
                "rule_id": record.rule_id,
                "rule_name": record.rule_name,
                "status": record.status,
                "duration_ms": record.duration_ms,
                "error_message": record.error_message,
                "actions_executed": len(record.outcomes),
                "actions_succeeded": record.actions_succeeded,
            }
            for record in result.executions
        ],
    }
