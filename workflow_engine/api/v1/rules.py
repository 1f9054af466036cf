"""
API endpoints for managing workflow rules.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from ...core.auth import UserContext, get_current_user, require_admin
from ...core.db import get_db
from ...core.errors import WorkflowError
from ...core.pagination import DEFAULT_PAGE_SIZE, clamp_page_size, page_envelope
from ...schemas.execution import ExecutionHistoryOut, RuleExecutionOut, RuleMetricsOut, RuleTestResultOut, TriggerEventIn
from ...schemas.rule import RuleClone, RuleCreate, RuleOut, RuleTestRequest, RuleToggle, RuleUpdate
from ...services import history as history_service
from ...services import rules as rule_service
from ...services.dispatcher import execute_rule
from ...services.rule_tester import dry_run_rule


router = APIRouter(prefix="/api/v1/workflow-rules", tags=["workflow-rules"])


def _http_error(exc: WorkflowError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=str(exc))


@router.get("", response_model=dict)
def list_rules(
    response: Response,
    name: Optional[str] = Query(None),
    trigger_type: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    created_after: Optional[datetime] = Query(None),
    created_before: Optional[datetime] = Query(None),
    created_by: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None),
    sort_desc: bool = Query(True),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    db: Session = Depends(get_db),
) -> dict:
    page_size = clamp_page_size(page_size)
    items, total = rule_service.list_rules(
        db,
        name=name,
        trigger_type=trigger_type,
        is_active=is_active,
        created_after=created_after,
        created_before=created_before,
        created_by=created_by,
        sort_by=sort_by,
        sort_desc=sort_desc,
        page=page,
        page_size=page_size,
    )
    return page_envelope(
        response,
        [RuleOut.model_validate(r).model_dump(mode="json") for r in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("", response_model=RuleOut, status_code=201)
def create_rule(
    payload: RuleCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin),
) -> RuleOut:
    try:
        rule = rule_service.create_rule(db, payload, user=user)
    except WorkflowError as exc:
        raise _http_error(exc) from exc
    return RuleOut.model_validate(rule)


@router.get("/{rule_id}", response_model=RuleOut)
def get_rule(rule_id: str, db: Session = Depends(get_db)) -> RuleOut:
    try:
        return RuleOut.model_validate(rule_service.get_rule(db, rule_id))
    except WorkflowError as exc:
        raise _http_error(exc) from exc


@router.put("/{rule_id}", response_model=RuleOut)
def update_rule(
    rule_id: str,
    payload: RuleUpdate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin),
) -> RuleOut:
    try:
        rule = rule_service.update_rule(db, rule_id, payload, user=user)
    except WorkflowError as exc:
        raise _http_error(exc) from exc
    return RuleOut.model_validate(rule)


@router.delete("/{rule_id}", status_code=204)
def delete_rule(
    rule_id: str,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin),
) -> Response:
    try:
        rule_service.delete_rule(db, rule_id, user=user)
    except WorkflowError as exc:
        raise _http_error(exc) from exc
    return Response(status_code=204)


@router.post("/{rule_id}/toggle", response_model=RuleOut)
def toggle_rule(
    rule_id: str,
    payload: Optional[RuleToggle] = None,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin),
) -> RuleOut:
    try:
        rule = rule_service.toggle_rule(
            db, rule_id, user=user, is_active=payload.is_active if payload else None
        )
    except WorkflowError as exc:
        raise _http_error(exc) from exc
    return RuleOut.model_validate(rule)


@router.post("/{rule_id}/clone", response_model=RuleOut, status_code=201)
def clone_rule(
    rule_id: str,
    payload: Optional[RuleClone] = None,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin),
) -> RuleOut:
    try:
        clone = rule_service.clone_rule(db, rule_id, user=user, name=payload.name if payload else None)
    except WorkflowError as exc:
        raise _http_error(exc) from exc
    return RuleOut.model_validate(clone)


@router.post("/{rule_id}/test", response_model=RuleTestResultOut)
def test_rule(
    rule_id: str,
    payload: RuleTestRequest,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> RuleTestResultOut:
    try:
        result = dry_run_rule(db, rule_id, payload.sample_data)
    except WorkflowError as exc:
        raise _http_error(exc) from exc
    return RuleTestResultOut.model_validate(result)


@router.post("/{rule_id}/execute", response_model=RuleExecutionOut)
def execute(
    rule_id: str,
    event: TriggerEventIn,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin),
) -> RuleExecutionOut:
    try:
        execution = execute_rule(db, rule_id, event.payload, user=user)
    except WorkflowError as exc:
        raise _http_error(exc) from exc
    return RuleExecutionOut.model_validate(execution)


@router.get("/{rule_id}/metrics", response_model=RuleMetricsOut)
def rule_metrics(rule_id: str, db: Session = Depends(get_db)) -> RuleMetricsOut:
    try:
        rule = rule_service.get_rule(db, rule_id)
    except WorkflowError as exc:
        raise _http_error(exc) from exc
    return RuleMetricsOut.model_validate(history_service.get_rule_metrics(db, rule))


@router.get("/{rule_id}/history", response_model=dict)
def rule_history(
    rule_id: str,
    response: Response,
    status: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    db: Session = Depends(get_db),
) -> dict:
    try:
        rule_service.get_rule(db, rule_id)
    except WorkflowError as exc:
        raise _http_error(exc) from exc
    page_size = clamp_page_size(page_size)
    items, total = history_service.query_execution_history(
        db,
        rule_id=rule_id,
        status=status,
        start_date=start_date,
        end_date=end_date,
        page=page,
        page_size=page_size,
    )
    return page_envelope(
        response,
        [ExecutionHistoryOut.model_validate(row).model_dump(mode="json") for row in items],
        total=total,
        page=page,
        page_size=page_size,
    )
