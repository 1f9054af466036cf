"""
Execution history endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from ...core.auth import UserContext, require_admin
from ...core.db import get_db
from ...core.errors import NotFoundError, WorkflowError
from ...core.pagination import DEFAULT_PAGE_SIZE, clamp_page_size, page_envelope
from ...schemas.execution import ExecutionHistoryOut, RuleExecutionOut, WorkflowMetricsOut
from ...services.dispatcher import retry_execution
from ...services.history import get_execution, get_workflow_metrics, query_execution_history


router = APIRouter(prefix="/api/v1/workflow-executions", tags=["workflow-executions"])


@router.get("", response_model=dict)
def list_executions(
    response: Response,
    rule_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    trigger_type: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    executed_by: Optional[str] = Query(None),
    sort_by: str = Query("start_time"),
    sort_desc: bool = Query(True),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    db: Session = Depends(get_db),
) -> dict:
    page_size = clamp_page_size(page_size)
    items, total = query_execution_history(
        db,
        rule_id=rule_id,
        status=status,
        trigger_type=trigger_type,
        start_date=start_date,
        end_date=end_date,
        executed_by=executed_by,
        sort_by=sort_by,
        sort_desc=sort_desc,
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


@router.get("/metrics", response_model=WorkflowMetricsOut)
def workflow_metrics(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    trigger_types: Optional[List[str]] = Query(None),
    rule_ids: Optional[List[str]] = Query(None),
    db: Session = Depends(get_db),
) -> WorkflowMetricsOut:
    metrics = get_workflow_metrics(
        db,
        start_date=start_date,
        end_date=end_date,
        trigger_types=trigger_types,
        rule_ids=rule_ids,
    )
    return WorkflowMetricsOut.model_validate(metrics)


@router.get("/{execution_id}", response_model=ExecutionHistoryOut)
def get_execution_detail(execution_id: str, db: Session = Depends(get_db)) -> ExecutionHistoryOut:
    try:
        return ExecutionHistoryOut.model_validate(get_execution(db, execution_id))
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post("/{execution_id}/retry", response_model=RuleExecutionOut)
def retry(
    execution_id: str,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin),
) -> RuleExecutionOut:
    try:
        execution = retry_execution(db, execution_id, user=user)
    except WorkflowError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return RuleExecutionOut.model_validate(execution)
