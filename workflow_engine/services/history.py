"""
Execution history recording, queries and per-rule metrics.

History rows are append-only: one row per dispatched rule with one child
row per executed action. Nothing in this module updates an existing row.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional, Tuple

from sqlalchemy import case, func
from sqlalchemy.orm import Session, selectinload

from ..core.db import commit_or_raise
from ..core.errors import NotFoundError
from ..core.pagination import paginate
from ..models.execution import MESSAGE_MAX_LENGTH, WorkflowActionExecutionResult, WorkflowExecutionHistory
from ..models.rule import WorkflowRule
from ..schemas.enums import ExecutionStatus
from .actions import ActionOutcome
from .payload import snapshot_payload

_logger = logging.getLogger("workflow_history")

HISTORY_SORT_FIELDS = {
    "start_time": WorkflowExecutionHistory.start_time,
    "duration": WorkflowExecutionHistory.duration_ms,
    "status": WorkflowExecutionHistory.status,
    "rule_name": WorkflowExecutionHistory.rule_name,
}


@dataclass
class ExecutionRecord:
    rule_id: str
    rule_name: str
    trigger_type: str
    trigger_data: dict
    start_time: datetime
    end_time: datetime
    status: str
    executed_by: Optional[str] = None
    error_message: Optional[str] = None
    outcomes: list[ActionOutcome] = field(default_factory=list)

    @property
    def duration_ms(self) -> float:
        return max((self.end_time - self.start_time).total_seconds() * 1000.0, 0.0)

    @property
    def actions_succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.success)


@dataclass
class RuleMetrics:
    rule_id: str
    rule_name: str
    total_executions: int = 0
    successful_executions: int = 0
    failed_executions: int = 0
    success_rate: float = 0.0
    average_execution_time_ms: float = 0.0
    last_execution_time: Optional[datetime] = None


def build_execution_record(
    rule: WorkflowRule,
    *,
    trigger_type: str,
    payload: Any,
    outcomes: list[ActionOutcome],
    start_time: datetime,
    end_time: datetime,
    executed_by: Optional[str],
    error: Optional[str] = None,
) -> ExecutionRecord:
    """A rule run succeeds only when every executed action succeeded."""
    failed = [o for o in outcomes if not o.success]
    status = ExecutionStatus.FAILED if failed or error else ExecutionStatus.SUCCESS
    return ExecutionRecord(
        rule_id=rule.id,
        rule_name=rule.name,
        trigger_type=trigger_type,
        trigger_data=snapshot_payload(payload),
        start_time=start_time,
        end_time=end_time,
        status=status.value,
        executed_by=executed_by,
        error_message=error or (failed[0].error_message if failed else None),
        outcomes=list(outcomes),
    )


def _clip(text: Optional[str], limit: int = MESSAGE_MAX_LENGTH) -> Optional[str]:
    if text is None or len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def record_execution(db: Session, record: ExecutionRecord) -> WorkflowExecutionHistory:
    row = WorkflowExecutionHistory(
        rule_id=record.rule_id,
        rule_name=_clip(record.rule_name, 200),
        status=record.status,
        trigger_type=record.trigger_type,
        trigger_data=record.trigger_data,
        start_time=record.start_time,
        end_time=record.end_time,
        duration_ms=record.duration_ms,
        error_message=_clip(record.error_message),
        executed_by=_clip(record.executed_by, 128),
        actions_executed=len(record.outcomes),
        actions_succeeded=record.actions_succeeded,
    )
    for position, outcome in enumerate(record.outcomes):
        row.action_results.append(
            WorkflowActionExecutionResult(
                action_id=outcome.action_id,
                action_type=outcome.action_type,
                position=position,
                success=outcome.success,
                result=_clip(outcome.result),
                error_message=_clip(outcome.error_message),
                duration_ms=outcome.duration_ms,
            )
        )
    db.add(row)
    commit_or_raise(db, _logger, "Execution history write", extra={"rule_id": record.rule_id})
    db.refresh(row)
    return row


def get_execution(db: Session, execution_id: str) -> WorkflowExecutionHistory:
    row = (
        db.query(WorkflowExecutionHistory)
        .options(selectinload(WorkflowExecutionHistory.action_results))
        .filter(WorkflowExecutionHistory.id == execution_id)
        .first()
    )
    if not row:
        raise NotFoundError(f"Execution {execution_id} not found")
    return row


def query_execution_history(
    db: Session,
    *,
    rule_id: Optional[str] = None,
    status: Optional[str] = None,
    trigger_type: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    executed_by: Optional[str] = None,
    sort_by: str = "start_time",
    sort_desc: bool = True,
    page: int = 1,
    page_size: int = 20,
) -> Tuple[list[WorkflowExecutionHistory], int]:
    query = db.query(WorkflowExecutionHistory)
    if rule_id:
        query = query.filter(WorkflowExecutionHistory.rule_id == rule_id)
    if status:
        query = query.filter(WorkflowExecutionHistory.status == status)
    if trigger_type:
        query = query.filter(WorkflowExecutionHistory.trigger_type == trigger_type)
    if start_date:
        query = query.filter(WorkflowExecutionHistory.start_time >= start_date)
    if end_date:
        query = query.filter(WorkflowExecutionHistory.start_time <= end_date)
    if executed_by:
        query = query.filter(WorkflowExecutionHistory.executed_by == executed_by)
    column = HISTORY_SORT_FIELDS.get((sort_by or "").lower(), WorkflowExecutionHistory.start_time)
    ordering = column.desc() if sort_desc else column.asc()
    query = query.options(selectinload(WorkflowExecutionHistory.action_results))
    return paginate(query.order_by(ordering, WorkflowExecutionHistory.id.asc()), page, page_size)


def get_rule_metrics(db: Session, rule: WorkflowRule) -> RuleMetrics:
    total, succeeded, avg_ms, last_start = (
        db.query(
            func.count(WorkflowExecutionHistory.id),
            func.sum(case((WorkflowExecutionHistory.status == ExecutionStatus.SUCCESS.value, 1), else_=0)),
            func.avg(WorkflowExecutionHistory.duration_ms),
            func.max(WorkflowExecutionHistory.start_time),
        )
        .filter(WorkflowExecutionHistory.rule_id == rule.id)
        .one()
    )
    total = int(total or 0)
    succeeded = int(succeeded or 0)
    return RuleMetrics(
        rule_id=rule.id,
        rule_name=rule.name,
        total_executions=total,
        successful_executions=succeeded,
        failed_executions=total - succeeded,
        success_rate=round(succeeded * 100.0 / total, 2) if total else 0.0,
        average_execution_time_ms=round(float(avg_ms or 0.0), 3),
        last_execution_time=last_start,
    )


@dataclass
class TriggerMetrics:
    trigger_type: str
    execution_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    success_rate: float = 0.0


@dataclass
class WorkflowMetrics:
    total_rules: int = 0
    active_rules: int = 0
    total_executions: int = 0
    successful_executions: int = 0
    failed_executions: int = 0
    success_rate: float = 0.0
    average_execution_time_ms: float = 0.0
    trigger_metrics: list[TriggerMetrics] = field(default_factory=list)


def _rate(part: int, whole: int) -> float:
    return round(part * 100.0 / whole, 2) if whole else 0.0


def get_workflow_metrics(
    db: Session,
    *,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    trigger_types: Optional[Iterable[str]] = None,
    rule_ids: Optional[Iterable[str]] = None,
) -> WorkflowMetrics:
    """Totals across every rule's history; rule counts ignore the history filters."""
    succeeded = func.sum(case((WorkflowExecutionHistory.status == ExecutionStatus.SUCCESS.value, 1), else_=0))
    failed = func.sum(case((WorkflowExecutionHistory.status == ExecutionStatus.FAILED.value, 1), else_=0))
    query = db.query(
        WorkflowExecutionHistory.trigger_type,
        func.count(WorkflowExecutionHistory.id),
        succeeded,
        failed,
        func.sum(WorkflowExecutionHistory.duration_ms),
    )
    if start_date:
        query = query.filter(WorkflowExecutionHistory.start_time >= start_date)
    if end_date:
        query = query.filter(WorkflowExecutionHistory.start_time <= end_date)
    triggers = [str(getattr(t, "value", t)) for t in (trigger_types or [])]
    if triggers:
        query = query.filter(WorkflowExecutionHistory.trigger_type.in_(triggers))
    rules = list(rule_ids or [])
    if rules:
        query = query.filter(WorkflowExecutionHistory.rule_id.in_(rules))

    metrics = WorkflowMetrics(
        total_rules=db.query(func.count(WorkflowRule.id)).scalar() or 0,
        active_rules=db.query(func.count(WorkflowRule.id)).filter(WorkflowRule.is_active == True).scalar() or 0,  # noqa: E712
    )
    total_ms = 0.0
    for trigger_type, count, ok, bad, duration in query.group_by(WorkflowExecutionHistory.trigger_type).all():
        count, ok, bad = int(count or 0), int(ok or 0), int(bad or 0)
        metrics.trigger_metrics.append(
            TriggerMetrics(
                trigger_type=trigger_type,
                execution_count=count,
                success_count=ok,
                failure_count=bad,
                success_rate=_rate(ok, count),
            )
        )
        metrics.total_executions += count
        metrics.successful_executions += ok
        metrics.failed_executions += bad
        total_ms += float(duration or 0.0)
    metrics.trigger_metrics.sort(key=lambda m: m.trigger_type)
    metrics.success_rate = _rate(metrics.successful_executions, metrics.total_executions)
    if metrics.total_executions:
        metrics.average_execution_time_ms = round(total_ms / metrics.total_executions, 3)
    return metrics
