"""
Trigger dispatch: match active rules for a trigger type and plan or run
their actions.

`evaluate_rules` is a pure read. `dispatch_trigger` additionally runs the
planned actions through the executors and writes one history row per
matched rule. Every rule is evaluated and executed in its own failure
scope so a broken rule cannot block its siblings.

`execute_rule` and `retry_execution` run one rule on demand, outside the
trigger fan-out.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session, joinedload

from ..core.auth import UserContext
from ..core.errors import ConflictError, guarded_call, log_exception
from ..models.rule import WorkflowRule
from ..schemas.enums import ExecutionStatus
from .actions import PlannedAction, plan_actions, run_actions
from .conditions import EvaluationResult, evaluate_conditions
from .executors import ExecutorSet, build_executors
from .history import ExecutionRecord, build_execution_record, get_execution, record_execution
from .rules import get_rule

_logger = logging.getLogger("workflow_dispatch")


@dataclass
class RuleMatch:
    rule: WorkflowRule
    evaluation: EvaluationResult
    actions: list[PlannedAction] = field(default_factory=list)


@dataclass
class DispatchResult:
    trigger_type: str
    rules_evaluated: int = 0
    executions: list[ExecutionRecord] = field(default_factory=list)
    history_ids: list[str] = field(default_factory=list)

    @property
    def rules_matched(self) -> int:
        return len(self.executions)


@dataclass
class RuleExecution:
    rule_id: str
    rule_name: str
    conditions_matched: bool
    record: ExecutionRecord
    history_id: Optional[str] = None

    @property
    def status(self) -> str:
        return self.record.status

    @property
    def duration_ms(self) -> float:
        return self.record.duration_ms

    @property
    def error_message(self) -> Optional[str]:
        return self.record.error_message

    @property
    def action_results(self) -> list:
        return self.record.outcomes


def _trigger_value(trigger_type: Any) -> str:
    return str(getattr(trigger_type, "value", trigger_type))


def load_active_rules(db: Session, trigger_type: Any) -> list[WorkflowRule]:
    """Active rules for a trigger, ascending priority, children loaded in one statement."""
    return (
        db.query(WorkflowRule)
        .options(joinedload(WorkflowRule.conditions), joinedload(WorkflowRule.actions))
        .filter(
            WorkflowRule.trigger_type == _trigger_value(trigger_type),
            WorkflowRule.is_active == True,  # noqa: E712
        )
        .order_by(WorkflowRule.priority.asc(), WorkflowRule.created_at.asc(), WorkflowRule.id.asc())
        .all()
    )


def match_rules(db: Session, trigger_type: Any, payload: Any) -> tuple[list[RuleMatch], int]:
    rules = load_active_rules(db, trigger_type)
    matches: list[RuleMatch] = []
    for rule in rules:
        try:
            evaluation = evaluate_conditions(rule.conditions, payload)
            if evaluation.matched:
                matches.append(RuleMatch(rule=rule, evaluation=evaluation, actions=plan_actions(rule)))
        except Exception as exc:
            log_exception(
                _logger,
                "Rule evaluation failed; skipping rule",
                extra={"rule_id": rule.id, "trigger_type": _trigger_value(trigger_type)},
                exc=exc,
            )
    return matches, len(rules)


def evaluate_rules(db: Session, trigger_type: Any, payload: Any) -> list[PlannedAction]:
    """Ordered actions of every matching rule: rule priority first, then action order."""
    matches, _ = match_rules(db, trigger_type, payload)
    planned: list[PlannedAction] = []
    for match in matches:
        planned.extend(match.actions)
    return planned


def _run_rule(
    db: Session,
    rule: WorkflowRule,
    *,
    trigger: str,
    payload: Any,
    actions: list[PlannedAction],
    executors: ExecutorSet,
    executed_by: Optional[str],
    error: Optional[str] = None,
) -> tuple[ExecutionRecord, Optional[str]]:
    """Run planned actions for one rule and append its history row."""
    start_time = datetime.utcnow()
    outcomes = []
    if actions:
        try:
            outcomes = run_actions(actions, lambda action: executors.execute(action, payload))
        except Exception as exc:
            log_exception(_logger, "Rule execution failed", extra={"rule_id": rule.id}, exc=exc)
            error = f"Rule execution failed: {exc}"
    record = build_execution_record(
        rule,
        trigger_type=trigger,
        payload=payload,
        outcomes=outcomes,
        start_time=start_time,
        end_time=datetime.utcnow(),
        executed_by=executed_by,
        error=error,
    )
    row = guarded_call(
        "Execution history write",
        lambda: record_execution(db, record),
        logger=_logger,
        context={"rule_id": rule.id},
    )
    return record, (row.id if row is not None else None)


def dispatch_trigger(
    db: Session,
    trigger_type: Any,
    payload: Any,
    *,
    user: Optional[UserContext] = None,
    executors: Optional[ExecutorSet] = None,
) -> DispatchResult:
    trigger = _trigger_value(trigger_type)
    executors = executors or build_executors()
    executed_by = user.actor if user else None
    matches, evaluated = match_rules(db, trigger, payload)
    result = DispatchResult(trigger_type=trigger, rules_evaluated=evaluated)
    for match in matches:
        record, history_id = _run_rule(
            db,
            match.rule,
            trigger=trigger,
            payload=payload,
            actions=match.actions,
            executors=executors,
            executed_by=executed_by,
        )
        result.executions.append(record)
        if history_id is not None:
            result.history_ids.append(history_id)
    _logger.info(
        "Dispatched trigger=%s evaluated=%s matched=%s",
        trigger,
        result.rules_evaluated,
        result.rules_matched,
    )
    return result


def _execute(
    db: Session,
    rule: WorkflowRule,
    payload: Any,
    *,
    executed_by: Optional[str],
    executors: Optional[ExecutorSet],
) -> RuleExecution:
    error: Optional[str] = None
    matched = False
    try:
        matched = evaluate_conditions(rule.conditions, payload).matched
    except Exception as exc:
        log_exception(_logger, "Rule evaluation failed", extra={"rule_id": rule.id}, exc=exc)
        error = f"Rule evaluation failed: {exc}"
    record, history_id = _run_rule(
        db,
        rule,
        trigger=rule.trigger_type,
        payload=payload,
        actions=plan_actions(rule) if matched else [],
        executors=executors or build_executors(),
        executed_by=executed_by,
        error=error,
    )
    return RuleExecution(
        rule_id=rule.id,
        rule_name=rule.name,
        conditions_matched=matched,
        record=record,
        history_id=history_id,
    )


def execute_rule(
    db: Session,
    rule_id: str,
    payload: Any,
    *,
    user: Optional[UserContext] = None,
    executors: Optional[ExecutorSet] = None,
) -> RuleExecution:
    """
    Run a single rule against `payload` on demand.

    The active flag is not consulted. Conditions are still evaluated; when
    they do not match no action runs, and a successful history row with no
    action results is written so manual runs always leave a trace.
    """
    rule = get_rule(db, rule_id)
    execution = _execute(db, rule, payload, executed_by=user.actor if user else None, executors=executors)
    _logger.info(
        "Executed rule=%s matched=%s status=%s",
        rule.id,
        execution.conditions_matched,
        execution.record.status,
    )
    return execution


def retry_execution(
    db: Session,
    execution_id: str,
    *,
    user: Optional[UserContext] = None,
    executors: Optional[ExecutorSet] = None,
) -> RuleExecution:
    """Re-run the rule of a failed execution with its stored trigger payload.

    The original row is left untouched; the retry appends a new one.
    """
    original = get_execution(db, execution_id)
    if original.status != ExecutionStatus.FAILED.value:
        raise ConflictError(f"Only failed executions can be retried (status is {original.status})")
    rule = get_rule(db, original.rule_id)
    executed_by = user.actor if user else original.executed_by
    execution = _execute(db, rule, original.trigger_data or {}, executed_by=executed_by, executors=executors)
    _logger.info(
        "Retried execution=%s rule=%s status=%s",
        original.id,
        rule.id,
        execution.record.status,
    )
    return execution
