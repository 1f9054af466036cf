"""
Workflow rule CRUD.

A rule is always written together with its full condition and action set.
Updates replace both sets inside one transaction, so a concurrent dispatch
sees either the previous definition or the new one.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime
from typing import Iterable, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..core.auth import UserContext
from ..core.config import retain_history_on_delete
from ..core.db import commit_or_raise
from ..core.errors import ConflictError, NotFoundError, PersistenceError, RuleValidationError, log_exception
from ..core.pagination import paginate
from ..models.execution import WorkflowExecutionHistory
from ..models.rule import WorkflowAction, WorkflowCondition, WorkflowRule
from ..schemas.enums import Operator
from ..schemas.rule import ActionIn, ConditionIn, RuleCreate, RuleUpdate

_logger = logging.getLogger("workflow_rules")

RULE_SORT_FIELDS = {
    "name": WorkflowRule.name,
    "priority": WorkflowRule.priority,
    "trigger_type": WorkflowRule.trigger_type,
    "is_active": WorkflowRule.is_active,
    "created": WorkflowRule.created_at,
    "updated": WorkflowRule.updated_at,
}


def _utc_now() -> datetime:
    return datetime.utcnow()


def validate_definition(conditions: Iterable[ConditionIn], actions: Iterable[ActionIn]) -> None:
    seen: set[int] = set()
    for condition in conditions:
        if condition.order in seen:
            raise RuleValidationError(f"Duplicate condition order {condition.order}")
        seen.add(condition.order)
        if Operator.parse(condition.operator) is None:
            raise RuleValidationError(
                f"Unknown operator '{condition.operator}' on field '{condition.field_name}'"
            )
    for action in actions:
        if not isinstance(action.parameters, dict):
            raise RuleValidationError(f"Parameters of {action.action_type.value} must be an object")


def _build_conditions(conditions: Iterable[ConditionIn]) -> list[WorkflowCondition]:
    return [
        WorkflowCondition(
            condition_type=c.condition_type.value,
            field_name=c.field_name.strip(),
            operator=c.operator,
            value=c.value,
            logical_operator=c.logical_operator.value,
            order=c.order,
        )
        for c in conditions
    ]


def _build_actions(actions: Iterable[ActionIn]) -> list[WorkflowAction]:
    return [
        WorkflowAction(
            action_type=a.action_type.value,
            parameters=copy.deepcopy(a.parameters),
            order=a.order,
            continue_on_error=a.continue_on_error,
            error_handling=a.error_handling,
        )
        for a in actions
    ]


def create_rule(
    db: Session,
    payload: RuleCreate,
    *,
    user: UserContext,
    template_id: Optional[str] = None,
    commit: bool = True,
) -> WorkflowRule:
    validate_definition(payload.conditions, payload.actions)
    rule = WorkflowRule(
        name=payload.name.strip(),
        description=payload.description,
        trigger_type=payload.trigger_type.value,
        is_active=payload.is_active,
        priority=payload.priority,
        template_id=template_id,
        created_by=user.actor,
        updated_by=user.actor,
    )
    rule.conditions = _build_conditions(payload.conditions)
    rule.actions = _build_actions(payload.actions)
    db.add(rule)
    if not commit:
        return rule
    commit_or_raise(db, _logger, "Create workflow rule", extra={"name": rule.name})
    db.refresh(rule)
    _logger.info("Created workflow rule id=%s name=%s trigger=%s", rule.id, rule.name, rule.trigger_type)
    return rule


def get_rule(db: Session, rule_id: str) -> WorkflowRule:
    rule = (
        db.query(WorkflowRule)
        .options(selectinload(WorkflowRule.conditions), selectinload(WorkflowRule.actions))
        .filter(WorkflowRule.id == rule_id)
        .first()
    )
    if not rule:
        raise NotFoundError(f"Workflow rule {rule_id} not found")
    return rule


def list_rules(
    db: Session,
    *,
    name: Optional[str] = None,
    trigger_type: Optional[str] = None,
    is_active: Optional[bool] = None,
    created_after: Optional[datetime] = None,
    created_before: Optional[datetime] = None,
    created_by: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_desc: bool = True,
    page: int = 1,
    page_size: int = 20,
) -> Tuple[list[WorkflowRule], int]:
    query = db.query(WorkflowRule)
    if name:
        query = query.filter(WorkflowRule.name.ilike(f"%{name.strip()}%"))
    if trigger_type:
        query = query.filter(WorkflowRule.trigger_type == trigger_type)
    if is_active is not None:
        query = query.filter(WorkflowRule.is_active == is_active)
    if created_after:
        query = query.filter(WorkflowRule.created_at >= created_after)
    if created_before:
        query = query.filter(WorkflowRule.created_at <= created_before)
    if created_by:
        query = query.filter(WorkflowRule.created_by == created_by)
    column = RULE_SORT_FIELDS.get((sort_by or "created").lower(), WorkflowRule.created_at)
    ordering = column.desc() if sort_desc else column.asc()
    query = query.options(selectinload(WorkflowRule.conditions), selectinload(WorkflowRule.actions))
    return paginate(query.order_by(ordering, WorkflowRule.id.asc()), page, page_size)


def update_rule(db: Session, rule_id: str, payload: RuleUpdate, *, user: UserContext) -> WorkflowRule:
    rule = get_rule(db, rule_id)
    validate_definition(payload.conditions, payload.actions)
    try:
        rule.name = payload.name.strip()
        rule.description = payload.description
        rule.trigger_type = payload.trigger_type.value
        rule.is_active = payload.is_active
        rule.priority = payload.priority
        rule.updated_by = user.actor
        rule.updated_at = _utc_now()
        rule.conditions.clear()
        rule.actions.clear()
        # Old children must be gone before replacements reuse their order slots.
        db.flush()
        rule.conditions.extend(_build_conditions(payload.conditions))
        rule.actions.extend(_build_actions(payload.actions))
    except SQLAlchemyError as exc:
        db.rollback()
        log_exception(_logger, "Update workflow rule failed", extra={"rule_id": rule_id}, exc=exc)
        raise PersistenceError(f"Update workflow rule failed: {exc}") from exc
    commit_or_raise(db, _logger, "Update workflow rule", extra={"rule_id": rule_id})
    db.refresh(rule)
    _logger.info("Updated workflow rule id=%s", rule.id)
    return rule


def delete_rule(db: Session, rule_id: str, *, user: UserContext) -> None:
    rule = get_rule(db, rule_id)
    if retain_history_on_delete():
        history_count = (
            db.query(func.count(WorkflowExecutionHistory.id))
            .filter(WorkflowExecutionHistory.rule_id == rule_id)
            .scalar()
        )
        if history_count:
            raise ConflictError(
                f"Workflow rule {rule_id} has {history_count} execution history entries and history retention is enabled"
            )
    db.delete(rule)
    commit_or_raise(db, _logger, "Delete workflow rule", extra={"rule_id": rule_id})
    _logger.info("Deleted workflow rule id=%s by=%s", rule_id, user.actor)


def toggle_rule(
    db: Session,
    rule_id: str,
    *,
    user: UserContext,
    is_active: Optional[bool] = None,
) -> WorkflowRule:
    """Flip the active flag, or set it explicitly when `is_active` is given."""
    rule = get_rule(db, rule_id)
    rule.is_active = (not rule.is_active) if is_active is None else bool(is_active)
    rule.updated_by = user.actor
    rule.updated_at = _utc_now()
    db.add(rule)
    commit_or_raise(db, _logger, "Toggle workflow rule", extra={"rule_id": rule_id})
    db.refresh(rule)
    _logger.info("Workflow rule id=%s is_active=%s", rule.id, rule.is_active)
    return rule


def clone_rule(db: Session, rule_id: str, *, user: UserContext, name: Optional[str] = None) -> WorkflowRule:
    """Copy a rule with its conditions and actions. Clones always start inactive."""
    source = get_rule(db, rule_id)
    clone = WorkflowRule(
        name=(name or f"{source.name} (Copy)").strip(),
        description=f"Cloned from: {source.name}",
        trigger_type=source.trigger_type,
        is_active=False,
        priority=source.priority,
        template_id=source.template_id,
        created_by=user.actor,
        updated_by=user.actor,
    )
    clone.conditions = [
        WorkflowCondition(
            condition_type=c.condition_type,
            field_name=c.field_name,
            operator=c.operator,
            value=c.value,
            logical_operator=c.logical_operator,
            order=c.order,
        )
        for c in source.conditions
    ]
    clone.actions = [
        WorkflowAction(
            action_type=a.action_type,
            parameters=copy.deepcopy(a.parameters or {}),
            order=a.order,
            continue_on_error=a.continue_on_error,
            error_handling=a.error_handling,
        )
        for a in source.actions
    ]
    db.add(clone)
    commit_or_raise(db, _logger, "Clone workflow rule", extra={"rule_id": rule_id})
    db.refresh(clone)
    _logger.info("Cloned workflow rule id=%s into id=%s", source.id, clone.id)
    return clone
