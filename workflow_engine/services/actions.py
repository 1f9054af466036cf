"""
Ordered action planning and the run/simulate contract.

A matched rule expands into `PlannedAction` entries sorted by action order.
`run_actions` walks that list through a real executor: a failure is
recorded and, when the failing action does not allow continuation, the
remaining actions of the same rule are skipped. `simulate_actions` walks
the identical list and produces synthetic successes without calling any
executor.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

SIMULATED_RESULT = "Simulated execution - would execute in real scenario"


@dataclass
class PlannedAction:
    rule_id: str
    rule_name: str
    rule_priority: int
    action_id: Optional[str]
    action_type: str
    order: int
    parameters: dict = field(default_factory=dict)
    continue_on_error: bool = True
    error_handling: Optional[str] = None


@dataclass
class ActionOutcome:
    action_id: Optional[str]
    action_type: str
    order: int
    success: bool
    result: Optional[str] = None
    error_message: Optional[str] = None
    duration_ms: float = 0.0


def _plain(value: Any) -> Any:
    return getattr(value, "value", value)


def plan_actions(rule: Any) -> list[PlannedAction]:
    """Expand a rule's actions in ascending order."""
    actions = sorted(rule.actions or [], key=lambda a: a.order or 0)
    return [
        PlannedAction(
            rule_id=rule.id,
            rule_name=rule.name,
            rule_priority=rule.priority,
            action_id=action.id,
            action_type=_plain(action.action_type),
            order=action.order or 0,
            parameters=dict(action.parameters or {}),
            continue_on_error=bool(action.continue_on_error),
            error_handling=action.error_handling,
        )
        for action in actions
    ]


def run_actions(
    actions: Iterable[PlannedAction],
    execute: Callable[[PlannedAction], Optional[str]],
) -> list[ActionOutcome]:
    outcomes: list[ActionOutcome] = []
    for action in actions:
        started = time.perf_counter()
        try:
            result = execute(action)
            outcome = ActionOutcome(
                action_id=action.action_id,
                action_type=action.action_type,
                order=action.order,
                success=True,
                result=result,
            )
        except Exception as exc:
            outcome = ActionOutcome(
                action_id=action.action_id,
                action_type=action.action_type,
                order=action.order,
                success=False,
                error_message=str(exc) or exc.__class__.__name__,
            )
        outcome.duration_ms = (time.perf_counter() - started) * 1000.0
        outcomes.append(outcome)
        if not outcome.success and not action.continue_on_error:
            break
    return outcomes


def simulate_actions(actions: Iterable[PlannedAction]) -> list[ActionOutcome]:
    outcomes: list[ActionOutcome] = []
    for action in actions:
        started = time.perf_counter()
        outcome = ActionOutcome(
            action_id=action.action_id,
            action_type=action.action_type,
            order=action.order,
            success=True,
            result=SIMULATED_RESULT,
        )
        outcome.duration_ms = (time.perf_counter() - started) * 1000.0
        outcomes.append(outcome)
    return outcomes
