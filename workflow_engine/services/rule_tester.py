"""
Dry runs of a single rule against sample data.

Conditions are evaluated exactly as in dispatch; actions only go through
the simulator, so no email, SMS or webhook leaves the process.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from .actions import ActionOutcome, plan_actions, simulate_actions
from .conditions import ConditionResult, evaluate_conditions
from .rules import get_rule


@dataclass
class RuleTestResult:
    rule_id: str
    rule_name: str
    conditions_matched: bool
    condition_results: list[ConditionResult] = field(default_factory=list)
    action_results: list[ActionOutcome] = field(default_factory=list)
    execution_time_ms: float = 0.0


def dry_run_rule(db: Session, rule_id: str, sample_data: Any) -> RuleTestResult:
    rule = get_rule(db, rule_id)
    started = time.perf_counter()
    evaluation = evaluate_conditions(rule.conditions, sample_data)
    result = RuleTestResult(
        rule_id=rule.id,
        rule_name=rule.name,
        conditions_matched=evaluation.matched,
        condition_results=evaluation.condition_results,
    )
    if evaluation.matched:
        result.action_results = simulate_actions(plan_actions(rule))
    result.execution_time_ms = (time.perf_counter() - started) * 1000.0
    return result
