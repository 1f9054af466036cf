"""
Pydantic schemas for dispatch results, rule tests, execution history and metrics.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TriggerEventIn(BaseModel):
    payload: Dict[str, Any] = Field(default_factory=dict)


class ConditionResultOut(BaseModel):
    condition_id: Optional[str] = None
    condition_type: str
    field_name: str
    operator: str
    matched: bool
    actual_value: Optional[str] = None
    expected_value: Optional[str] = None
    error_message: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ActionResultOut(BaseModel):
    action_id: Optional[str] = None
    action_type: str
    order: int = 0
    success: bool
    result: Optional[str] = None
    error_message: Optional[str] = None
    duration_ms: float = 0.0

    model_config = ConfigDict(from_attributes=True)


class RuleTestResultOut(BaseModel):
    rule_id: str
    rule_name: str
    conditions_matched: bool
    condition_results: List[ConditionResultOut] = []
    action_results: List[ActionResultOut] = []
    execution_time_ms: float = 0.0

    model_config = ConfigDict(from_attributes=True)


class PlannedActionOut(BaseModel):
    rule_id: str
    rule_name: str
    rule_priority: int
    action_id: Optional[str] = None
    action_type: str
    parameters: Dict[str, Any] = {}
    order: int
    continue_on_error: bool

    model_config = ConfigDict(from_attributes=True)


class ActionExecutionResultOut(BaseModel):
    id: str
    action_id: Optional[str] = None
    action_type: str
    position: int
    success: bool
    result: Optional[str] = None
    error_message: Optional[str] = None
    duration_ms: float = 0.0

    model_config = ConfigDict(from_attributes=True)


class ExecutionHistoryOut(BaseModel):
    id: str
    rule_id: str
    rule_name: str
    status: str
    trigger_type: str
    trigger_data: Optional[Dict[str, Any]] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_ms: float = 0.0
    error_message: Optional[str] = None
    executed_by: Optional[str] = None
    actions_executed: int = 0
    actions_succeeded: int = 0
    action_results: List[ActionExecutionResultOut] = []

    model_config = ConfigDict(from_attributes=True)


class RuleMetricsOut(BaseModel):
    rule_id: str
    rule_name: str
    total_executions: int = 0
    successful_executions: int = 0
    failed_executions: int = 0
    success_rate: float = 0.0
    average_execution_time_ms: float = 0.0
    last_execution_time: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RuleExecutionOut(BaseModel):
    rule_id: str
    rule_name: str
    conditions_matched: bool
    status: str
    history_id: Optional[str] = None
    duration_ms: float = 0.0
    error_message: Optional[str] = None
    action_results: List[ActionResultOut] = []

    model_config = ConfigDict(from_attributes=True)


class TriggerMetricsOut(BaseModel):
    trigger_type: str
    execution_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    success_rate: float = 0.0

    model_config = ConfigDict(from_attributes=True)


class WorkflowMetricsOut(BaseModel):
    total_rules: int = 0
    active_rules: int = 0
    total_executions: int = 0
    successful_executions: int = 0
    failed_executions: int = 0
    success_rate: float = 0.0
    average_execution_time_ms: float = 0.0
    trigger_metrics: List[TriggerMetricsOut] = []

    model_config = ConfigDict(from_attributes=True)
