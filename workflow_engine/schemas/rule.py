"""
Pydantic schemas for workflow rules, conditions and actions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import ActionType, ConditionType, LogicalOperator, TriggerType


def stringify_value(value: Any) -> Optional[str]:
    """Encode a condition value the way it is stored: as text."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, set)):
        return ",".join(stringify_value(v) or "" for v in value)
    return str(value)


class ConditionIn(BaseModel):
    condition_type: ConditionType = ConditionType.FIELD_COMPARISON
    field_name: str = Field(..., min_length=1, max_length=256)
    operator: str = Field(..., min_length=1, max_length=32)
    value: Optional[str] = Field(None, max_length=1000)
    logical_operator: LogicalOperator = LogicalOperator.AND
    order: int = Field(0, ge=0)

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, value: Any) -> Optional[str]:
        return stringify_value(value)

    @field_validator("operator")
    @classmethod
    def _normalize_operator(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("logical_operator", mode="before")
    @classmethod
    def _normalize_logical(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value


class ActionIn(BaseModel):
    action_type: ActionType
    parameters: Dict[str, Any] = Field(default_factory=dict)
    order: int = Field(0, ge=0)
    continue_on_error: bool = True
    error_handling: Optional[str] = Field(None, max_length=500)


class RuleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    trigger_type: TriggerType
    is_active: bool = True
    priority: int = Field(100, ge=1, le=1000)
    conditions: List[ConditionIn] = Field(default_factory=list)
    actions: List[ActionIn] = Field(default_factory=list)


class RuleUpdate(RuleCreate):
    """Full replacement of a rule definition, including its conditions and actions."""

    pass


class RuleToggle(BaseModel):
    is_active: Optional[bool] = None


class RuleClone(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)


class ConditionOut(BaseModel):
    id: str
    condition_type: str
    field_name: str
    operator: str
    value: Optional[str] = None
    logical_operator: str
    order: int

    model_config = ConfigDict(from_attributes=True)


class ActionOut(BaseModel):
    id: str
    action_type: str
    parameters: Dict[str, Any] = {}
    order: int
    continue_on_error: bool
    error_handling: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RuleOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    trigger_type: str
    is_active: bool
    priority: int
    template_id: Optional[str] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    conditions: List[ConditionOut] = []
    actions: List[ActionOut] = []

    model_config = ConfigDict(from_attributes=True)


class RuleTestRequest(BaseModel):
    sample_data: Dict[str, Any] = Field(default_factory=dict)
