"""
Pydantic schemas for workflow templates.

Template definitions are stored as JSON but validated through these models.
They accept both snake_case and camelCase keys so exported documents can be
imported back unchanged.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .enums import ActionType, ConditionType, LogicalOperator, TriggerType
from .rule import stringify_value


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TemplateConditionSkeleton(_CamelModel):
    condition_type: ConditionType = ConditionType.FIELD_COMPARISON
    field_name: str = Field(..., min_length=1, max_length=256)
    operator: str
    value: Optional[str] = None
    logical_operator: LogicalOperator = LogicalOperator.AND
    order: int = 0
    is_parameterized: bool = False
    parameter_name: Optional[str] = None

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, value: Any) -> Optional[str]:
        return stringify_value(value)

    @field_validator("operator")
    @classmethod
    def _normalize_operator(cls, value: str) -> str:
        return value.strip().lower()


class TemplateActionSkeleton(_CamelModel):
    action_type: ActionType
    parameters: Dict[str, Any] = Field(default_factory=dict)
    order: int = 0
    continue_on_error: bool = True
    error_handling: Optional[str] = None
    # action parameter key -> template parameter name
    parameter_mappings: Dict[str, str] = Field(default_factory=dict)


class TemplateParameter(_CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    display_name: Optional[str] = None
    description: Optional[str] = None
    data_type: str = "text"
    is_required: bool = False
    default_value: Optional[Any] = None
    order: int = 0
    options: List[str] = Field(default_factory=list)


class TemplateDefinition(_CamelModel):
    conditions: List[TemplateConditionSkeleton] = Field(default_factory=list)
    actions: List[TemplateActionSkeleton] = Field(default_factory=list)
    parameters: List[TemplateParameter] = Field(default_factory=list)


class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    category: str = Field(..., min_length=1, max_length=64)
    trigger_type: TriggerType
    tags: List[str] = Field(default_factory=list)
    definition: TemplateDefinition = Field(default_factory=TemplateDefinition)
    is_public: bool = True
    version: str = "1.0"


class TemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    category: Optional[str] = Field(None, min_length=1, max_length=64)
    trigger_type: Optional[TriggerType] = None
    tags: Optional[List[str]] = None
    definition: Optional[TemplateDefinition] = None
    is_public: Optional[bool] = None
    version: Optional[str] = None


class TemplateOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    category: str
    trigger_type: str
    tags: List[str] = []
    definition: TemplateDefinition
    version: str
    is_public: bool
    usage_count: int
    rating: float
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TemplateInstantiateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    priority: int = Field(100, ge=1, le=1000)
    is_active: bool = True
    parameters: Dict[str, Any] = Field(default_factory=dict)


class TemplateExportDocument(_CamelModel):
    name: str
    description: Optional[str] = None
    category: str
    trigger_type: TriggerType
    tags: List[str] = Field(default_factory=list)
    definition: TemplateDefinition = Field(default_factory=TemplateDefinition)
    is_public: bool = True
    version: str = "1.0"
    exported_at: Optional[datetime] = None


class TemplateImportRequest(_CamelModel):
    template_json: str = Field(..., min_length=2)
    overwrite_existing: bool = False
    new_name: Optional[str] = Field(None, max_length=200)
    new_category: Optional[str] = Field(None, max_length=64)
