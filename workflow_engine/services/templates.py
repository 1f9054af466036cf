"""
Workflow template services: CRUD, categories, import/export and
instantiation of templates into concrete rules.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Optional, Tuple

from pydantic import ValidationError
from sqlalchemy import String, cast, func, or_
from sqlalchemy.orm import Session

from ..core.auth import UserContext
from ..core.db import commit_or_raise
from ..core.errors import ConflictError, NotFoundError, RuleValidationError
from ..core.pagination import paginate
from ..models.rule import WorkflowRule
from ..models.template import WorkflowTemplate
from ..schemas.enums import Operator
from ..schemas.rule import RuleCreate
from ..schemas.template import (
    TemplateCreate,
    TemplateDefinition,
    TemplateExportDocument,
    TemplateImportRequest,
    TemplateInstantiateRequest,
    TemplateUpdate,
)
from .catalog import TEMPLATE_CATEGORIES
from .rules import create_rule
from .template_instantiator import instantiate, missing_required_parameters

_logger = logging.getLogger("workflow_templates")

TEMPLATE_SORT_FIELDS = {
    "name": WorkflowTemplate.name,
    "category": WorkflowTemplate.category,
    "rating": WorkflowTemplate.rating,
    "usage": WorkflowTemplate.usage_count,
    "created": WorkflowTemplate.created_at,
}


def template_definition(template: WorkflowTemplate) -> TemplateDefinition:
    return TemplateDefinition.model_validate(template.definition or {})


def validate_template_definition(definition: TemplateDefinition) -> None:
    declared: set[str] = set()
    for parameter in definition.parameters:
        if parameter.name in declared:
            raise RuleValidationError(f"Duplicate template parameter '{parameter.name}'")
        declared.add(parameter.name)
    orders: set[int] = set()
    for condition in definition.conditions:
        if condition.order in orders:
            raise RuleValidationError(f"Duplicate condition order {condition.order}")
        orders.add(condition.order)
        if Operator.parse(condition.operator) is None:
            raise RuleValidationError(f"Unknown operator '{condition.operator}' on field '{condition.field_name}'")
        if condition.is_parameterized:
            if not condition.parameter_name:
                raise RuleValidationError(f"Parameterized condition on '{condition.field_name}' has no parameter name")
            if condition.parameter_name not in declared:
                raise RuleValidationError(f"Condition references undeclared parameter '{condition.parameter_name}'")
    for action in definition.actions:
        for action_key, parameter_name in action.parameter_mappings.items():
            if parameter_name not in declared:
                raise RuleValidationError(
                    f"{action.action_type.value}.{action_key} maps to undeclared parameter '{parameter_name}'"
                )


def _dump_definition(definition: TemplateDefinition) -> dict:
    return definition.model_dump(mode="json")


def create_template(
    db: Session,
    payload: TemplateCreate,
    *,
    user: UserContext,
    commit: bool = True,
) -> WorkflowTemplate:
    validate_template_definition(payload.definition)
    template = WorkflowTemplate(
        name=payload.name.strip(),
        description=payload.description,
        category=payload.category.strip(),
        trigger_type=payload.trigger_type.value,
        tags=[t.strip() for t in payload.tags if t and t.strip()],
        definition=_dump_definition(payload.definition),
        version=payload.version,
        is_public=payload.is_public,
        usage_count=0,
        rating=0.0,
        created_by=user.actor,
        updated_by=user.actor,
    )
    db.add(template)
    if not commit:
        return template
    commit_or_raise(db, _logger, "Create workflow template", extra={"name": template.name})
    db.refresh(template)
    _logger.info("Created workflow template id=%s name=%s", template.id, template.name)
    return template


def get_template(db: Session, template_id: str) -> WorkflowTemplate:
    template = db.get(WorkflowTemplate, template_id)
    if not template:
        raise NotFoundError(f"Workflow template {template_id} not found")
    return template


def _tag_clause(tag: str):
    """Case-insensitive exact match of one tag against the serialized JSON array."""
    quoted = json.dumps(tag).replace("!", "!!").replace("%", "!%").replace("_", "!_")
    return cast(WorkflowTemplate.tags, String).ilike(f"%{quoted}%", escape="!")


def list_templates(
    db: Session,
    *,
    name: Optional[str] = None,
    category: Optional[str] = None,
    trigger_type: Optional[str] = None,
    is_public: Optional[bool] = None,
    created_by: Optional[str] = None,
    created_after: Optional[datetime] = None,
    created_before: Optional[datetime] = None,
    min_rating: Optional[float] = None,
    tags: Optional[list[str]] = None,
    sort_by: Optional[str] = None,
    sort_desc: bool = True,
    page: int = 1,
    page_size: int = 20,
) -> Tuple[list[WorkflowTemplate], int]:
    query = db.query(WorkflowTemplate)
    if name:
        query = query.filter(WorkflowTemplate.name.ilike(f"%{name.strip()}%"))
    if category:
        query = query.filter(WorkflowTemplate.category == category)
    if trigger_type:
        query = query.filter(WorkflowTemplate.trigger_type == trigger_type)
    if is_public is not None:
        query = query.filter(WorkflowTemplate.is_public == is_public)
    if created_by:
        query = query.filter(WorkflowTemplate.created_by == created_by)
    if created_after:
        query = query.filter(WorkflowTemplate.created_at >= created_after)
    if created_before:
        query = query.filter(WorkflowTemplate.created_at <= created_before)
    if min_rating is not None:
        query = query.filter(WorkflowTemplate.rating >= min_rating)
    column = TEMPLATE_SORT_FIELDS.get((sort_by or "created").lower(), WorkflowTemplate.created_at)
    query = query.order_by(column.desc() if sort_desc else column.asc(), WorkflowTemplate.id.asc())

    wanted = sorted({t.strip().lower() for t in (tags or []) if t and t.strip()})
    if wanted:
        query = query.filter(or_(*(_tag_clause(tag) for tag in wanted)))
    return paginate(query, page, page_size)


def update_template(
    db: Session,
    template_id: str,
    payload: TemplateUpdate,
    *,
    user: UserContext,
) -> WorkflowTemplate:
    template = get_template(db, template_id)
    data = payload.model_dump(exclude_unset=True)
    if payload.definition is not None:
        validate_template_definition(payload.definition)
        template.definition = _dump_definition(payload.definition)
    if data.get("name") is not None:
        template.name = data["name"].strip()
    if "description" in data:
        template.description = data["description"]
    if data.get("category") is not None:
        template.category = data["category"].strip()
    if payload.trigger_type is not None:
        template.trigger_type = payload.trigger_type.value
    if data.get("tags") is not None:
        template.tags = [t.strip() for t in data["tags"] if t and t.strip()]
    if data.get("is_public") is not None:
        template.is_public = data["is_public"]
    if data.get("version") is not None:
        template.version = data["version"]
    template.updated_by = user.actor
    template.updated_at = datetime.utcnow()
    db.add(template)
    commit_or_raise(db, _logger, "Update workflow template", extra={"template_id": template_id})
    db.refresh(template)
    return template


def delete_template(db: Session, template_id: str, *, user: UserContext) -> None:
    template = get_template(db, template_id)
    in_use = (
        db.query(func.count(WorkflowRule.id))
        .filter(WorkflowRule.template_id == template_id)
        .scalar()
    )
    if in_use:
        raise ConflictError(f"Cannot delete template '{template.name}': {in_use} rule(s) were created from it")
    name = template.name
    db.delete(template)
    commit_or_raise(db, _logger, "Delete workflow template", extra={"template_id": template_id})
    _logger.info("Deleted workflow template id=%s name=%s by=%s", template_id, name, user.actor)


def get_template_categories(db: Session) -> list[str]:
    in_use = [row[0] for row in db.query(WorkflowTemplate.category).distinct().all() if row[0]]
    return sorted(set(TEMPLATE_CATEGORIES) | set(in_use))


def export_template(db: Session, template_id: str) -> dict:
    template = get_template(db, template_id)
    document = TemplateExportDocument(
        name=template.name,
        description=template.description,
        category=template.category,
        trigger_type=template.trigger_type,
        tags=list(template.tags or []),
        definition=template_definition(template),
        is_public=template.is_public,
        version=template.version,
        exported_at=datetime.utcnow(),
    )
    return document.model_dump(mode="json", by_alias=True)


def import_template(db: Session, request: TemplateImportRequest, *, user: UserContext) -> WorkflowTemplate:
    try:
        data = json.loads(request.template_json)
        document = TemplateExportDocument.model_validate(data)
    except json.JSONDecodeError as exc:
        raise RuleValidationError(f"Invalid template JSON: {exc}") from exc
    except ValidationError as exc:
        raise RuleValidationError(f"Invalid template document: {exc}") from exc
    validate_template_definition(document.definition)

    name = (request.new_name or document.name).strip()
    category = (request.new_category or document.category).strip()
    existing = db.query(WorkflowTemplate).filter(WorkflowTemplate.name == name).first()
    if existing and not request.overwrite_existing:
        raise ConflictError(f"Template with name '{name}' already exists")

    if existing:
        existing.description = document.description
        existing.category = category
        existing.trigger_type = document.trigger_type.value
        existing.tags = list(document.tags)
        existing.definition = _dump_definition(document.definition)
        existing.version = document.version
        existing.updated_by = user.actor
        existing.updated_at = datetime.utcnow()
        template = existing
    else:
        template = create_template(
            db,
            TemplateCreate(
                name=name,
                description=document.description,
                category=category,
                trigger_type=document.trigger_type,
                tags=document.tags,
                definition=document.definition,
                is_public=document.is_public,
                version=document.version,
            ),
            user=user,
            commit=False,
        )
    commit_or_raise(db, _logger, "Import workflow template", extra={"name": name})
    db.refresh(template)
    _logger.info("Imported workflow template id=%s name=%s overwrite=%s", template.id, name, bool(existing))
    return template


def create_rule_from_template(
    db: Session,
    template_id: str,
    request: TemplateInstantiateRequest,
    *,
    user: UserContext,
) -> WorkflowRule:
    template = get_template(db, template_id)
    definition = template_definition(template)
    missing = missing_required_parameters(definition, request.parameters)
    if missing:
        raise RuleValidationError(f"Missing required template parameters: {', '.join(missing)}")
    # Declared defaults only satisfy the required check; omitted keys keep the skeleton literal.
    rule_definition = instantiate(definition, request.parameters)
    payload = RuleCreate(
        name=request.name,
        description=request.description or f"Created from template: {template.name}",
        trigger_type=template.trigger_type,
        is_active=request.is_active,
        priority=request.priority,
        conditions=rule_definition.conditions,
        actions=rule_definition.actions,
    )
    rule = create_rule(db, payload, user=user, template_id=template.id, commit=False)
    template.usage_count = (template.usage_count or 0) + 1
    db.add(template)
    commit_or_raise(db, _logger, "Create rule from template", extra={"template_id": template_id})
    db.refresh(rule)
    _logger.info("Created workflow rule id=%s from template id=%s", rule.id, template.id)
    return rule
