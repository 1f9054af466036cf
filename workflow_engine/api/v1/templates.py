"""
API endpoints for workflow templates: CRUD, categories, import/export and
instantiation into concrete rules.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from ...core.auth import UserContext, require_admin
from ...core.db import get_db
from ...core.errors import WorkflowError
from ...core.pagination import DEFAULT_PAGE_SIZE, clamp_page_size, page_envelope
from ...schemas.rule import RuleOut
from ...schemas.template import (
    TemplateCreate,
    TemplateImportRequest,
    TemplateInstantiateRequest,
    TemplateOut,
    TemplateUpdate,
)
from ...services import templates as template_service


router = APIRouter(prefix="/api/v1/workflow-templates", tags=["workflow-templates"])


def _http_error(exc: WorkflowError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=str(exc))


@router.get("", response_model=dict)
def list_templates(
    response: Response,
    name: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    trigger_type: Optional[str] = Query(None),
    is_public: Optional[bool] = Query(None),
    created_by: Optional[str] = Query(None),
    created_after: Optional[datetime] = Query(None),
    created_before: Optional[datetime] = Query(None),
    min_rating: Optional[float] = Query(None, ge=0),
    tags: Optional[List[str]] = Query(None),
    sort_by: Optional[str] = Query(None),
    sort_desc: bool = Query(True),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    db: Session = Depends(get_db),
) -> dict:
    page_size = clamp_page_size(page_size)
    items, total = template_service.list_templates(
        db,
        name=name,
        category=category,
        trigger_type=trigger_type,
        is_public=is_public,
        created_by=created_by,
        created_after=created_after,
        created_before=created_before,
        min_rating=min_rating,
        tags=tags,
        sort_by=sort_by,
        sort_desc=sort_desc,
        page=page,
        page_size=page_size,
    )
    return page_envelope(
        response,
        [TemplateOut.model_validate(t).model_dump(mode="json") for t in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/categories")
def template_categories(db: Session = Depends(get_db)) -> list[str]:
    return template_service.get_template_categories(db)


@router.post("/import", response_model=TemplateOut, status_code=201)
def import_template(
    payload: TemplateImportRequest,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin),
) -> TemplateOut:
    try:
        template = template_service.import_template(db, payload, user=user)
    except WorkflowError as exc:
        raise _http_error(exc) from exc
    return TemplateOut.model_validate(template)


@router.post("", response_model=TemplateOut, status_code=201)
def create_template(
    payload: TemplateCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin),
) -> TemplateOut:
    try:
        template = template_service.create_template(db, payload, user=user)
    except WorkflowError as exc:
        raise _http_error(exc) from exc
    return TemplateOut.model_validate(template)


@router.get("/{template_id}", response_model=TemplateOut)
def get_template(template_id: str, db: Session = Depends(get_db)) -> TemplateOut:
    try:
        return TemplateOut.model_validate(template_service.get_template(db, template_id))
    except WorkflowError as exc:
        raise _http_error(exc) from exc


@router.put("/{template_id}", response_model=TemplateOut)
def update_template(
    template_id: str,
    payload: TemplateUpdate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin),
) -> TemplateOut:
    try:
        template = template_service.update_template(db, template_id, payload, user=user)
    except WorkflowError as exc:
        raise _http_error(exc) from exc
    return TemplateOut.model_validate(template)


@router.delete("/{template_id}", status_code=204)
def delete_template(
    template_id: str,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin),
) -> Response:
    try:
        template_service.delete_template(db, template_id, user=user)
    except WorkflowError as exc:
        raise _http_error(exc) from exc
    return Response(status_code=204)


@router.get("/{template_id}/export")
def export_template(template_id: str, db: Session = Depends(get_db)) -> dict:
    try:
        return template_service.export_template(db, template_id)
    except WorkflowError as exc:
        raise _http_error(exc) from exc


@router.post("/{template_id}/instantiate", response_model=RuleOut, status_code=201)
def instantiate_template(
    template_id: str,
    payload: TemplateInstantiateRequest,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin),
) -> RuleOut:
    try:
        rule = template_service.create_rule_from_template(db, template_id, payload, user=user)
    except WorkflowError as exc:
        raise _http_error(exc) from exc
    return RuleOut.model_validate(rule)
