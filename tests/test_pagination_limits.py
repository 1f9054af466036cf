import os

# Lightweight DB setup and no startup seeding
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:////tmp/workflow_engine_test_pagination.db")
os.environ.setdefault("AUTO_CREATE_DB", "true")
os.environ.setdefault("AUTO_RUN_MIGRATIONS", "false")
os.environ.setdefault("AUTO_SEED_TEMPLATES", "false")
os.environ.setdefault("WORKFLOW_AUTH_DISABLED", "true")

from fastapi import Response
from fastapi.testclient import TestClient

from workflow_engine.core.auth import system_user
from workflow_engine.core.db import SessionLocal
from workflow_engine.core.pagination import (
    DEFAULT_MAX_PAGE_SIZE,
    clamp_page_size,
    get_max_page_size,
    page_envelope,
    page_offset,
)
from workflow_engine.main import create_app
from workflow_engine.models.rule import WorkflowRule
from workflow_engine.schemas.rule import ActionIn, RuleCreate
from workflow_engine.services.rules import create_rule


def _client() -> TestClient:
    app = create_app()
    return TestClient(app)


def _seed_rules(count: int = 10) -> None:
    with SessionLocal() as db:
        existing = db.query(WorkflowRule).filter(WorkflowRule.name.like("paging-%")).count()
        for i in range(existing, count):
            create_rule(
                db,
                RuleCreate(
                    name=f"paging-{i:03d}",
                    trigger_type="ScheduledTask",
                    actions=[ActionIn(action_type="SendNotification", parameters={}, order=1)],
                ),
                user=system_user(),
            )


def test_clamp_page_size(monkeypatch):
    monkeypatch.setenv("API_MAX_PAGE_SIZE", "5")
    assert clamp_page_size(100) == 5
    assert clamp_page_size(0) == 1
    monkeypatch.setenv("API_MAX_PAGE_SIZE", "junk")
    assert get_max_page_size() == DEFAULT_MAX_PAGE_SIZE
    assert page_offset(3, 20) == 40
    assert page_offset(0, 20) == 0


def test_page_size_capped(monkeypatch):
    monkeypatch.setenv("API_MAX_PAGE_SIZE", "5")
    with _client() as client:
        _seed_rules(12)
        resp = client.get("/api/v1/workflow-rules", params={"name": "paging-", "page_size": 100})
        assert resp.status_code == 200
        assert len(resp.json()["items"]) == 5
        assert resp.json()["total"] >= 12
        assert resp.headers.get("X-Page-Size") == "5"


def test_negative_page_rejected():
    with _client() as client:
        resp = client.get("/api/v1/workflow-rules?page=-1")
        assert resp.status_code == 422
        resp = client.get("/api/v1/workflow-rules?page_size=0")
        assert resp.status_code == 422
        resp = client.get("/api/v1/workflow-executions?page=0")
        assert resp.status_code == 422


def test_page_envelope_sets_headers():
    response = Response()
    body = page_envelope(response, iter([{"id": 1}]), total=41, page=3, page_size=20)
    assert body == {"items": [{"id": 1}], "total": 41, "page": 3, "page_size": 20}
    assert response.headers["X-Total-Count"] == "41"
    assert response.headers["X-Page"] == "3"
    assert page_envelope(None, [], total=0, page=1, page_size=20)["items"] == []
