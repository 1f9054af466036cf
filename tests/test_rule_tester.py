import pytest
import requests
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from workflow_engine.core.auth import system_user
from workflow_engine.core.errors import NotFoundError
from workflow_engine.models import Base
from workflow_engine.models.execution import WorkflowExecutionHistory
from workflow_engine.schemas.rule import ActionIn, ConditionIn, RuleCreate
from workflow_engine.services.actions import SIMULATED_RESULT
from workflow_engine.services.rule_tester import dry_run_rule
from workflow_engine.services.rules import create_rule


def _make_session():
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    return SessionLocal()


def _webhook_rule(db):
    return create_rule(
        db,
        RuleCreate(
            name="Escalate failed payment",
            trigger_type="PaymentFailed",
            conditions=[ConditionIn(field_name="Amount", operator="greaterthanorequal", value="100", order=1)],
            actions=[
                ActionIn(
                    action_type="CallWebhook",
                    parameters={"url": "https://hooks.example.com/escalate", "method": "POST"},
                    order=1,
                    continue_on_error=False,
                ),
                ActionIn(action_type="SendEmail", parameters={"to": "finance@example.com"}, order=2),
            ],
        ),
        user=system_user(),
    )


@pytest.fixture
def no_http(monkeypatch):
    def _fail(*args, **kwargs):
        raise AssertionError("dry run must not perform HTTP calls")

    monkeypatch.setattr(requests, "request", _fail)
    monkeypatch.setattr(requests, "post", _fail)


def test_dry_run_simulates_webhook_without_http(no_http):
    db = _make_session()
    rule = _webhook_rule(db)
    result = dry_run_rule(db, rule.id, {"Amount": 250})
    assert result.conditions_matched is True
    assert [a.action_type for a in result.action_results] == ["CallWebhook", "SendEmail"]
    assert all(a.success for a in result.action_results)
    assert result.action_results[0].result == SIMULATED_RESULT
    assert result.execution_time_ms >= 0
    assert db.query(WorkflowExecutionHistory).count() == 0


def test_dry_run_without_match_has_no_actions(no_http):
    db = _make_session()
    rule = _webhook_rule(db)
    result = dry_run_rule(db, rule.id, {"Amount": 5})
    assert result.conditions_matched is False
    assert result.action_results == []
    assert result.condition_results[0].actual_value == "5"
    assert result.condition_results[0].matched is False


def test_dry_run_ignores_active_flag(no_http):
    db = _make_session()
    rule = _webhook_rule(db)
    rule.is_active = False
    db.commit()
    assert dry_run_rule(db, rule.id, {"Amount": 100}).conditions_matched is True


def test_dry_run_unknown_rule():
    db = _make_session()
    with pytest.raises(NotFoundError):
        dry_run_rule(db, "nope", {})
