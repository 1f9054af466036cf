import json

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from workflow_engine.core.auth import UserContext
from workflow_engine.core.errors import ConflictError, NotFoundError, RuleValidationError
from workflow_engine.models import Base
from workflow_engine.models.template import WorkflowTemplate
from workflow_engine.schemas.template import (
    TemplateCreate,
    TemplateImportRequest,
    TemplateInstantiateRequest,
    TemplateUpdate,
)
from workflow_engine.services.catalog import TEMPLATE_CATEGORIES
from workflow_engine.services.dispatcher import evaluate_rules
from workflow_engine.services.template_seed import predefined_templates, seed_predefined_templates
from workflow_engine.services.templates import (
    create_rule_from_template,
    create_template,
    delete_template,
    export_template,
    get_template,
    get_template_categories,
    import_template,
    list_templates,
    update_template,
)

USER = UserContext(role="ADMIN", user_id="u1", username="author")


def _make_session():
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    return SessionLocal()


def _template_by_name(db, name) -> WorkflowTemplate:
    return db.query(WorkflowTemplate).filter(WorkflowTemplate.name == name).one()


def test_seed_is_idempotent():
    db = _make_session()
    assert seed_predefined_templates(db) == 3
    assert seed_predefined_templates(db) == 0
    names = sorted(t.name for t in db.query(WorkflowTemplate).all())
    assert names == ["Document Upload Notification", "Payment Confirmation Workflow", "Tax Filing Due Reminder"]
    reminder = _template_by_name(db, "Tax Filing Due Reminder")
    assert reminder.created_by == "system"
    assert reminder.category == "Tax Filing"
    assert reminder.usage_count == 0


def test_instantiate_reminder_with_caller_value():
    db = _make_session()
    seed_predefined_templates(db)
    template = _template_by_name(db, "Tax Filing Due Reminder")
    rule = create_rule_from_template(
        db,
        template.id,
        TemplateInstantiateRequest(
            name="Three day reminder",
            parameters={"reminderDays": "3", "clientEmail": "client@example.com"},
        ),
        user=USER,
    )
    assert rule.template_id == template.id
    assert rule.trigger_type == "DeadlineApproaching"
    assert rule.conditions[0].value == "3"
    assert rule.description == "Created from template: Tax Filing Due Reminder"
    assert rule.actions[0].parameters["to"] == "client@example.com"
    assert rule.actions[0].parameters["subject"] == "Tax Filing Deadline Approaching"
    db.refresh(template)
    assert template.usage_count == 1


def test_instantiate_keeps_literals_for_omitted_parameters():
    db = _make_session()
    seed_predefined_templates(db)
    template = _template_by_name(db, "Tax Filing Due Reminder")
    rule = create_rule_from_template(
        db,
        template.id,
        TemplateInstantiateRequest(name="Default reminder", parameters={"clientEmail": "c@example.com"}),
        user=USER,
    )
    assert rule.conditions[0].value == "7"
    planned = evaluate_rules(db, "DeadlineApproaching", {"DaysUntilDeadline": 5})
    assert [p.rule_name for p in planned] == ["Default reminder"]


def test_instantiate_missing_required_parameter_is_rejected():
    db = _make_session()
    seed_predefined_templates(db)
    template = _template_by_name(db, "Payment Confirmation Workflow")
    with pytest.raises(RuleValidationError, match="clientPhone"):
        create_rule_from_template(db, template.id, TemplateInstantiateRequest(name="No phone"), user=USER)
    db.refresh(template)
    assert template.usage_count == 0


def test_instantiate_document_template_maps_action_parameters():
    db = _make_session()
    seed_predefined_templates(db)
    template = _template_by_name(db, "Document Upload Notification")
    rule = create_rule_from_template(
        db,
        template.id,
        TemplateInstantiateRequest(
            name="Docs",
            parameters={"staffUserId": "staff-1", "reviewerUserId": "rev-9", "documentTypes": ["TaxReturn", "Payslip"]},
        ),
        user=USER,
    )
    assert rule.conditions[0].value == "TaxReturn,Payslip"
    notify, task = rule.actions
    assert notify.parameters["userId"] == "staff-1"
    assert notify.parameters["title"] == "Important Document Uploaded"
    assert "message" not in notify.parameters
    assert task.parameters["assignee"] == "rev-9"


def test_template_definition_rejects_undeclared_parameter():
    db = _make_session()
    payload = predefined_templates()[0]
    payload.definition.parameters = payload.definition.parameters[:1]
    with pytest.raises(RuleValidationError, match="clientEmail"):
        create_template(db, payload, user=USER)


def test_update_and_list_templates():
    db = _make_session()
    seed_predefined_templates(db)
    template = _template_by_name(db, "Payment Confirmation Workflow")
    updated = update_template(db, template.id, TemplateUpdate(tags=["payment", "vip"], is_public=False), user=USER)
    assert updated.tags == ["payment", "vip"]
    assert updated.updated_by == "author"

    items, total = list_templates(db, tags=["VIP"])
    assert total == 1 and items[0].id == template.id
    items, total = list_templates(db, is_public=True, sort_by="name", sort_desc=False)
    assert [t.name for t in items] == ["Document Upload Notification", "Tax Filing Due Reminder"]
    _, total = list_templates(db, name="reminder")
    assert total == 1


def test_delete_template_in_use_is_rejected():
    db = _make_session()
    seed_predefined_templates(db)
    template = _template_by_name(db, "Tax Filing Due Reminder")
    create_rule_from_template(
        db,
        template.id,
        TemplateInstantiateRequest(name="Reminder", parameters={"clientEmail": "c@example.com"}),
        user=USER,
    )
    with pytest.raises(ConflictError):
        delete_template(db, template.id, user=USER)

    unused = _template_by_name(db, "Payment Confirmation Workflow")
    delete_template(db, unused.id, user=USER)
    with pytest.raises(NotFoundError):
        get_template(db, unused.id)


def test_categories_include_predefined_and_custom():
    db = _make_session()
    payload = predefined_templates()[0]
    payload.name = "Custom"
    payload.category = "Zeta Ops"
    create_template(db, payload, user=USER)
    categories = get_template_categories(db)
    assert "Zeta Ops" in categories
    assert set(TEMPLATE_CATEGORIES) <= set(categories)
    assert categories == sorted(categories)


def test_export_then_import_under_new_name():
    db = _make_session()
    seed_predefined_templates(db)
    source = _template_by_name(db, "Tax Filing Due Reminder")
    document = export_template(db, source.id)
    assert document["triggerType"] == "DeadlineApproaching"
    assert "exportedAt" in document
    assert document["definition"]["conditions"][0]["parameterName"] == "reminderDays"

    with pytest.raises(ConflictError):
        import_template(db, TemplateImportRequest(template_json=json.dumps(document)), user=USER)

    imported = import_template(
        db,
        TemplateImportRequest(template_json=json.dumps(document), new_name="Reminder copy", new_category="Compliance"),
        user=USER,
    )
    assert imported.id != source.id
    assert imported.category == "Compliance"
    assert imported.definition == source.definition


def test_import_overwrite_updates_existing():
    db = _make_session()
    seed_predefined_templates(db)
    source = _template_by_name(db, "Tax Filing Due Reminder")
    document = export_template(db, source.id)
    document["description"] = "Overwritten"
    imported = import_template(
        db,
        TemplateImportRequest(template_json=json.dumps(document), overwrite_existing=True),
        user=USER,
    )
    assert imported.id == source.id
    assert imported.description == "Overwritten"
    assert db.query(WorkflowTemplate).count() == 3


def test_import_rejects_malformed_json():
    db = _make_session()
    with pytest.raises(RuleValidationError):
        import_template(db, TemplateImportRequest(template_json="{not json"), user=USER)
    with pytest.raises(RuleValidationError):
        import_template(db, TemplateImportRequest(template_json=json.dumps({"name": "x"})), user=USER)


def test_instantiate_keeps_skeleton_literal_when_default_differs():
    db = _make_session()
    payload = predefined_templates()[0]
    payload.name = "Reminder with wider default"
    for parameter in payload.definition.parameters:
        if parameter.name == "reminderDays":
            parameter.default_value = "14"
    template = create_template(db, payload, user=USER)
    rule = create_rule_from_template(
        db,
        template.id,
        TemplateInstantiateRequest(name="Literal kept", parameters={"clientEmail": "c@example.com"}),
        user=USER,
    )
    assert rule.conditions[0].value == "7"

    blank = create_rule_from_template(
        db,
        template.id,
        TemplateInstantiateRequest(name="Blank days", parameters={"clientEmail": "c@example.com", "reminderDays": ""}),
        user=USER,
    )
    assert blank.conditions[0].value == ""


def test_tag_filter_pages_in_the_database():
    db = _make_session()
    seed_predefined_templates(db)
    retag = {
        "Tax Filing Due Reminder": ["Tax", "deadline"],
        "Payment Confirmation Workflow": ["taxes", "payment"],
        "Document Upload Notification": ["tax_due", "document"],
    }
    for name, tags in retag.items():
        update_template(db, _template_by_name(db, name).id, TemplateUpdate(tags=tags), user=USER)

    items, total = list_templates(db, tags=["TAX"])
    assert total == 1
    assert [t.name for t in items] == ["Tax Filing Due Reminder"]

    first, total = list_templates(db, tags=["tax", "Tax_Due"], sort_by="name", sort_desc=False, page=1, page_size=1)
    second, _ = list_templates(db, tags=["tax", "Tax_Due"], sort_by="name", sort_desc=False, page=2, page_size=1)
    assert total == 2
    assert [t.name for t in first] == ["Document Upload Notification"]
    assert [t.name for t in second] == ["Tax Filing Due Reminder"]

    _, total = list_templates(db, tags=["taxXdue"])
    assert total == 0
