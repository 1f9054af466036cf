"""
Auto-seed the predefined workflow template library.
"""

from __future__ import annotations

import logging
from typing import List

from sqlalchemy.orm import Session

from ..core.auth import system_user
from ..core.db import commit_or_raise
from ..models.template import WorkflowTemplate
from ..schemas.enums import ActionType, ConditionType, TriggerType
from ..schemas.template import (
    TemplateActionSkeleton,
    TemplateConditionSkeleton,
    TemplateCreate,
    TemplateDefinition,
    TemplateParameter,
)
from .templates import create_template

_logger = logging.getLogger("template_seed")


def predefined_templates() -> List[TemplateCreate]:
    return [
        TemplateCreate(
            name="Tax Filing Due Reminder",
            description="Send reminder emails when tax filing deadlines are approaching",
            category="Tax Filing",
            trigger_type=TriggerType.DEADLINE_APPROACHING,
            tags=["email", "reminder", "deadline", "tax"],
            definition=TemplateDefinition(
                conditions=[
                    TemplateConditionSkeleton(
                        condition_type=ConditionType.DATE_COMPARISON,
                        field_name="DaysUntilDeadline",
                        operator="lessthanorequal",
                        value="7",
                        order=1,
                        is_parameterized=True,
                        parameter_name="reminderDays",
                    )
                ],
                actions=[
                    TemplateActionSkeleton(
                        action_type=ActionType.SEND_EMAIL,
                        parameters={
                            "template": "TaxFilingReminder",
                            "subject": "Tax Filing Deadline Approaching",
                        },
                        order=1,
                        parameter_mappings={"to": "clientEmail"},
                    )
                ],
                parameters=[
                    TemplateParameter(
                        name="reminderDays",
                        display_name="Reminder Days",
                        description="Number of days before deadline to send reminder",
                        data_type="number",
                        is_required=True,
                        default_value="7",
                        order=1,
                    ),
                    TemplateParameter(
                        name="clientEmail",
                        display_name="Client Email",
                        description="Email address to send reminder to",
                        data_type="email",
                        is_required=True,
                        order=2,
                    ),
                ],
            ),
        ),
        TemplateCreate(
            name="Payment Confirmation Workflow",
            description="Send confirmation and update status when payment is received",
            category="Payment Processing",
            trigger_type=TriggerType.PAYMENT_RECEIVED,
            tags=["payment", "confirmation", "sms", "status"],
            definition=TemplateDefinition(
                conditions=[
                    TemplateConditionSkeleton(
                        condition_type=ConditionType.FIELD_COMPARISON,
                        field_name="Status",
                        operator="equals",
                        value="Confirmed",
                        order=1,
                    )
                ],
                actions=[
                    TemplateActionSkeleton(
                        action_type=ActionType.SEND_SMS,
                        parameters={
                            "template": "PaymentConfirmation",
                            "message": "Your payment has been received and confirmed. Thank you!",
                        },
                        order=1,
                        continue_on_error=True,
                        parameter_mappings={"phoneNumber": "clientPhone"},
                    ),
                    TemplateActionSkeleton(
                        action_type=ActionType.UPDATE_STATUS,
                        parameters={
                            "entityType": "TaxFiling",
                            "newStatus": "Paid",
                            "reason": "Payment confirmed via workflow",
                        },
                        order=2,
                        continue_on_error=False,
                    ),
                ],
                parameters=[
                    TemplateParameter(
                        name="clientPhone",
                        display_name="Client Phone Number",
                        description="Phone number to send confirmation to",
                        data_type="phone",
                        is_required=True,
                        order=1,
                    )
                ],
            ),
        ),
        TemplateCreate(
            name="Document Upload Notification",
            description="Notify staff when important documents are uploaded",
            category="Document Management",
            trigger_type=TriggerType.DOCUMENT_UPLOADED,
            tags=["document", "notification", "staff"],
            definition=TemplateDefinition(
                conditions=[
                    TemplateConditionSkeleton(
                        condition_type=ConditionType.LIST_CONTAINS,
                        field_name="DocumentType",
                        operator="in",
                        value="TaxReturn,FinancialStatement,BankStatement",
                        order=1,
                        is_parameterized=True,
                        parameter_name="documentTypes",
                    )
                ],
                actions=[
                    TemplateActionSkeleton(
                        action_type=ActionType.SEND_NOTIFICATION,
                        parameters={"title": "Important Document Uploaded", "type": "info"},
                        order=1,
                        parameter_mappings={"userId": "staffUserId", "message": "documentMessage"},
                    ),
                    TemplateActionSkeleton(
                        action_type=ActionType.CREATE_TASK,
                        parameters={"title": "Review Uploaded Document", "priority": "medium"},
                        order=2,
                        parameter_mappings={"assignee": "reviewerUserId"},
                    ),
                ],
                parameters=[
                    TemplateParameter(
                        name="documentTypes",
                        display_name="Document Types",
                        description="Document types that trigger notifications",
                        data_type="list",
                        is_required=True,
                        default_value="TaxReturn,FinancialStatement,BankStatement",
                        order=1,
                    ),
                    TemplateParameter(
                        name="staffUserId",
                        display_name="Staff User ID",
                        description="Staff member to notify",
                        data_type="user",
                        is_required=True,
                        order=2,
                    ),
                    TemplateParameter(
                        name="reviewerUserId",
                        display_name="Reviewer User ID",
                        description="Staff member to assign review task",
                        data_type="user",
                        is_required=True,
                        order=3,
                    ),
                    TemplateParameter(
                        name="documentMessage",
                        display_name="Notification Message",
                        description="Message to include in notification",
                        data_type="text",
                        is_required=False,
                        default_value="A new document has been uploaded and requires review.",
                        order=4,
                    ),
                ],
            ),
        ),
    ]


def seed_predefined_templates(db: Session) -> int:
    """Create any predefined template whose name is not present yet."""
    existing = {name for (name,) in db.query(WorkflowTemplate.name).all()}
    user = system_user()
    created = 0
    for payload in predefined_templates():
        if payload.name in existing:
            continue
        create_template(db, payload, user=user, commit=False)
        created += 1
    if created:
        commit_or_raise(db, _logger, "Seed predefined templates")
        _logger.info("Seeded %s workflow templates", created)
    return created
