"""
Static catalogs exposed to rule editors: trigger types and their payload
fields, condition types with their operators, action types with their
parameters, and the predefined template categories.
"""

from __future__ import annotations

from typing import Any, Optional

from ..schemas.enums import ActionType, ConditionType, Operator, TriggerType, VALUELESS_OPERATORS

TEMPLATE_CATEGORIES = [
    "Tax Filing",
    "Payment Processing",
    "Document Management",
    "Compliance Monitoring",
    "Client Communication",
    "Report Generation",
    "Data Validation",
    "Notification Management",
    "Workflow Approval",
    "System Maintenance",
    "Integration",
    "Custom",
]

_EQ = ["equals", "notequals"]
_DATE_OPS = ["equals", "before", "after", "between"]
_NUM_OPS = ["equals", "greaterthan", "lessthan"]
_DEC_OPS = ["equals", "greaterthan", "lessthan", "between"]


def _field(name: str, display: str, data_type: str, operators: list[str]) -> dict:
    return {"name": name, "display_name": display, "data_type": data_type, "supported_operators": operators}


_TAX_FILING_FIELDS = [
    _field("ClientId", "Client ID", "number", _EQ),
    _field("Status", "Status", "string", _EQ + ["contains"]),
    _field("TaxYear", "Tax Year", "number", _NUM_OPS),
    _field("Amount", "Amount", "decimal", _DEC_OPS),
    _field("DueDate", "Due Date", "datetime", _DATE_OPS),
    _field("CreatedDate", "Created Date", "datetime", _DATE_OPS),
]

_PAYMENT_FIELDS = [
    _field("Amount", "Amount", "decimal", _DEC_OPS),
    _field("Currency", "Currency", "string", _EQ),
    _field("PaymentMethod", "Payment Method", "string", _EQ + ["contains"]),
    _field("Status", "Status", "string", _EQ),
    _field("ClientId", "Client ID", "number", _EQ),
    _field("TransactionDate", "Transaction Date", "datetime", _DATE_OPS),
]

_DOCUMENT_FIELDS = [
    _field("DocumentType", "Document Type", "string", _EQ + ["contains"]),
    _field("ClientId", "Client ID", "number", _EQ),
    _field("FileSize", "File Size", "number", _NUM_OPS),
    _field("FileExtension", "File Extension", "string", _EQ),
    _field("UploadDate", "Upload Date", "datetime", _DATE_OPS),
    _field("Status", "Status", "string", _EQ),
]

_DEADLINE_FIELDS = [
    _field("DeadlineDate", "Deadline Date", "datetime", _DATE_OPS),
    _field("DaysUntilDeadline", "Days Until Deadline", "number", _NUM_OPS),
    _field("DeadlineType", "Deadline Type", "string", _EQ + ["contains"]),
    _field("ClientId", "Client ID", "number", _EQ),
    _field("Priority", "Priority", "string", _EQ),
]

_CLIENT_FIELDS = [
    _field("ClientType", "Client Type", "string", _EQ),
    _field("Status", "Status", "string", _EQ),
    _field("RegistrationDate", "Registration Date", "datetime", _DATE_OPS),
    _field("Country", "Country", "string", _EQ),
    _field("Industry", "Industry", "string", _EQ + ["contains"]),
    _field("AnnualRevenue", "Annual Revenue", "decimal", _DEC_OPS),
]

_GENERIC_FIELDS = [
    _field("Status", "Status", "string", _EQ + ["contains"]),
    _field("Source", "Source", "string", _EQ),
    _field("Timestamp", "Timestamp", "datetime", _DATE_OPS),
]

TRIGGER_FIELDS: dict[TriggerType, list[dict]] = {
    TriggerType.TAX_FILING_CREATED: _TAX_FILING_FIELDS,
    TriggerType.TAX_FILING_UPDATED: _TAX_FILING_FIELDS,
    TriggerType.TAX_FILING_SUBMITTED: _TAX_FILING_FIELDS,
    TriggerType.PAYMENT_RECEIVED: _PAYMENT_FIELDS,
    TriggerType.PAYMENT_FAILED: _PAYMENT_FIELDS,
    TriggerType.DOCUMENT_UPLOADED: _DOCUMENT_FIELDS,
    TriggerType.DOCUMENT_APPROVED: _DOCUMENT_FIELDS,
    TriggerType.DOCUMENT_REJECTED: _DOCUMENT_FIELDS,
    TriggerType.DEADLINE_APPROACHING: _DEADLINE_FIELDS,
    TriggerType.COMPLIANCE_STATUS_CHANGED: _CLIENT_FIELDS,
    TriggerType.CLIENT_REGISTERED: _CLIENT_FIELDS,
    TriggerType.CLIENT_STATUS_CHANGED: _CLIENT_FIELDS,
    TriggerType.SYSTEM_ALERT: _GENERIC_FIELDS,
    TriggerType.SCHEDULED_TASK: _GENERIC_FIELDS,
    TriggerType.DATA_IMPORTED: _GENERIC_FIELDS,
    TriggerType.REPORT_GENERATED: _GENERIC_FIELDS,
}

_OPERATOR_LABELS = {
    Operator.EQUALS: "Equals",
    Operator.NOT_EQUALS: "Not Equals",
    Operator.CONTAINS: "Contains",
    Operator.STARTS_WITH: "Starts With",
    Operator.ENDS_WITH: "Ends With",
    Operator.GREATER_THAN: "Greater Than",
    Operator.LESS_THAN: "Less Than",
    Operator.GREATER_THAN_OR_EQUAL: "Greater Than or Equal",
    Operator.LESS_THAN_OR_EQUAL: "Less Than or Equal",
    Operator.IS_NULL: "Is Null",
    Operator.IS_NOT_NULL: "Is Not Null",
    Operator.BEFORE: "Before",
    Operator.AFTER: "After",
    Operator.BETWEEN: "Between",
    Operator.TODAY: "Today",
    Operator.YESTERDAY: "Yesterday",
    Operator.THIS_WEEK: "This Week",
    Operator.THIS_MONTH: "This Month",
    Operator.IN: "In List",
    Operator.NOT_IN: "Not In List",
    Operator.CONTAINS_ALL: "Contains All",
    Operator.MATCHES: "Matches Pattern",
    Operator.LENGTH: "Length Equals",
    Operator.EMPTY: "Is Empty",
}

CONDITION_OPERATORS: dict[ConditionType, list[Operator]] = {
    ConditionType.FIELD_COMPARISON: [
        Operator.EQUALS,
        Operator.NOT_EQUALS,
        Operator.CONTAINS,
        Operator.STARTS_WITH,
        Operator.ENDS_WITH,
        Operator.IS_NULL,
        Operator.IS_NOT_NULL,
    ],
    ConditionType.DATE_COMPARISON: [
        Operator.EQUALS,
        Operator.BEFORE,
        Operator.AFTER,
        Operator.BETWEEN,
        Operator.GREATER_THAN,
        Operator.LESS_THAN,
        Operator.GREATER_THAN_OR_EQUAL,
        Operator.LESS_THAN_OR_EQUAL,
        Operator.TODAY,
        Operator.YESTERDAY,
        Operator.THIS_WEEK,
        Operator.THIS_MONTH,
    ],
    ConditionType.NUMERIC_RANGE: [
        Operator.EQUALS,
        Operator.NOT_EQUALS,
        Operator.GREATER_THAN,
        Operator.LESS_THAN,
        Operator.GREATER_THAN_OR_EQUAL,
        Operator.LESS_THAN_OR_EQUAL,
        Operator.BETWEEN,
    ],
    ConditionType.TEXT_PATTERN: [
        Operator.MATCHES,
        Operator.CONTAINS,
        Operator.STARTS_WITH,
        Operator.ENDS_WITH,
        Operator.LENGTH,
        Operator.EMPTY,
    ],
    ConditionType.LIST_CONTAINS: [
        Operator.IN,
        Operator.NOT_IN,
        Operator.CONTAINS,
        Operator.CONTAINS_ALL,
    ],
}


def _param(
    name: str,
    display: str,
    data_type: str,
    required: bool,
    *,
    allowed: Optional[list[Any]] = None,
    default: Any = None,
) -> dict:
    return {
        "name": name,
        "display_name": display,
        "data_type": data_type,
        "required": required,
        "allowed_values": allowed or [],
        "default_value": default,
    }


ACTION_TYPES: dict[ActionType, dict] = {
    ActionType.SEND_EMAIL: {
        "name": "Send Email",
        "description": "Send an email notification",
        "requires_approval": False,
        "parameters": [
            _param("to", "To Email Address", "email", True),
            _param("subject", "Subject", "string", True),
            _param("body", "Body", "html", True),
            _param("cc", "CC Email Addresses", "emaillist", False),
            _param("bcc", "BCC Email Addresses", "emaillist", False),
            _param("template", "Email Template", "select", False),
        ],
    },
    ActionType.SEND_SMS: {
        "name": "Send SMS",
        "description": "Send an SMS notification",
        "requires_approval": False,
        "parameters": [
            _param("phoneNumber", "Phone Number", "phone", True),
            _param("message", "Message", "text", True),
            _param("template", "SMS Template", "select", False),
        ],
    },
    ActionType.SEND_NOTIFICATION: {
        "name": "Send In-App Notification",
        "description": "Send an in-app notification",
        "requires_approval": False,
        "parameters": [
            _param("userId", "User ID", "string", True),
            _param("title", "Title", "string", True),
            _param("message", "Message", "text", True),
            _param("type", "Notification Type", "select", False, allowed=["info", "success", "warning", "error"]),
        ],
    },
    ActionType.CREATE_TASK: {
        "name": "Create Task",
        "description": "Create a new task or reminder",
        "requires_approval": False,
        "parameters": [
            _param("assignee", "Assignee", "user", True),
            _param("title", "Task Title", "string", True),
            _param("description", "Description", "text", False),
            _param("dueDate", "Due Date", "datetime", False),
            _param("priority", "Priority", "select", False, allowed=["low", "medium", "high", "urgent"]),
        ],
    },
    ActionType.UPDATE_STATUS: {
        "name": "Update Status",
        "description": "Update the status of a record",
        "requires_approval": True,
        "parameters": [
            _param("entityType", "Entity Type", "select", True, allowed=["TaxFiling", "Payment", "Document", "Client"]),
            _param("entityId", "Entity ID", "string", True),
            _param("newStatus", "New Status", "string", True),
            _param("reason", "Reason", "text", False),
        ],
    },
    ActionType.GENERATE_REPORT: {
        "name": "Generate Report",
        "description": "Generate and send a report",
        "requires_approval": False,
        "parameters": [
            _param("reportType", "Report Type", "select", True),
            _param("format", "Format", "select", True, allowed=["PDF", "Excel", "CSV"]),
            _param("emailTo", "Email Recipients", "emaillist", False),
            _param("parameters", "Report Parameters", "json", False),
        ],
    },
    ActionType.CALL_WEBHOOK: {
        "name": "Call Webhook",
        "description": "Make an HTTP request to an external endpoint",
        "requires_approval": True,
        "parameters": [
            _param("url", "Webhook URL", "url", True),
            _param("method", "HTTP Method", "select", True, allowed=["GET", "POST", "PUT", "DELETE"]),
            _param("headers", "HTTP Headers", "json", False),
            _param("body", "Request Body", "json", False),
            _param("timeout", "Timeout (seconds)", "number", False, default=30),
        ],
    },
}


def _display(value: str) -> str:
    words: list[str] = []
    for char in value:
        if char.isupper() and words:
            words.append(" ")
        words.append(char)
    return "".join(words)


def list_trigger_types() -> list[dict]:
    return [
        {
            "type": trigger.value,
            "name": _display(trigger.value),
            "fields": TRIGGER_FIELDS.get(trigger, []),
        }
        for trigger in TriggerType
    ]


def get_trigger_fields(trigger_type: TriggerType) -> list[dict]:
    return TRIGGER_FIELDS.get(trigger_type, [])


def operator_info(operator: Operator) -> dict:
    return {
        "operator": operator.value,
        "display_name": _OPERATOR_LABELS[operator],
        "requires_value": operator not in VALUELESS_OPERATORS,
    }


def list_condition_types() -> list[dict]:
    return [
        {
            "type": condition_type.value,
            "name": _display(condition_type.value),
            "supported_operators": [operator_info(op) for op in operators],
        }
        for condition_type, operators in CONDITION_OPERATORS.items()
    ]


def list_action_types() -> list[dict]:
    return [{"type": action_type.value, **info} for action_type, info in ACTION_TYPES.items()]
