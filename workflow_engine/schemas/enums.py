"""
Closed vocabularies shared by schemas, services and the API.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class TriggerType(str, Enum):
    TAX_FILING_CREATED = "TaxFilingCreated"
    TAX_FILING_UPDATED = "TaxFilingUpdated"
    TAX_FILING_SUBMITTED = "TaxFilingSubmitted"
    PAYMENT_RECEIVED = "PaymentReceived"
    PAYMENT_FAILED = "PaymentFailed"
    DOCUMENT_UPLOADED = "DocumentUploaded"
    DOCUMENT_APPROVED = "DocumentApproved"
    DOCUMENT_REJECTED = "DocumentRejected"
    DEADLINE_APPROACHING = "DeadlineApproaching"
    COMPLIANCE_STATUS_CHANGED = "ComplianceStatusChanged"
    CLIENT_REGISTERED = "ClientRegistered"
    CLIENT_STATUS_CHANGED = "ClientStatusChanged"
    SYSTEM_ALERT = "SystemAlert"
    SCHEDULED_TASK = "ScheduledTask"
    DATA_IMPORTED = "DataImported"
    REPORT_GENERATED = "ReportGenerated"


class ConditionType(str, Enum):
    FIELD_COMPARISON = "FieldComparison"
    DATE_COMPARISON = "DateComparison"
    NUMERIC_RANGE = "NumericRange"
    TEXT_PATTERN = "TextPattern"
    LIST_CONTAINS = "ListContains"


class Operator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "notequals"
    CONTAINS = "contains"
    STARTS_WITH = "startswith"
    ENDS_WITH = "endswith"
    GREATER_THAN = "greaterthan"
    LESS_THAN = "lessthan"
    GREATER_THAN_OR_EQUAL = "greaterthanorequal"
    LESS_THAN_OR_EQUAL = "lessthanorequal"
    IS_NULL = "isnull"
    IS_NOT_NULL = "isnotnull"
    BEFORE = "before"
    AFTER = "after"
    BETWEEN = "between"
    TODAY = "today"
    YESTERDAY = "yesterday"
    THIS_WEEK = "thisweek"
    THIS_MONTH = "thismonth"
    IN = "in"
    NOT_IN = "notin"
    CONTAINS_ALL = "containsall"
    MATCHES = "matches"
    LENGTH = "length"
    EMPTY = "empty"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["Operator"]:
        if raw is None:
            return None
        try:
            return cls(str(getattr(raw, "value", raw)).strip().lower())
        except ValueError:
            return None


# Operators that never read the condition's value operand.
VALUELESS_OPERATORS = frozenset(
    {
        Operator.IS_NULL,
        Operator.IS_NOT_NULL,
        Operator.TODAY,
        Operator.YESTERDAY,
        Operator.THIS_WEEK,
        Operator.THIS_MONTH,
        Operator.EMPTY,
    }
)


class LogicalOperator(str, Enum):
    AND = "AND"
    OR = "OR"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "LogicalOperator":
        # Anything that is not OR folds as AND.
        if raw is not None and str(getattr(raw, "value", raw)).strip().upper() == "OR":
            return cls.OR
        return cls.AND


class ActionType(str, Enum):
    SEND_EMAIL = "SendEmail"
    SEND_SMS = "SendSms"
    SEND_NOTIFICATION = "SendNotification"
    CREATE_TASK = "CreateTask"
    UPDATE_STATUS = "UpdateStatus"
    GENERATE_REPORT = "GenerateReport"
    CALL_WEBHOOK = "CallWebhook"


class ExecutionStatus(str, Enum):
    SUCCESS = "Success"
    FAILED = "Failed"
