"""
SQLAlchemy model base class for the workflow engine.

This package defines ORM models for workflow rules and their conditions and
actions, reusable templates, and execution history. All models inherit from
the declarative `Base` defined here.
"""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass


from .template import WorkflowTemplate  # noqa: E402,F401
from .rule import WorkflowRule, WorkflowCondition, WorkflowAction  # noqa: E402,F401
from .execution import WorkflowExecutionHistory, WorkflowActionExecutionResult  # noqa: E402,F401

__all__ = [
    "Base",

    # Rules
    "WorkflowRule",
    "WorkflowCondition",
    "WorkflowAction",

    # Templates
    "WorkflowTemplate",

    # History
    "WorkflowExecutionHistory",
    "WorkflowActionExecutionResult",
]
