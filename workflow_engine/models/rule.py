"""
ORM models for workflow rules, their ordered conditions and actions.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from . import Base


class WorkflowRule(Base):
    __tablename__ = "workflow_rules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    trigger_type: Mapped[str] = mapped_column(String(64), index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    priority: Mapped[int] = mapped_column(Integer, default=100)
    template_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("workflow_templates.id"), nullable=True, index=True
    )
    created_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    updated_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    conditions: Mapped[list[WorkflowCondition]] = relationship(
        "WorkflowCondition",
        back_populates="rule",
        cascade="all, delete-orphan",
        order_by="WorkflowCondition.order",
    )
    actions: Mapped[list[WorkflowAction]] = relationship(
        "WorkflowAction",
        back_populates="rule",
        cascade="all, delete-orphan",
        order_by="WorkflowAction.order",
    )
    executions: Mapped[list["WorkflowExecutionHistory"]] = relationship(  # noqa: F821
        "WorkflowExecutionHistory",
        back_populates="rule",
        cascade="all, delete-orphan",
    )


class WorkflowCondition(Base):
    __tablename__ = "workflow_conditions"
    __table_args__ = (UniqueConstraint("rule_id", "order", name="uq_workflow_conditions_rule_order"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    rule_id: Mapped[str] = mapped_column(String(36), ForeignKey("workflow_rules.id", ondelete="CASCADE"), index=True)
    condition_type: Mapped[str] = mapped_column(String(32), default="FieldComparison")
    field_name: Mapped[str] = mapped_column(String(256))
    operator: Mapped[str] = mapped_column(String(32))
    value: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    logical_operator: Mapped[str] = mapped_column(String(8), default="AND")
    order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)

    rule: Mapped[WorkflowRule] = relationship("WorkflowRule", back_populates="conditions")


class WorkflowAction(Base):
    __tablename__ = "workflow_actions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    rule_id: Mapped[str] = mapped_column(String(36), ForeignKey("workflow_rules.id", ondelete="CASCADE"), index=True)
    action_type: Mapped[str] = mapped_column(String(32))
    parameters: Mapped[dict] = mapped_column(JSON, default=dict)
    order: Mapped[int] = mapped_column(Integer, default=0)
    continue_on_error: Mapped[bool] = mapped_column(Boolean, default=True)
    error_handling: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)

    rule: Mapped[WorkflowRule] = relationship("WorkflowRule", back_populates="actions")
