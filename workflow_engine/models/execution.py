"""
ORM models for append-only workflow execution history.

Rows are written once per dispatched rule and never updated afterwards.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from . import Base

# Upper bound for stored error and result text; longer values are truncated on write.
MESSAGE_MAX_LENGTH = 2000


class WorkflowExecutionHistory(Base):
    __tablename__ = "workflow_execution_history"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    rule_id: Mapped[str] = mapped_column(String(36), ForeignKey("workflow_rules.id", ondelete="CASCADE"), index=True)
    rule_name: Mapped[str] = mapped_column(String(200))
    status: Mapped[str] = mapped_column(String(16), index=True)
    trigger_type: Mapped[str] = mapped_column(String(64), index=True)
    trigger_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    duration_ms: Mapped[float] = mapped_column(default=0.0)
    error_message: Mapped[str | None] = mapped_column(String(MESSAGE_MAX_LENGTH), nullable=True)
    executed_by: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    actions_executed: Mapped[int] = mapped_column(Integer, default=0)
    actions_succeeded: Mapped[int] = mapped_column(Integer, default=0)

    rule: Mapped["WorkflowRule"] = relationship("WorkflowRule", back_populates="executions")  # noqa: F821
    action_results: Mapped[list[WorkflowActionExecutionResult]] = relationship(
        "WorkflowActionExecutionResult",
        back_populates="execution",
        cascade="all, delete-orphan",
        order_by="WorkflowActionExecutionResult.position",
    )


class WorkflowActionExecutionResult(Base):
    __tablename__ = "workflow_action_execution_results"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    execution_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("workflow_execution_history.id", ondelete="CASCADE"), index=True
    )
    # Action ids are snapshots; the action row may have been replaced by a later rule update.
    action_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    action_type: Mapped[str] = mapped_column(String(32))
    position: Mapped[int] = mapped_column(Integer, default=0)
    success: Mapped[bool] = mapped_column(Boolean, default=False)
    result: Mapped[str | None] = mapped_column(String(MESSAGE_MAX_LENGTH), nullable=True)
    error_message: Mapped[str | None] = mapped_column(String(MESSAGE_MAX_LENGTH), nullable=True)
    duration_ms: Mapped[float] = mapped_column(default=0.0)

    execution: Mapped[WorkflowExecutionHistory] = relationship(
        "WorkflowExecutionHistory", back_populates="action_results"
    )
