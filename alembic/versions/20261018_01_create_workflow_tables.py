"""create workflow tables

Revision ID: 20261018_01
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "workflow_templates",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.String(length=1000), nullable=True),
        sa.Column("category", sa.String(length=64), nullable=False),
        sa.Column("trigger_type", sa.String(length=64), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("definition", sa.JSON(), nullable=False),
        sa.Column("version", sa.String(length=16), nullable=False, server_default="1.0"),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rating", sa.Float(), nullable=False, server_default="0"),
        sa.Column("created_by", sa.String(length=128), nullable=True),
        sa.Column("updated_by", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_workflow_templates_name", "workflow_templates", ["name"])
    op.create_index("ix_workflow_templates_category", "workflow_templates", ["category"])
    op.create_index("ix_workflow_templates_trigger_type", "workflow_templates", ["trigger_type"])

    op.create_table(
        "workflow_rules",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.String(length=1000), nullable=True),
        sa.Column("trigger_type", sa.String(length=64), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="100"),
        sa.Column("template_id", sa.String(length=36), sa.ForeignKey("workflow_templates.id"), nullable=True),
        sa.Column("created_by", sa.String(length=128), nullable=True),
        sa.Column("updated_by", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_workflow_rules_trigger_type", "workflow_rules", ["trigger_type"])
    op.create_index("ix_workflow_rules_is_active", "workflow_rules", ["is_active"])
    op.create_index("ix_workflow_rules_template_id", "workflow_rules", ["template_id"])

    op.create_table(
        "workflow_conditions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "rule_id",
            sa.String(length=36),
            sa.ForeignKey("workflow_rules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("condition_type", sa.String(length=32), nullable=False),
        sa.Column("field_name", sa.String(length=256), nullable=False),
        sa.Column("operator", sa.String(length=32), nullable=False),
        sa.Column("value", sa.String(length=1000), nullable=True),
        sa.Column("logical_operator", sa.String(length=8), nullable=False, server_default="AND"),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("rule_id", "order", name="uq_workflow_conditions_rule_order"),
    )
    op.create_index("ix_workflow_conditions_rule_id", "workflow_conditions", ["rule_id"])

    op.create_table(
        "workflow_actions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "rule_id",
            sa.String(length=36),
            sa.ForeignKey("workflow_rules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("action_type", sa.String(length=32), nullable=False),
        sa.Column("parameters", sa.JSON(), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("continue_on_error", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("error_handling", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_workflow_actions_rule_id", "workflow_actions", ["rule_id"])

    op.create_table(
        "workflow_execution_history",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "rule_id",
            sa.String(length=36),
            sa.ForeignKey("workflow_rules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("rule_name", sa.String(length=200), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("trigger_type", sa.String(length=64), nullable=False),
        sa.Column("trigger_data", sa.JSON(), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration_ms", sa.Float(), nullable=False, server_default="0"),
        sa.Column("error_message", sa.String(length=2000), nullable=True),
        sa.Column("executed_by", sa.String(length=128), nullable=True),
        sa.Column("actions_executed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("actions_succeeded", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_workflow_execution_history_rule_id", "workflow_execution_history", ["rule_id"])
    op.create_index("ix_workflow_execution_history_status", "workflow_execution_history", ["status"])
    op.create_index("ix_workflow_execution_history_trigger_type", "workflow_execution_history", ["trigger_type"])
    op.create_index("ix_workflow_execution_history_start_time", "workflow_execution_history", ["start_time"])
    op.create_index("ix_workflow_execution_history_executed_by", "workflow_execution_history", ["executed_by"])

    op.create_table(
        "workflow_action_execution_results",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "execution_id",
            sa.String(length=36),
            sa.ForeignKey("workflow_execution_history.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("action_id", sa.String(length=36), nullable=True),
        sa.Column("action_type", sa.String(length=32), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("success", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("result", sa.String(length=2000), nullable=True),
        sa.Column("error_message", sa.String(length=2000), nullable=True),
        sa.Column("duration_ms", sa.Float(), nullable=False, server_default="0"),
    )
    op.create_index(
        "ix_workflow_action_execution_results_execution_id",
        "workflow_action_execution_results",
        ["execution_id"],
    )


def downgrade() -> None:
    op.drop_index(
        "ix_workflow_action_execution_results_execution_id",
        table_name="workflow_action_execution_results",
    )
    op.drop_table("workflow_action_execution_results")
    op.drop_index("ix_workflow_execution_history_executed_by", table_name="workflow_execution_history")
    op.drop_index("ix_workflow_execution_history_start_time", table_name="workflow_execution_history")
    op.drop_index("ix_workflow_execution_history_trigger_type", table_name="workflow_execution_history")
    op.drop_index("ix_workflow_execution_history_status", table_name="workflow_execution_history")
    op.drop_index("ix_workflow_execution_history_rule_id", table_name="workflow_execution_history")
    op.drop_table("workflow_execution_history")
    op.drop_index("ix_workflow_actions_rule_id", table_name="workflow_actions")
    op.drop_table("workflow_actions")
    op.drop_index("ix_workflow_conditions_rule_id", table_name="workflow_conditions")
    op.drop_table("workflow_conditions")
    op.drop_index("ix_workflow_rules_template_id", table_name="workflow_rules")
    op.drop_index("ix_workflow_rules_is_active", table_name="workflow_rules")
    op.drop_index("ix_workflow_rules_trigger_type", table_name="workflow_rules")
    op.drop_table("workflow_rules")
    op.drop_index("ix_workflow_templates_trigger_type", table_name="workflow_templates")
    op.drop_index("ix_workflow_templates_category", table_name="workflow_templates")
    op.drop_index("ix_workflow_templates_name", table_name="workflow_templates")
    op.drop_table("workflow_templates")
