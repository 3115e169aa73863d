"""add school events and assignments

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


assignment_due_period_enum = sa.Enum(
    "morning",
    "period_1",
    "period_2",
    "period_3",
    "period_4",
    "period_5",
    "period_6",
    "period_7",
    name="assignment_due_period",
)


def upgrade() -> None:
    op.create_table(
        "school_events",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("class_id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("start_date", sa.String(length=10), nullable=False),
        sa.Column("end_date", sa.String(length=10), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_school_events_class_id", "school_events", ["class_id"])
    op.create_index("ix_school_events_start_date", "school_events", ["start_date"])

    op.create_table(
        "assignments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("class_id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("subject_id", sa.String(length=36), nullable=True),
        sa.Column("custom_subject_name", sa.String(length=200), nullable=True),
        sa.Column("due_date", sa.String(length=10), nullable=False),
        sa.Column("due_period", assignment_due_period_enum, nullable=True),
        sa.Column("submission_method", sa.String(length=200), nullable=True),
        sa.Column("target_audience", sa.String(length=200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_assignments_class_id", "assignments", ["class_id"])
    op.create_index("ix_assignments_subject_id", "assignments", ["subject_id"])
    op.create_index("ix_assignments_due_date", "assignments", ["due_date"])


def downgrade() -> None:
    op.drop_index("ix_assignments_due_date", table_name="assignments")
    op.drop_index("ix_assignments_subject_id", table_name="assignments")
    op.drop_index("ix_assignments_class_id", table_name="assignments")
    op.drop_table("assignments")
    op.drop_index("ix_school_events_start_date", table_name="school_events")
    op.drop_index("ix_school_events_class_id", table_name="school_events")
    op.drop_table("school_events")
    assignment_due_period_enum.drop(op.get_bind(), checkfirst=True)
