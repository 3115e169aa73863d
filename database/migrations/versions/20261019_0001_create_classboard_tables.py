"""create classboard tables

Revision ID: 20261019_0001
Revises: None
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


subject_override_kind_enum = sa.Enum("inherit", "none", "specific", name="subject_override_kind")


def upgrade() -> None:
    op.create_table(
        "timetable_settings",
        sa.Column("class_id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("number_of_periods", sa.Integer(), nullable=False, server_default="7"),
        sa.Column("active_days", sa.JSON(), nullable=False),
        sa.Column("student_permissions", sa.JSON(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "fixed_time_slots",
        sa.Column("class_id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("day", sa.String(length=10), primary_key=True, nullable=False),
        sa.Column("period", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=True),
        sa.Column("room", sa.String(length=50), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_fixed_time_slots_subject_id", "fixed_time_slots", ["subject_id"])

    op.create_table(
        "daily_announcements",
        sa.Column("class_id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("date", sa.String(length=10), primary_key=True, nullable=False),
        sa.Column("period", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("subject_override_kind", subject_override_kind_enum, nullable=False, server_default="inherit"),
        sa.Column("subject_id_override", sa.String(length=36), nullable=True),
        sa.Column("text", sa.Text(), nullable=False, server_default=""),
        sa.Column("show_on_calendar", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_manually_cleared", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "general_announcements",
        sa.Column("class_id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("date", sa.String(length=10), primary_key=True, nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("ai_summary", sa.Text(), nullable=True),
        sa.Column("ai_summary_last_generated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("class_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("teacher_name", sa.String(length=200), nullable=True),
    )
    op.create_index("ix_subjects_class_id", "subjects", ["class_id"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("class_id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_class_id", "activity_logs", ["class_id"])


def downgrade() -> None:
    op.drop_index("ix_activity_logs_class_id", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_index("ix_subjects_class_id", table_name="subjects")
    op.drop_table("subjects")
    op.drop_table("general_announcements")
    op.drop_table("daily_announcements")
    op.drop_index("ix_fixed_time_slots_subject_id", table_name="fixed_time_slots")
    op.drop_table("fixed_time_slots")
    op.drop_table("timetable_settings")
    subject_override_kind_enum.drop(op.get_bind(), checkfirst=True)
