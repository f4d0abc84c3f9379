"""create assignment engine tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


user_role = sa.Enum("admin", "faculty", "student", name="user_role")
assignment_status = sa.Enum("pending", "assigned", "in_progress", "evaluated", name="assignment_status")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "courses",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_courses_code", "courses", ["code"], unique=True)

    op.create_table(
        "faculty",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("department", sa.String(length=200), nullable=True),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("max_capacity", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("current_load", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("max_capacity >= 1 AND max_capacity <= 100", name="ck_faculty_max_capacity_range"),
    )
    op.create_index("ix_faculty_email", "faculty", ["email"], unique=True)

    op.create_table(
        "submissions",
        sa.Column("id", sa.String(length=100), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("course_id", sa.String(length=36), nullable=True),
        sa.Column("challenge_id", sa.String(length=100), nullable=True),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="pending"),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_submissions_user_id", "submissions", ["user_id"], unique=False)
    op.create_index("ix_submissions_course_id", "submissions", ["course_id"], unique=False)
    op.create_index("ix_submissions_status", "submissions", ["status"], unique=False)
    op.create_index("ix_submissions_submitted_at", "submissions", ["submitted_at"], unique=False)

    op.create_table(
        "submission_assignments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("submission_id", sa.String(length=100), nullable=False),
        sa.Column("faculty_id", sa.String(length=36), nullable=False),
        sa.Column("status", assignment_status, nullable=False, server_default="pending"),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("locked_by", sa.String(length=100), nullable=True),
        sa.Column("locked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reallocation_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_reallocated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("submission_weight", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("submission_id", name="uq_submission_assignments_submission_id"),
    )
    op.create_index("ix_submission_assignments_faculty_id", "submission_assignments", ["faculty_id"], unique=False)
    op.create_index("ix_submission_assignments_status", "submission_assignments", ["status"], unique=False)
    op.create_index("idx_sa_faculty_status", "submission_assignments", ["faculty_id", "status"], unique=False)

    op.create_table(
        "assignment_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("submission_id", sa.String(length=100), nullable=False),
        sa.Column("action_type", sa.String(length=50), nullable=False),
        sa.Column("from_faculty_id", sa.String(length=36), nullable=True),
        sa.Column("to_faculty_id", sa.String(length=36), nullable=True),
        sa.Column("admin_id", sa.String(length=36), nullable=True),
        sa.Column("actor_role", sa.String(length=20), nullable=False, server_default="system"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_assignment_logs_submission_id", "assignment_logs", ["submission_id"], unique=False)
    op.create_index("ix_assignment_logs_action_type", "assignment_logs", ["action_type"], unique=False)
    op.create_index("ix_assignment_logs_from_faculty_id", "assignment_logs", ["from_faculty_id"], unique=False)
    op.create_index("ix_assignment_logs_to_faculty_id", "assignment_logs", ["to_faculty_id"], unique=False)
    op.create_index("ix_assignment_logs_created_at", "assignment_logs", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_table("assignment_logs")
    op.drop_table("submission_assignments")
    op.drop_table("submissions")
    op.drop_table("faculty")
    op.drop_table("courses")
    op.drop_table("users")
    assignment_status.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
