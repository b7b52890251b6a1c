"""create vivaplan schema

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


user_role = sa.Enum("admin", "examiner", "student", "user", name="user_role")
reschedule_status = sa.Enum("Pending", "Approved", "Rejected", name="reschedule_status")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("username", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("user_code", sa.String(length=32), nullable=True),
        sa.Column("profile_picture", sa.String(length=500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_user_code", "users", ["user_code"], unique=False)

    op.create_table(
        "students",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("student_code", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("department", sa.String(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_students_student_code", "students", ["student_code"], unique=True)
    op.create_index("ix_students_email", "students", ["email"], unique=True)
    op.create_index("ix_students_department", "students", ["department"], unique=False)

    op.create_table(
        "examiners",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("examiner_code", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("department", sa.String(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_examiners_examiner_code", "examiners", ["examiner_code"], unique=True)
    op.create_index("ix_examiners_email", "examiners", ["email"], unique=True)
    op.create_index("ix_examiners_department", "examiners", ["department"], unique=False)

    op.create_table(
        "venues",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("venue_code", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_venues_venue_code", "venues", ["venue_code"], unique=True)

    op.create_table(
        "modules",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("module_code", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_modules_module_code", "modules", ["module_code"], unique=True)

    op.create_table(
        "student_groups",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("group_code", sa.String(length=32), nullable=False),
        sa.Column("department", sa.String(length=100), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_student_groups_group_code", "student_groups", ["group_code"], unique=True)

    op.create_table(
        "student_group_members",
        sa.Column(
            "group_id",
            sa.String(length=36),
            sa.ForeignKey("student_groups.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "student_id",
            sa.String(length=36),
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            primary_key=True,
            unique=True,
        ),
    )

    op.create_table(
        "presentations",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("department", sa.String(length=100), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("num_of_examiners", sa.Integer(), nullable=False),
        sa.Column("venue_id", sa.String(length=36), sa.ForeignKey("venues.id"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_presentations_department", "presentations", ["department"], unique=False)
    op.create_index("ix_presentations_date", "presentations", ["date"], unique=False)
    op.create_index("ix_presentations_venue_id", "presentations", ["venue_id"], unique=False)

    for table_name, column_name, target in (
        ("presentation_examiners", "examiner_id", "examiners.id"),
        ("presentation_students", "student_id", "students.id"),
    ):
        op.create_table(
            table_name,
            sa.Column(
                "presentation_id",
                sa.String(length=36),
                sa.ForeignKey("presentations.id", ondelete="CASCADE"),
                primary_key=True,
            ),
            sa.Column(column_name, sa.String(length=36), sa.ForeignKey(target, ondelete="CASCADE"), primary_key=True),
        )
        op.create_index(f"ix_{table_name}_{column_name}", table_name, [column_name], unique=False)

    op.create_table(
        "timetables",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "group_id",
            sa.String(length=36),
            sa.ForeignKey("student_groups.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("schedule", sa.JSON(), nullable=False),
        sa.Column("updated_by_id", sa.String(length=36), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "reschedule_requests",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "presentation_id",
            sa.String(length=36),
            sa.ForeignKey("presentations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("requested_by_user_id", sa.String(length=36), nullable=False),
        sa.Column("requested_by_role", sa.String(length=20), nullable=False),
        sa.Column("requestor_email", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("requested_date", sa.Date(), nullable=False),
        sa.Column("requested_start_time", sa.String(length=5), nullable=False),
        sa.Column("requested_end_time", sa.String(length=5), nullable=False),
        sa.Column("requested_venue_id", sa.String(length=36), sa.ForeignKey("venues.id"), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("status", reschedule_status, nullable=False, server_default="Pending"),
        sa.Column("decided_by_id", sa.String(length=36), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_reschedule_requests_presentation_id", "reschedule_requests", ["presentation_id"], unique=False)
    op.create_index(
        "ix_reschedule_requests_requested_by_user_id", "reschedule_requests", ["requested_by_user_id"], unique=False
    )
    op.create_index("ix_reschedule_requests_requested_date", "reschedule_requests", ["requested_date"], unique=False)
    op.create_index("ix_reschedule_requests_status", "reschedule_requests", ["status"], unique=False)

    op.create_table(
        "id_sequences",
        sa.Column("category", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("last_value", sa.Integer(), nullable=False),
    )

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=True),
        sa.Column("entity_id", sa.String(length=36), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"], unique=False)


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_table("id_sequences")
    op.drop_table("reschedule_requests")
    op.drop_table("timetables")
    op.drop_table("presentation_students")
    op.drop_table("presentation_examiners")
    op.drop_table("presentations")
    op.drop_table("student_group_members")
    op.drop_table("student_groups")
    op.drop_table("modules")
    op.drop_table("venues")
    op.drop_table("examiners")
    op.drop_table("students")
    op.drop_table("users")
    reschedule_status.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
