"""Initial schema: roster, ledger, agenda, gifts, follow-ups, settings, audit

Revision ID: 5c2e8d1f0a93
Revises:
Create Date: 2026-10-18 10:12:41.508113

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5c2e8d1f0a93'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- members ---
    op.create_table(
        "members",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("dob", sa.String(10), nullable=True),
        sa.Column("address", sa.String(200), nullable=True),
        sa.Column("college", sa.String(100), nullable=True),
        sa.Column("year", sa.String(50), nullable=True),
        sa.Column("confession_father", sa.String(100), nullable=True),
        sa.Column("responsible_servant", sa.String(100), nullable=True),
        sa.Column("photo_url", sa.Text, nullable=True),
        sa.Column("has_face_id", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("fingerprint_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_members_responsible_servant", "members", ["responsible_servant"])

    # --- attendance_records ---
    op.create_table(
        "attendance_records",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("member_id", sa.String(64), nullable=False),
        sa.Column("timestamp", sa.BigInteger, nullable=False),
        sa.Column("date_str", sa.String(10), nullable=False),
        sa.Column("points", sa.Integer, nullable=False),
        sa.Column("method", sa.String(20), nullable=False, server_default="manual"),
        sa.UniqueConstraint("member_id", "date_str", name="uq_attendance_member_date"),
    )
    op.create_index("ix_attendance_date", "attendance_records", ["date_str"])
    op.create_index("ix_attendance_timestamp", "attendance_records", ["timestamp"])

    # --- redemption_records ---
    op.create_table(
        "redemption_records",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("member_id", sa.String(64), nullable=False),
        sa.Column("gift_label", sa.String(200), nullable=False),
        sa.Column("points_cost", sa.Integer, nullable=False),
        sa.Column("timestamp", sa.BigInteger, nullable=False),
        sa.Column("servant_name", sa.String(100), nullable=True),
    )
    op.create_index(
        "ix_redemption_member_time", "redemption_records", ["member_id", "timestamp"],
    )

    # --- meeting_segments ---
    op.create_table(
        "meeting_segments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("date_str", sa.String(10), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("servant_name", sa.String(100), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("icon", sa.String(30), nullable=False, server_default="default"),
    )
    op.create_index(
        "ix_segments_date_start", "meeting_segments", ["date_str", "start_time"],
    )

    # --- gift_items ---
    op.create_table(
        "gift_items",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("cost", sa.Integer, nullable=False),
    )

    # --- follow_up_logs ---
    op.create_table(
        "follow_up_logs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("member_id", sa.String(64), nullable=False),
        sa.Column("timestamp", sa.BigInteger, nullable=False),
        sa.Column("note", sa.Text, nullable=False),
        sa.Column("servant_name", sa.String(100), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False, server_default="call"),
    )
    op.create_index(
        "ix_follow_up_member_time", "follow_up_logs", ["member_id", "timestamp"],
    )

    # --- settings ---
    op.create_table(
        "settings",
        sa.Column("key", sa.String(100), primary_key=True),
        sa.Column("value_json", sa.Text, nullable=False),
        sa.Column("category", sa.String(50), nullable=False, server_default="general"),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_settings_category", "settings", ["category"])

    # --- admin_log ---
    op.create_table(
        "admin_log",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("actor", sa.String(100), nullable=False),
        sa.Column("action_type", sa.String(50), nullable=False),
        sa.Column("target_table", sa.String(50), nullable=False),
        sa.Column("target_id", sa.String(100), nullable=True),
        sa.Column("before_snapshot", postgresql.JSONB, nullable=True),
        sa.Column("after_snapshot", postgresql.JSONB, nullable=True),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_admin_log_target", "admin_log", ["target_table", "target_id", "timestamp"],
    )


def downgrade() -> None:
    op.drop_table("admin_log")
    op.drop_table("settings")
    op.drop_table("follow_up_logs")
    op.drop_table("gift_items")
    op.drop_table("meeting_segments")
    op.drop_table("redemption_records")
    op.drop_table("attendance_records")
    op.drop_table("members")
