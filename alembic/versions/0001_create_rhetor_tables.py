"""create users, cohorts, pods, sessions, reviews and auth token tables

Revision ID: 0001_create_rhetor_tables
Revises:
Create Date: 2026-09-14 00:00:00

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_create_rhetor_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "rhetor_users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("pseudonym", sa.String(length=32), nullable=False),
        sa.Column("native_language", sa.String(length=64), nullable=True),
        sa.Column("profession_level", sa.String(length=32), nullable=True),
        sa.Column("goals", sa.JSON(), nullable=True),
        sa.Column("credits", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "ix_rhetor_users_pseudonym", "rhetor_users", ["pseudonym"], unique=True
    )

    op.create_table(
        "rhetor_cohorts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("focus_area", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "ix_rhetor_cohorts_focus_area", "rhetor_cohorts", ["focus_area"], unique=False
    )

    op.create_table(
        "rhetor_pods",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("cohort_id", sa.String(length=36), nullable=False),
        sa.Column("label", sa.String(length=64), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["cohort_id"], ["rhetor_cohorts.id"]),
    )
    op.create_index("ix_rhetor_pods_cohort_id", "rhetor_pods", ["cohort_id"], unique=False)

    op.create_table(
        "rhetor_pod_memberships",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("pod_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("joined_at", sa.DateTime(), nullable=False),
        sa.Column("left_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["pod_id"], ["rhetor_pods.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["rhetor_users.id"]),
    )
    op.create_index(
        "ix_rhetor_pod_memberships_pod_id", "rhetor_pod_memberships", ["pod_id"], unique=False
    )
    op.create_index(
        "ix_rhetor_pod_memberships_user_id", "rhetor_pod_memberships", ["user_id"], unique=False
    )

    op.create_table(
        "rhetor_sessions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("pod_id", sa.String(length=36), nullable=False),
        sa.Column("session_type", sa.String(length=32), nullable=False),
        sa.Column("focus_tags", sa.JSON(), nullable=False),
        sa.Column("audio_path", sa.String(length=512), nullable=False, unique=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("memory_score", sa.Float(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["rhetor_users.id"]),
        sa.ForeignKeyConstraint(["pod_id"], ["rhetor_pods.id"]),
    )
    op.create_index("ix_rhetor_sessions_user_id", "rhetor_sessions", ["user_id"], unique=False)
    op.create_index("ix_rhetor_sessions_pod_id", "rhetor_sessions", ["pod_id"], unique=False)
    op.create_index(
        "ix_rhetor_sessions_submitted_at", "rhetor_sessions", ["submitted_at"], unique=False
    )

    op.create_table(
        "rhetor_reviews",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("session_id", sa.String(length=36), nullable=False),
        sa.Column("reviewer_id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["session_id"], ["rhetor_sessions.id"]),
    )
    op.create_index("ix_rhetor_reviews_session_id", "rhetor_reviews", ["session_id"], unique=False)
    op.create_index("ix_rhetor_reviews_reviewer_id", "rhetor_reviews", ["reviewer_id"], unique=False)

    op.create_table(
        "rhetor_review_queue",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("session_id", sa.String(length=36), nullable=False),
        sa.Column("assigned_reviewer_id", sa.String(length=36), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["session_id"], ["rhetor_sessions.id"]),
    )
    op.create_index(
        "ix_rhetor_review_queue_session_id", "rhetor_review_queue", ["session_id"], unique=False
    )
    op.create_index(
        "ix_rhetor_review_queue_assigned_reviewer_id",
        "rhetor_review_queue",
        ["assigned_reviewer_id"],
        unique=False,
    )

    op.create_table(
        "rhetor_auth_tokens",
        sa.Column("token_hash", sa.String(length=64), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
    )
    op.create_index(
        "ix_rhetor_auth_tokens_user_id", "rhetor_auth_tokens", ["user_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_rhetor_auth_tokens_user_id", table_name="rhetor_auth_tokens")
    op.drop_table("rhetor_auth_tokens")
    op.drop_index("ix_rhetor_review_queue_assigned_reviewer_id", table_name="rhetor_review_queue")
    op.drop_index("ix_rhetor_review_queue_session_id", table_name="rhetor_review_queue")
    op.drop_table("rhetor_review_queue")
    op.drop_index("ix_rhetor_reviews_reviewer_id", table_name="rhetor_reviews")
    op.drop_index("ix_rhetor_reviews_session_id", table_name="rhetor_reviews")
    op.drop_table("rhetor_reviews")
    op.drop_index("ix_rhetor_sessions_submitted_at", table_name="rhetor_sessions")
    op.drop_index("ix_rhetor_sessions_pod_id", table_name="rhetor_sessions")
    op.drop_index("ix_rhetor_sessions_user_id", table_name="rhetor_sessions")
    op.drop_table("rhetor_sessions")
    op.drop_index("ix_rhetor_pod_memberships_user_id", table_name="rhetor_pod_memberships")
    op.drop_index("ix_rhetor_pod_memberships_pod_id", table_name="rhetor_pod_memberships")
    op.drop_table("rhetor_pod_memberships")
    op.drop_index("ix_rhetor_pods_cohort_id", table_name="rhetor_pods")
    op.drop_table("rhetor_pods")
    op.drop_index("ix_rhetor_cohorts_focus_area", table_name="rhetor_cohorts")
    op.drop_table("rhetor_cohorts")
    op.drop_index("ix_rhetor_users_pseudonym", table_name="rhetor_users")
    op.drop_table("rhetor_users")
