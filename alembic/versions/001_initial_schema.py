"""Initial schema: accounts, parents, family groups, children, link requests.

Revision ID: 001
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables."""

    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("display_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("photo_url", sa.Text(), nullable=False, server_default=""),
        sa.Column("role", sa.String(20), nullable=False, server_default="PARENT"),
        sa.Column("provider", sa.String(50), nullable=False, server_default="password"),
        sa.Column("phone_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("onboarding_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("phone_verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("onboarding_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ── refresh_tokens ────────────────────────────────────────────────
    op.create_table(
        "refresh_tokens",
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("token_hash", sa.String(255), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_refresh_tokens_token_hash", "refresh_tokens", ["token_hash"])

    # ── parents ───────────────────────────────────────────────────────
    op.create_table(
        "parents",
        sa.Column("uid", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, server_default=""),
        sa.Column("display_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("group_id", sa.String(12), nullable=True),
        sa.Column("is_premium", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("photo_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ── family_groups ─────────────────────────────────────────────────
    op.create_table(
        "family_groups",
        sa.Column("invite_code", sa.String(12), primary_key=True),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("children", postgresql.ARRAY(sa.Text()), nullable=False, server_default=sa.text("'{}'::text[]")),
        sa.Column("settings", postgresql.JSON(), nullable=False, server_default=sa.text("'{}'::json")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_family_groups_owner_id", "family_groups", ["owner_id"])

    # ── children ──────────────────────────────────────────────────────
    op.create_table(
        "children",
        sa.Column("child_id", sa.String(64), primary_key=True),
        sa.Column("family_code", sa.String(12), sa.ForeignKey("family_groups.invite_code"), nullable=False),
        sa.Column("nickname", sa.String(50), nullable=False),
        sa.Column("avatar", sa.String(32), nullable=False, server_default="🐼"),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("parent_uid", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("approval_settings", postgresql.JSON(), nullable=False, server_default=sa.text("'{}'::json")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_children_family_code", "children", ["family_code"])

    # ── child_link_requests ───────────────────────────────────────────
    op.create_table(
        "child_link_requests",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("family_code", sa.String(12), sa.ForeignKey("family_groups.invite_code"), nullable=False),
        sa.Column("child_nickname", sa.String(50), nullable=False),
        sa.Column("child_avatar", sa.String(32), nullable=False),
        sa.Column("child_age", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("parent_uid", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("child_id", sa.String(64), nullable=True),
        sa.Column("parent_approval", postgresql.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_child_link_requests_status",
        ),
    )
    op.create_index("ix_child_link_requests_family_code", "child_link_requests", ["family_code"])
    # Pending-list query: family + status, newest first
    op.create_index(
        "ix_child_link_requests_family_status_created",
        "child_link_requests",
        ["family_code", "status", "created_at"],
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table("child_link_requests")
    op.drop_table("children")
    op.drop_table("family_groups")
    op.drop_table("parents")
    op.drop_table("refresh_tokens")
    op.drop_table("users")
