"""planform core (users/agencies/services/ideas/stages/messages) + sqlite guards

Revision ID: 0001_planform_core
Revises:
Create Date: 2026-10-17
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_planform_core"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ---- tables ----
    op.create_table(
        "agencies",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("logo_url", sa.Text(), nullable=True),
        sa.Column("website_url", sa.Text(), nullable=True),
        sa.Column("contact_number", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("booking_link", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("primary_color", sa.String(20), nullable=True),
        sa.Column("secondary_color", sa.String(20), nullable=True),
        sa.Column("background_color", sa.String(20), nullable=True),
        sa.Column("text_color", sa.String(20), nullable=True),
        sa.Column("api_key", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("currency", sa.String(1), nullable=False, server_default="$"),
        sa.Column("created_at", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.Text(), nullable=False),
    )
    op.create_index("ix_agencies_api_key", "agencies", ["api_key"], unique=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="member"),
        sa.Column("remaining_runs", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("agency_id", sa.Integer(), sa.ForeignKey("agencies.id"), nullable=True),
        sa.Column("created_at", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.Text(), nullable=False),
        sa.Column("deleted_at", sa.Text(), nullable=True),
        sa.CheckConstraint("remaining_runs >= 0", name="ck_users_remaining_runs_non_negative"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "verification_tokens",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("token", sa.Text(), nullable=False, unique=True),
        sa.Column("created_at", sa.Text(), nullable=False),
        sa.Column("expires_at", sa.Text(), nullable=False),
    )
    op.create_index("ix_verification_tokens_user_id", "verification_tokens", ["user_id"], unique=False)

    op.create_table(
        "services",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("agency_id", sa.Integer(), sa.ForeignKey("agencies.id"), nullable=False),
        sa.Column("service_id", sa.String(100), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("outcomes_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("price_lower", sa.Integer(), nullable=True),
        sa.Column("price_upper", sa.Integer(), nullable=True),
        sa.Column("when_to_recommend_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.Text(), nullable=False),
        sa.UniqueConstraint("agency_id", "service_id", name="uq_services_agency_service"),
    )
    op.create_index("ix_services_agency_id", "services", ["agency_id"], unique=False)

    op.create_table(
        "ideas",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("raw_idea", sa.Text(), nullable=False),
        sa.Column("ideal_customer", sa.Text(), nullable=False),
        sa.Column("problem", sa.Text(), nullable=False),
        sa.Column("current_solutions", sa.Text(), nullable=False, server_default=""),
        sa.Column("value_prop", sa.Text(), nullable=False),
        sa.Column("created_at", sa.Text(), nullable=False),
    )
    op.create_index("ix_ideas_owner_id", "ideas", ["owner_id"], unique=False)

    op.create_table(
        "stages",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("idea_id", sa.Text(), sa.ForeignKey("ideas.id"), nullable=False),
        sa.Column("stage_name", sa.Text(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("completed_at", sa.Text(), nullable=True),
        sa.Column("created_at", sa.Text(), nullable=False),
        sa.UniqueConstraint("idea_id", "stage_name", name="uq_stages_idea_stage"),
        sa.CheckConstraint(
            "stage_name IN ('customer','designer','marketer','vc')", name="ck_stages_stage_name"
        ),
    )
    op.create_index("ix_stages_idea_id", "stages", ["idea_id"], unique=False)

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("stage_id", sa.Text(), sa.ForeignKey("stages.id"), nullable=False),
        sa.Column("role", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.Text(), nullable=False),
        sa.CheckConstraint("role IN ('user','ai')", name="ck_messages_role"),
    )
    op.create_index("ix_messages_stage_id", "messages", ["stage_id"], unique=False)

    # ---- invariants (SQLite triggers) ----
    if op.get_bind().dialect.name != "sqlite":
        return

    # messages are append-only (no UPDATE); DELETE stays allowed for idea deletion
    op.execute("""
    CREATE TRIGGER IF NOT EXISTS trg_messages_no_update
    BEFORE UPDATE ON messages
    BEGIN
      SELECT RAISE(ABORT, 'append-only: messages cannot be updated');
    END;
    """)
    # a completed stage takes no further messages
    op.execute("""
    CREATE TRIGGER IF NOT EXISTS trg_messages_open_stage_only
    BEFORE INSERT ON messages
    WHEN EXISTS (SELECT 1 FROM stages WHERE id = NEW.stage_id AND completed_at IS NOT NULL)
    BEGIN
      SELECT RAISE(ABORT, 'stage is completed: messages are closed');
    END;
    """)
    # stage completion is one-way
    op.execute("""
    CREATE TRIGGER IF NOT EXISTS trg_stages_completed_once
    BEFORE UPDATE OF completed_at ON stages
    WHEN OLD.completed_at IS NOT NULL
    BEGIN
      SELECT RAISE(ABORT, 'stages.completed_at is set once');
    END;
    """)


def downgrade() -> None:
    # drop triggers first
    if op.get_bind().dialect.name == "sqlite":
        op.execute("DROP TRIGGER IF EXISTS trg_stages_completed_once;")
        op.execute("DROP TRIGGER IF EXISTS trg_messages_no_update;")
        op.execute("DROP TRIGGER IF EXISTS trg_messages_open_stage_only;")

    op.drop_index("ix_messages_stage_id", table_name="messages")
    op.drop_table("messages")

    op.drop_index("ix_stages_idea_id", table_name="stages")
    op.drop_table("stages")

    op.drop_index("ix_ideas_owner_id", table_name="ideas")
    op.drop_table("ideas")

    op.drop_index("ix_services_agency_id", table_name="services")
    op.drop_table("services")

    op.drop_index("ix_verification_tokens_user_id", table_name="verification_tokens")
    op.drop_table("verification_tokens")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    op.drop_index("ix_agencies_api_key", table_name="agencies")
    op.drop_table("agencies")
