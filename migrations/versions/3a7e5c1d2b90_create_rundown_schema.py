"""create rundown schema

Revision ID: 3a7e5c1d2b90
Revises: 
Create Date: 2026-10-18 10:00:00

Purpose:
- introduce the rundown aggregate: rundowns, rundown_segments, rundown_talent, rundown_stories
- enforce ordering, pin and role rules at the database level

Operational notes:
- story_ideas, tags and interviewees belong to the curation service and are not created here
- rundown_stories.source_story_id is a plain reference, not a foreign key, for the same reason
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "3a7e5c1d2b90"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "rundowns",
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("class_id", sa.BigInteger(), nullable=True),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'draft'")),
        sa.Column("scheduled_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("total_duration", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("review_notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status in ('draft', 'submitted', 'approved', 'rejected')", name="ck_rundowns_status"
        ),
        sa.CheckConstraint("total_duration >= 0", name="ck_rundowns_total_duration_non_negative"),
    )
    op.create_index("ix_rundowns_created_by", "rundowns", ["created_by"])
    op.create_index("ix_rundowns_status", "rundowns", ["status"])

    op.create_table(
        "rundown_segments",
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("rundown_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("content", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("order_index", sa.Integer(), nullable=False),
        sa.Column("is_pinned", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["rundown_id"], ["rundowns.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("rundown_id", "order_index", name="uq_rundown_segments_rundown_order"),
        sa.CheckConstraint(
            "type in ('intro', 'story', 'interview', 'break', 'commercial', 'music', 'outro')",
            name="ck_rundown_segments_type",
        ),
        sa.CheckConstraint("duration >= 0", name="ck_rundown_segments_duration_non_negative"),
        sa.CheckConstraint(
            "NOT is_pinned OR type in ('intro', 'outro')", name="ck_rundown_segments_pinned_boundary"
        ),
    )

    op.create_table(
        "rundown_talent",
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("rundown_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("role", sa.Text(), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("contact_info", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["rundown_id"], ["rundowns.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "role in ('host', 'co-host', 'guest', 'expert')", name="ck_rundown_talent_role"
        ),
    )
    op.execute(
        """
create unique index uq_rundown_talent_rundown_name_ci
    on public.rundown_talent (rundown_id, lower(name));
"""
    )

    op.create_table(
        "rundown_stories",
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("rundown_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("segment_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("source_story_id", sa.BigInteger(), nullable=False),
        sa.Column("story_title", sa.Text(), nullable=False),
        sa.Column("story_description", sa.Text(), nullable=True),
        sa.Column("story_questions", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("story_interviewees", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("story_tags", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["rundown_id"], ["rundowns.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["segment_id"], ["rundown_segments.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("rundown_id", "source_story_id", name="uq_rundown_stories_rundown_story"),
    )
    op.create_index(
        "ix_rundown_stories_bucket", "rundown_stories", ["rundown_id", "segment_id", "order_index"]
    )


def downgrade() -> None:
    op.drop_index("ix_rundown_stories_bucket", table_name="rundown_stories")
    op.drop_table("rundown_stories")
    op.execute("drop index if exists public.uq_rundown_talent_rundown_name_ci;")
    op.drop_table("rundown_talent")
    op.drop_table("rundown_segments")
    op.drop_index("ix_rundowns_status", table_name="rundowns")
    op.drop_index("ix_rundowns_created_by", table_name="rundowns")
    op.drop_table("rundowns")
