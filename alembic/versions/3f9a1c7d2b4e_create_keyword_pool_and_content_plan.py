"""create websites, keyword pool and content plan tables

Revision ID: 3f9a1c7d2b4e
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f9a1c7d2b4e"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "websites",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("url", sa.String(length=2048), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("target_audience", sa.Text(), nullable=True),
        sa.Column("seed_keywords", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "keywords",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("website_id", sa.String(length=32), nullable=False),
        sa.Column("keyword", sa.String(length=500), nullable=False),
        sa.Column("keyword_normalized", sa.String(length=500), nullable=False),
        sa.Column("seed_keyword", sa.String(length=255), nullable=False),
        sa.Column("search_volume", sa.Integer(), nullable=False),
        sa.Column("competition", sa.Float(), nullable=False),
        sa.Column("difficulty", sa.Integer(), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("suggestion_source", sa.String(length=20), nullable=False),
        sa.Column("difficulty_source", sa.String(length=20), nullable=False),
        sa.Column("consumption_state", sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["website_id"], ["websites.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("website_id", "keyword_normalized", name="uq_keywords_website_keyword"),
    )
    op.create_index("ix_keywords_website_id", "keywords", ["website_id"])
    op.create_index("ix_keywords_website_score", "keywords", ["website_id", "score"])

    op.create_table(
        "content_plan",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("website_id", sa.String(length=32), nullable=False),
        sa.Column("keyword_id", sa.String(length=32), nullable=False),
        sa.Column("scheduled_date", sa.Date(), nullable=False),
        sa.Column("target_keyword", sa.String(length=500), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("generation_state", sa.String(length=30), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["website_id"], ["websites.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["keyword_id"], ["keywords.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("website_id", "scheduled_date", name="uq_content_plan_website_date"),
        sa.UniqueConstraint("keyword_id", name="uq_content_plan_keyword"),
    )
    op.create_index("ix_content_plan_website_id", "content_plan", ["website_id"])


def downgrade() -> None:
    op.drop_index("ix_content_plan_website_id", table_name="content_plan")
    op.drop_table("content_plan")
    op.drop_index("ix_keywords_website_score", table_name="keywords")
    op.drop_index("ix_keywords_website_id", table_name="keywords")
    op.drop_table("keywords")
    op.drop_table("websites")
