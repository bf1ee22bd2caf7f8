"""initial schema

Revision ID: 5c1e2a9d4b17
Revises:
Create Date: 2026-10-19 09:12:41.518203

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e2a9d4b17"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CATEGORIES = ("FREE_BOARD", "PRICE_INFO", "LIQUOR_REVIEW", "QNA", "EVENT")


def upgrade() -> None:
    """Create authors, posts, tags, comments, attachments and likes."""
    op.create_table(
        "author",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("author_name", sa.String(length=100), nullable=True),
        sa.Column("external_account_id", sa.BigInteger(), nullable=True),
        sa.Column("anonymous_email", sa.Text(), nullable=True),
        sa.Column("anonymous_secret_hash", sa.Text(), nullable=True),
        sa.CheckConstraint(
            "(kind = 'member' AND external_account_id IS NOT NULL"
            " AND anonymous_email IS NULL AND anonymous_secret_hash IS NULL)"
            " OR (kind = 'anonymous' AND external_account_id IS NULL"
            " AND anonymous_email IS NOT NULL AND anonymous_secret_hash IS NOT NULL)",
            name="ck_author_variant_fields",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("external_account_id"),
    )
    op.create_index("ix_author_anonymous_email", "author", ["anonymous_email"])

    op.create_table(
        "post",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=False),
        sa.Column(
            "category",
            sa.Enum(*CATEGORIES, name="postcategory", native_enum=False, length=50),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("tags", sa.String(length=1000), nullable=True),
        sa.Column("views", sa.Integer(), nullable=False),
        sa.Column("likes", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["author_id"], ["author.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_post_author_id", "post", ["author_id"])
    op.create_index("ix_post_category", "post", ["category"])
    op.create_index("ix_post_created_at", "post", ["created_at"])

    op.create_table(
        "post_tag",
        sa.Column("post_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"]),
        sa.PrimaryKeyConstraint("post_id", "name"),
    )
    op.create_index("ix_post_tag_name", "post_tag", ["name"])

    op.create_table(
        "comment",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("post_id", sa.Integer(), nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["author_id"], ["author.id"]),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comment_post_id", "comment", ["post_id"])

    op.create_table(
        "post_attachment",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("post_id", sa.Integer(), nullable=False),
        sa.Column("original_filename", sa.String(length=255), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("file_url", sa.String(length=500), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_post_attachment_post_id", "post_attachment", ["post_id"])

    op.create_table(
        "post_like",
        sa.Column("post_id", sa.Integer(), nullable=False),
        sa.Column("account_id", sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"]),
        sa.PrimaryKeyConstraint("post_id", "account_id"),
    )
    op.create_index("ix_post_like_account_id", "post_like", ["account_id"])


def downgrade() -> None:
    """Drop every table created by this revision."""
    op.drop_index("ix_post_like_account_id", table_name="post_like")
    op.drop_table("post_like")
    op.drop_index("ix_post_attachment_post_id", table_name="post_attachment")
    op.drop_table("post_attachment")
    op.drop_index("ix_comment_post_id", table_name="comment")
    op.drop_table("comment")
    op.drop_index("ix_post_tag_name", table_name="post_tag")
    op.drop_table("post_tag")
    op.drop_index("ix_post_created_at", table_name="post")
    op.drop_index("ix_post_category", table_name="post")
    op.drop_index("ix_post_author_id", table_name="post")
    op.drop_table("post")
    op.drop_index("ix_author_anonymous_email", table_name="author")
    op.drop_table("author")
