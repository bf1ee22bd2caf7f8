"""SQLAlchemy models for content authorship.

`Author` is a tagged union persisted with single-table inheritance: the
`kind` column selects either `MemberAuthor` or `AnonymousAuthor`, and each
variant exposes only the attributes that are valid for it. The variant of a
row never changes after creation.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, CheckConstraint, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from community_service.db.session import Base

AUTHOR_KIND_MEMBER = "member"
AUTHOR_KIND_ANONYMOUS = "anonymous"
ANONYMOUS_DISPLAY_NAME = "Anonymous"
AUTHOR_NAME_MAX_LENGTH = 100


class Author(Base):
    """Identity attached to a post or comment."""

    __tablename__ = "author"
    __table_args__ = (
        CheckConstraint(
            "(kind = 'member' AND external_account_id IS NOT NULL"
            " AND anonymous_email IS NULL AND anonymous_secret_hash IS NULL)"
            " OR (kind = 'anonymous' AND external_account_id IS NULL"
            " AND anonymous_email IS NOT NULL AND anonymous_secret_hash IS NOT NULL)",
            name="ck_author_variant_fields",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    # Snapshot taken at creation time; never refreshed from the identity service.
    author_name: Mapped[str | None] = mapped_column(
        String(AUTHOR_NAME_MAX_LENGTH),
        nullable=True,
    )

    __mapper_args__ = {"polymorphic_on": "kind"}

    @property
    def display_name(self) -> str:
        """Return the name shown next to content."""
        return self.author_name or ANONYMOUS_DISPLAY_NAME

    @property
    def is_anonymous(self) -> bool:
        return self.kind == AUTHOR_KIND_ANONYMOUS


class MemberAuthor(Author):
    """Author backed by an external account; one row per account."""

    # NULLs are distinct under UNIQUE, so anonymous rows never collide here.
    external_account_id: Mapped[int | None] = mapped_column(
        BigInteger,
        nullable=True,
        unique=True,
    )

    __mapper_args__ = {"polymorphic_identity": AUTHOR_KIND_MEMBER}


class AnonymousAuthor(Author):
    """Author backed by an email and a hashed secret; one row per content item."""

    anonymous_email: Mapped[str | None] = mapped_column(Text, nullable=True)
    anonymous_secret_hash: Mapped[str | None] = mapped_column(Text, nullable=True)

    __mapper_args__ = {"polymorphic_identity": AUTHOR_KIND_ANONYMOUS}


# Declared after the variants so the column exists on the shared table.
Index("ix_author_anonymous_email", Author.__table__.c.anonymous_email)
