"""SQLAlchemy models for posts and their tags."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from community_service.db.session import Base
from community_service.db.time import utcnow
from community_service.models.author import Author


class PostCategory(str, enum.Enum):
    """Board a post belongs to, stored by name."""

    FREE_BOARD = "FREE_BOARD"
    PRICE_INFO = "PRICE_INFO"
    LIQUOR_REVIEW = "LIQUOR_REVIEW"
    QNA = "QNA"
    EVENT = "EVENT"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]


_CATEGORY_LABELS = {
    PostCategory.FREE_BOARD: "Free board",
    PostCategory.PRICE_INFO: "Price info",
    PostCategory.LIQUOR_REVIEW: "Liquor reviews",
    PostCategory.QNA: "Q&A",
    PostCategory.EVENT: "Events",
}


class Post(Base):
    """Primary content entity."""

    __tablename__ = "post"
    __table_args__ = (
        Index("ix_post_author_id", "author_id"),
        Index("ix_post_category", "category"),
        Index("ix_post_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_id: Mapped[int] = mapped_column(Integer, ForeignKey("author.id"), nullable=False)
    category: Mapped[PostCategory] = mapped_column(
        Enum(PostCategory, native_enum=False, length=50),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # Raw tag string as submitted, e.g. "#wine #tips"; normalized copies live in post_tag.
    tags: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    author: Mapped[Author] = relationship("Author", lazy="joined")
    tag_rows: Mapped[list[PostTag]] = relationship(
        "PostTag",
        back_populates="post",
        cascade="all, delete-orphan",
    )


class PostTag(Base):
    """Normalized tag attached to a post."""

    __tablename__ = "post_tag"
    __table_args__ = (Index("ix_post_tag_name", "name"),)

    post_id: Mapped[int] = mapped_column(Integer, ForeignKey("post.id"), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), primary_key=True)

    post: Mapped[Post] = relationship("Post", back_populates="tag_rows")


def normalize_tag(raw: str) -> str:
    """Lower-case a tag and strip surrounding whitespace and leading '#'."""
    return raw.strip().lstrip("#").strip().lower()


def parse_tags(raw: str | None) -> list[str]:
    """Split a free-form tag string into unique normalized tags, in order."""
    if not raw:
        return []
    seen: dict[str, None] = {}
    for token in raw.replace(",", " ").split():
        name = normalize_tag(token)
        if name:
            seen.setdefault(name[:100], None)
    return list(seen)
