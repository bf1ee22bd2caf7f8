"""Comment-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from community_service.models import Comment, MemberAuthor


class CommentCreate(BaseModel):
    """Schema for creating a comment."""

    post_id: int
    content: str = Field(..., min_length=1, max_length=1000)
    display_name: str | None = Field(None, max_length=100)
    is_anonymous: bool = False
    anonymous_email: str | None = None
    anonymous_secret: str | None = None


class CommentUpdate(BaseModel):
    """Schema for editing a comment; anonymous fields prove ownership."""

    content: str
    anonymous_email: str | None = None
    anonymous_secret: str | None = None


class CommentResponse(BaseModel):
    """Schema for comment information returned by the API."""

    comment_id: int
    post_id: int
    content: str
    author_name: str
    author_id: int | None
    is_anonymous: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_comment(cls, comment: Comment) -> CommentResponse:
        author = comment.author
        return cls(
            comment_id=comment.id,
            post_id=comment.post_id,
            content=comment.content,
            author_name=author.display_name,
            author_id=author.external_account_id if isinstance(author, MemberAuthor) else None,
            is_anonymous=author.is_anonymous,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )
