"""Post-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from community_service.models import MemberAuthor, Post, PostCategory
from community_service.schemas.attachment import AttachmentResponse
from community_service.schemas.comment import CommentResponse


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    category: PostCategory
    title: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1)
    tags: str | None = Field(None, max_length=1000, description="e.g. '#wine #tips'")
    display_name: str | None = Field(None, max_length=100)
    is_anonymous: bool = False
    anonymous_email: str | None = None
    anonymous_secret: str | None = None

    @field_validator("title", "content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class PostUpdate(BaseModel):
    """Schema for editing a post; anonymous fields prove ownership."""

    category: PostCategory
    title: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1)
    tags: str | None = Field(None, max_length=1000)
    anonymous_email: str | None = None
    anonymous_secret: str | None = None

    @field_validator("title", "content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class PostSummary(BaseModel):
    """List-view projection of a post (no body)."""

    post_id: int
    category: PostCategory
    category_label: str
    title: str
    author_name: str
    is_anonymous: bool
    views: int
    likes: int
    comments_count: int
    created_at: datetime
    has_attachments: bool
    is_liked_by_current_user: bool | None = None

    @classmethod
    def from_post(
        cls,
        post: Post,
        *,
        comments_count: int = 0,
        has_attachments: bool = False,
    ) -> PostSummary:
        return cls(
            post_id=post.id,
            category=post.category,
            category_label=post.category.label,
            title=post.title,
            author_name=post.author.display_name,
            is_anonymous=post.author.is_anonymous,
            views=post.views,
            likes=post.likes,
            comments_count=comments_count,
            created_at=post.created_at,
            has_attachments=has_attachments,
        )


class PostResponse(BaseModel):
    """Detail view of a post including comments and attachments."""

    post_id: int
    category: PostCategory
    category_label: str
    title: str
    content: str
    tags: str | None
    author_name: str
    author_id: int | None
    is_anonymous: bool
    views: int
    likes: int
    is_liked_by_current_user: bool | None = None
    comments_count: int
    created_at: datetime
    updated_at: datetime
    comments: list[CommentResponse] = Field(default_factory=list)
    attachments: list[AttachmentResponse] = Field(default_factory=list)

    @classmethod
    def from_post(
        cls,
        post: Post,
        *,
        comments: list[CommentResponse] | None = None,
        attachments: list[AttachmentResponse] | None = None,
        is_liked: bool | None = None,
    ) -> PostResponse:
        comments = comments or []
        author = post.author
        return cls(
            post_id=post.id,
            category=post.category,
            category_label=post.category.label,
            title=post.title,
            content=post.content,
            tags=post.tags,
            author_name=author.display_name,
            author_id=author.external_account_id if isinstance(author, MemberAuthor) else None,
            is_anonymous=author.is_anonymous,
            views=post.views,
            likes=post.likes,
            is_liked_by_current_user=is_liked,
            comments_count=len(comments),
            created_at=post.created_at,
            updated_at=post.updated_at,
            comments=comments,
            attachments=attachments or [],
        )
