"""SQLAlchemy models for the community service."""

from .attachment import PostAttachment
from .author import AnonymousAuthor, Author, MemberAuthor
from .comment import Comment
from .like import PostLike
from .post import Post, PostCategory, PostTag

__all__ = [
    "Author", "MemberAuthor", "AnonymousAuthor",
    "Comment",
    "Post", "PostCategory", "PostTag",
    "PostAttachment",
    "PostLike",
]
