"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .attachment import AttachmentResponse
from .author import AnonymousChallenge, AuthorCredential
from .comment import CommentCreate, CommentResponse, CommentUpdate
from .common import ErrorResponse, MessageResponse, Page
from .post import PostCreate, PostResponse, PostSummary, PostUpdate

__all__ = [
    "AttachmentResponse",
    "AnonymousChallenge", "AuthorCredential",
    "CommentCreate", "CommentResponse", "CommentUpdate",
    "ErrorResponse", "MessageResponse", "Page",
    "PostCreate", "PostResponse", "PostSummary", "PostUpdate",
]
