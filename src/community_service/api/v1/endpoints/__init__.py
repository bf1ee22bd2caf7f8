"""API endpoint modules for version 1."""

from .attachments import router as attachments_router
from .comments import router as comments_router
from .likes import router as likes_router
from .posts import router as posts_router

__all__ = [
    "attachments_router",
    "comments_router",
    "likes_router",
    "posts_router",
]
