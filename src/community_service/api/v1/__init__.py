"""Version 1 API endpoints."""

from .endpoints import (
    attachments_router,
    comments_router,
    likes_router,
    posts_router,
)

__all__ = [
    "attachments_router",
    "comments_router",
    "likes_router",
    "posts_router",
]
