"""Business logic services for the community service."""

from .attachments import AttachmentService, LocalAttachmentStorage
from .auth import IdentityTokenValidator, ResolvedIdentity
from .comments import CommentService
from .identity import IdentityResolver
from .likes import LikeRegistry
from .listing import PostListingService
from .permissions import PermissionVerifier
from .posts import PostService

__all__ = [
    "AttachmentService",
    "CommentService",
    "IdentityResolver",
    "IdentityTokenValidator",
    "LikeRegistry",
    "LocalAttachmentStorage",
    "PermissionVerifier",
    "PostListingService",
    "PostService",
    "ResolvedIdentity",
]
