"""Domain exception taxonomy for the community service.

Every error raised by the service layer derives from `CommunityError`, which
carries a stable machine-readable `code` and the HTTP status the API layer
renders it with. Services never raise `HTTPException` directly.
"""

from __future__ import annotations


class CommunityError(Exception):
    """Base class for all community service failures."""

    code: str = "INTERNAL_ERROR"
    status_code: int = 500
    default_message: str = "Unexpected server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CommunityError):
    """Malformed or contradictory input; rejected and never retried."""

    code = "INVALID_INPUT"
    status_code = 400
    default_message = "Invalid input"


class NotFoundError(CommunityError):
    """A referenced entity does not exist."""

    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class PostNotFoundError(NotFoundError):
    code = "POST_NOT_FOUND"
    default_message = "Post not found"


class CommentNotFoundError(NotFoundError):
    code = "COMMENT_NOT_FOUND"
    default_message = "Comment not found"


class AttachmentNotFoundError(NotFoundError):
    code = "ATTACHMENT_NOT_FOUND"
    default_message = "Attachment not found"


class AccessDeniedError(CommunityError):
    """The supplied credential does not own the content.

    The message is the same whichever credential field failed.
    """

    code = "ACCESS_DENIED"
    status_code = 403
    default_message = "You do not have permission to modify this content"


class ConflictError(CommunityError):
    """The requested state already exists (e.g. a duplicate like)."""

    code = "CONFLICT"
    status_code = 409
    default_message = "Resource already exists"


class AuthenticationError(CommunityError):
    """The identity service rejected the bearer token."""

    code = "AUTHENTICATION_FAILED"
    status_code = 401
    default_message = "Could not validate credentials"


class AuthDependencyError(CommunityError):
    """The identity service is unreachable or failing.

    Distinct from `AuthenticationError`: the request may be legitimate, the
    dependency is degraded.
    """

    code = "AUTH_SERVICE_UNAVAILABLE"
    status_code = 503
    default_message = "Identity service is unavailable"


class StorageError(CommunityError):
    """Attachment storage failed to persist or remove a file."""

    code = "STORAGE_ERROR"
    status_code = 500
    default_message = "Attachment storage failure"


__all__ = [
    "CommunityError",
    "ValidationError",
    "NotFoundError",
    "PostNotFoundError",
    "CommentNotFoundError",
    "AttachmentNotFoundError",
    "AccessDeniedError",
    "ConflictError",
    "AuthenticationError",
    "AuthDependencyError",
    "StorageError",
]
