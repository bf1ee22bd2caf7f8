"""Shared API dependencies for authentication and service wiring."""
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from community_service.core.errors import (
    AuthDependencyError,
    AuthenticationError,
)
from community_service.core.security import SecretHasher
from community_service.db.session import get_db
from community_service.models.author import AUTHOR_NAME_MAX_LENGTH
from community_service.schemas.author import AuthorCredential
from community_service.services.attachments import (
    AttachmentService,
    AttachmentStorage,
    LocalAttachmentStorage,
)
from community_service.services.auth import IdentityTokenValidator, ResolvedIdentity
from community_service.services.comments import CommentService
from community_service.services.identity import IdentityResolver
from community_service.services.likes import LikeRegistry
from community_service.services.listing import PostListingService
from community_service.services.permissions import PermissionVerifier
from community_service.services.posts import PostService

logger = logging.getLogger(__name__)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
AuthorizationHeader = Annotated[str | None, Header()]


def get_secret_hasher() -> SecretHasher:
    """Return the hasher used for anonymous secrets."""
    return SecretHasher.from_settings()


def get_token_validator() -> IdentityTokenValidator:
    """Return the identity-token validator client."""
    return IdentityTokenValidator()


def get_attachment_storage() -> AttachmentStorage:
    """Return the attachment storage backend."""
    return LocalAttachmentStorage()


def get_like_registry() -> LikeRegistry:
    return LikeRegistry()


HasherDep = Annotated[SecretHasher, Depends(get_secret_hasher)]
ValidatorDep = Annotated[IdentityTokenValidator, Depends(get_token_validator)]
StorageDep = Annotated[AttachmentStorage, Depends(get_attachment_storage)]
LikeRegistryDep = Annotated[LikeRegistry, Depends(get_like_registry)]


def get_post_service(
    hasher: HasherDep,
    storage: StorageDep,
    like_registry: LikeRegistryDep,
) -> PostService:
    return PostService(
        resolver=IdentityResolver(hasher),
        verifier=PermissionVerifier(hasher),
        storage=storage,
        like_registry=like_registry,
    )


def get_comment_service(hasher: HasherDep) -> CommentService:
    return CommentService(resolver=IdentityResolver(hasher), verifier=PermissionVerifier(hasher))


def get_listing_service(like_registry: LikeRegistryDep) -> PostListingService:
    return PostListingService(like_registry)


def get_attachment_service(storage: StorageDep) -> AttachmentService:
    return AttachmentService(storage)


async def get_optional_identity(
    validator: ValidatorDep,
    authorization: AuthorizationHeader = None,
) -> ResolvedIdentity | None:
    """Resolve the caller for read paths, degrading to anonymous on failure."""
    if authorization is None:
        return None
    try:
        return await validator.validate_header(authorization)
    except AuthenticationError as exc:
        logger.warning("Token rejected, continuing unauthenticated: %s", exc.message)
    except AuthDependencyError:
        logger.warning("Identity service unavailable, continuing unauthenticated")
    return None


async def get_mutation_identity(
    validator: ValidatorDep,
    authorization: AuthorizationHeader = None,
) -> ResolvedIdentity | None:
    """Resolve the caller for write paths.

    No header means an anonymous caller; a header that cannot be validated
    fails the request.
    """
    if authorization is None:
        return None
    return await validator.validate_header(authorization)


async def get_required_identity(
    validator: ValidatorDep,
    authorization: AuthorizationHeader = None,
) -> ResolvedIdentity:
    """Resolve the caller for member-only paths; always fails closed."""
    if authorization is None:
        raise AuthenticationError("Authentication required")
    return await validator.validate_header(authorization)


def _clip_name(name: str | None) -> str | None:
    # Token usernames are not bounded by the identity service.
    return name[:AUTHOR_NAME_MAX_LENGTH] if name else None


def build_credential(
    identity: ResolvedIdentity | None,
    *,
    display_name: str | None = None,
    is_anonymous: bool = False,
    anonymous_email: str | None = None,
    anonymous_secret: str | None = None,
) -> AuthorCredential:
    """Combine a validated identity with body fields into a credential.

    A validated token always supplies the account id and name; anonymous
    email and secret are discarded when a token is present.
    """
    if identity is not None:
        return AuthorCredential(
            external_account_id=identity.external_account_id,
            display_name=_clip_name(identity.display_name),
            is_anonymous=is_anonymous,
        )
    return AuthorCredential(
        display_name=display_name,
        is_anonymous=is_anonymous,
        anonymous_email=anonymous_email,
        anonymous_secret=anonymous_secret,
    )


def build_ownership_credential(
    identity: ResolvedIdentity | None,
    anonymous_email: str | None,
    anonymous_secret: str | None,
) -> AuthorCredential:
    """Credential for update/delete: token account id plus any anonymous proof."""
    return AuthorCredential(
        external_account_id=identity.external_account_id if identity else None,
        anonymous_email=anonymous_email,
        anonymous_secret=anonymous_secret,
    )


PostServiceDep = Annotated[PostService, Depends(get_post_service)]
CommentServiceDep = Annotated[CommentService, Depends(get_comment_service)]
ListingServiceDep = Annotated[PostListingService, Depends(get_listing_service)]
AttachmentServiceDep = Annotated[AttachmentService, Depends(get_attachment_service)]
OptionalIdentityDep = Annotated[ResolvedIdentity | None, Depends(get_optional_identity)]
MutationIdentityDep = Annotated[ResolvedIdentity | None, Depends(get_mutation_identity)]
RequiredIdentityDep = Annotated[ResolvedIdentity, Depends(get_required_identity)]
