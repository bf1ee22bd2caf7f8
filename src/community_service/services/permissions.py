"""Permission verification for mutating posts and comments."""
from __future__ import annotations

import logging
from typing import Protocol

from community_service.core.errors import AccessDeniedError, ValidationError
from community_service.core.security import SecretHasher
from community_service.models import AnonymousAuthor, Author, MemberAuthor
from community_service.schemas.author import AuthorCredential

logger = logging.getLogger(__name__)


class OwnedContent(Protocol):
    """Anything with an author: posts and comments."""

    author: Author


class PermissionVerifier:
    """Check a credential against the Author of a content item.

    A failed check raises `AccessDeniedError` with the same message whichever
    field was wrong.
    """

    def __init__(self, hasher: SecretHasher) -> None:
        self.hasher = hasher

    def verify_ownership(self, content: OwnedContent, credential: AuthorCredential) -> None:
        """Allow mutation only when `credential` matches the content's author.

        Raises:
            AccessDeniedError: On any mismatch, including a variant mismatch.
        """
        author = content.author
        if isinstance(author, AnonymousAuthor):
            matched = self._anonymous_matches(
                author,
                credential.anonymous_email,
                credential.anonymous_secret,
            )
        elif isinstance(author, MemberAuthor):
            matched = (
                credential.external_account_id is not None
                and credential.external_account_id == author.external_account_id
            )
        else:  # pragma: no cover - unmapped author kind
            matched = False

        if not matched:
            logger.info("Ownership check failed for author %s", author.id)
            raise AccessDeniedError()

    def verify_challenge(
        self,
        content: OwnedContent,
        email_input: str | None,
        secret_input: str | None,
    ) -> None:
        """Confirm anonymous credentials without changing any state.

        Raises:
            ValidationError: If the content is not anonymously authored.
            AccessDeniedError: If the email or secret does not match.
        """
        author = content.author
        if not isinstance(author, AnonymousAuthor):
            raise ValidationError("Not anonymous content")
        if not self._anonymous_matches(author, email_input, secret_input):
            raise AccessDeniedError()

    def _anonymous_matches(
        self,
        author: AnonymousAuthor,
        email_input: str | None,
        secret_input: str | None,
    ) -> bool:
        if not email_input or not secret_input:
            return False
        # The hash is checked whether or not the email matched.
        secret_ok = self.hasher.verify(secret_input, author.anonymous_secret_hash or "")
        return email_input == author.anonymous_email and secret_ok


__all__ = ["PermissionVerifier", "OwnedContent"]
