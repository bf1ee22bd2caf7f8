"""Identity resolution: find or create the Author for new content."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from community_service.core.errors import ValidationError
from community_service.core.security import SecretHasher
from community_service.models import AnonymousAuthor, Author, MemberAuthor
from community_service.schemas.author import AuthorCredential

logger = logging.getLogger(__name__)


class IdentityResolver:
    """Resolve an `AuthorCredential` into a persisted `Author`.

    Member authors are shared by every piece of content an account writes.
    Anonymous authors are created fresh for each content item, even when the
    email and secret repeat, so anonymous contributions are never linked.
    """

    def __init__(self, hasher: SecretHasher) -> None:
        self.hasher = hasher

    def resolve_or_create_author(self, db: Session, request: AuthorCredential) -> Author:
        """Return the Author to attach to a content item being created.

        Runs inside the caller's transaction; the new row is flushed, not
        committed.

        Raises:
            ValidationError: If the credential combination is contradictory
                or incomplete.
        """
        if request.external_account_id is not None and request.is_anonymous:
            raise ValidationError("A known account cannot author anonymously")

        if request.is_anonymous:
            return self._create_anonymous(db, request)

        if request.external_account_id is None:
            raise ValidationError("An external account id is required for member authors")
        return self._find_or_create_member(db, request.external_account_id, request.display_name)

    def _create_anonymous(self, db: Session, request: AuthorCredential) -> AnonymousAuthor:
        if not request.anonymous_secret:
            raise ValidationError("A secret is required for anonymous authors")
        email = request.anonymous_email
        if not email or not email.strip():
            raise ValidationError("An email is required for anonymous authors")

        author = AnonymousAuthor(
            author_name=request.display_name or None,
            anonymous_email=email,
            anonymous_secret_hash=self.hasher.hash(request.anonymous_secret),
        )
        db.add(author)
        db.flush()
        return author

    def _find_member(self, db: Session, external_account_id: int) -> MemberAuthor | None:
        return db.execute(
            select(MemberAuthor).where(MemberAuthor.external_account_id == external_account_id)
        ).scalar_one_or_none()

    def _find_or_create_member(
        self,
        db: Session,
        external_account_id: int,
        display_name: str | None,
    ) -> MemberAuthor:
        existing = self._find_member(db, external_account_id)
        if existing is not None:
            # Name is a creation-time snapshot and is not refreshed here.
            return existing

        author = MemberAuthor(external_account_id=external_account_id, author_name=display_name)
        try:
            with db.begin_nested():
                db.add(author)
                db.flush()
        except IntegrityError:
            # A concurrent first post by the same account won the insert.
            logger.info(
                "Member author for account %s created concurrently; reusing it",
                external_account_id,
            )
            winner = self._find_member(db, external_account_id)
            if winner is None:
                raise
            return winner
        return author


__all__ = ["IdentityResolver"]
