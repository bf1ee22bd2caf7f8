"""Comment lifecycle: creation, editing, deletion and anonymous checks."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from community_service.core.errors import CommentNotFoundError, ValidationError
from community_service.db.session import atomic
from community_service.models import AnonymousAuthor, Author, Comment, MemberAuthor
from community_service.schemas.author import AuthorCredential
from community_service.services.identity import IdentityResolver
from community_service.services.permissions import PermissionVerifier
from community_service.services.posts import get_post_or_404

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 1000


def _clean_content(content: str) -> str:
    cleaned = content.strip()
    if not cleaned:
        raise ValidationError("Comment content must not be empty")
    if len(cleaned) > MAX_COMMENT_LENGTH:
        raise ValidationError(f"Comments cannot exceed {MAX_COMMENT_LENGTH} characters")
    return cleaned


def get_comment_or_404(db: Session, comment_id: int) -> Comment:
    comment = db.get(Comment, comment_id)
    if comment is None:
        raise CommentNotFoundError()
    return comment


class CommentService:
    """Comments share the post authorship and permission rules."""

    def __init__(self, resolver: IdentityResolver, verifier: PermissionVerifier) -> None:
        self.resolver = resolver
        self.verifier = verifier

    def create_comment(
        self,
        db: Session,
        post_id: int,
        content: str,
        credential: AuthorCredential,
    ) -> Comment:
        """Attach a new comment to an existing post."""
        cleaned = _clean_content(content)
        with atomic(db):
            post = get_post_or_404(db, post_id)
            author = self.resolver.resolve_or_create_author(db, credential)
            comment = Comment(post_id=post.id, author_id=author.id, content=cleaned)
            db.add(comment)
            db.flush()
        logger.info("Created comment %s on post %s", comment.id, post_id)
        return comment

    def update_comment(
        self,
        db: Session,
        comment_id: int,
        content: str,
        credential: AuthorCredential,
    ) -> Comment:
        with atomic(db):
            comment = get_comment_or_404(db, comment_id)
            self.verifier.verify_ownership(comment, credential)
            comment.content = _clean_content(content)
            db.flush()
        return comment

    def delete_comment(self, db: Session, comment_id: int, credential: AuthorCredential) -> None:
        """Delete a comment; an anonymous author goes with it."""
        with atomic(db):
            comment = get_comment_or_404(db, comment_id)
            self.verifier.verify_ownership(comment, credential)
            author = comment.author
            db.delete(comment)
            db.flush()
            if isinstance(author, AnonymousAuthor):
                db.delete(author)
        logger.info("Deleted comment %s", comment_id)

    def verify_anonymous_comment(
        self,
        db: Session,
        comment_id: int,
        email: str | None,
        secret: str | None,
    ) -> None:
        comment = get_comment_or_404(db, comment_id)
        self.verifier.verify_challenge(comment, email, secret)

    @staticmethod
    def list_for_post(db: Session, post_id: int) -> list[Comment]:
        get_post_or_404(db, post_id)
        return list(
            db.execute(
                select(Comment)
                .where(Comment.post_id == post_id)
                .order_by(Comment.created_at, Comment.id)
            ).scalars()
        )

    @staticmethod
    def list_by_author(db: Session, author_id: int) -> list[Comment]:
        """Return a member author's comments, newest first.

        Anonymous authors own exactly one item each, so only member authors
        are listed.
        """
        author = db.get(Author, author_id)
        if not isinstance(author, MemberAuthor):
            return []
        return list(
            db.execute(
                select(Comment)
                .where(Comment.author_id == author_id)
                .order_by(Comment.created_at.desc(), Comment.id.desc())
            ).scalars()
        )


__all__ = ["CommentService", "get_comment_or_404"]
