"""Post lifecycle: creation, detail, update, verification and deletion."""
from __future__ import annotations

import logging

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from community_service.core.errors import PostNotFoundError
from community_service.db.session import atomic
from community_service.models import (
    AnonymousAuthor,
    Comment,
    Post,
    PostAttachment,
    PostLike,
    PostTag,
)
from community_service.models.post import parse_tags
from community_service.schemas.attachment import AttachmentResponse
from community_service.schemas.author import AuthorCredential
from community_service.schemas.comment import CommentResponse
from community_service.schemas.post import PostCreate, PostResponse, PostUpdate
from community_service.services.attachments import AttachmentStorage
from community_service.services.identity import IdentityResolver
from community_service.services.likes import LikeRegistry
from community_service.services.permissions import PermissionVerifier

logger = logging.getLogger(__name__)


def get_post_or_404(db: Session, post_id: int) -> Post:
    """Return the post or raise `PostNotFoundError`."""
    post = db.get(Post, post_id)
    if post is None:
        raise PostNotFoundError()
    return post


class PostService:
    """Coordinate identity, permission and like state around posts."""

    def __init__(
        self,
        resolver: IdentityResolver,
        verifier: PermissionVerifier,
        storage: AttachmentStorage,
        like_registry: LikeRegistry | None = None,
    ) -> None:
        self.resolver = resolver
        self.verifier = verifier
        self.storage = storage
        self.like_registry = like_registry or LikeRegistry()

    def create_post(self, db: Session, data: PostCreate, credential: AuthorCredential) -> Post:
        """Resolve the author and persist a new post in one transaction."""
        with atomic(db):
            author = self.resolver.resolve_or_create_author(db, credential)
            post = Post(
                author_id=author.id,
                category=data.category,
                title=data.title,
                content=data.content,
                tags=data.tags,
                views=0,
                likes=0,
            )
            post.tag_rows = [PostTag(name=name) for name in parse_tags(data.tags)]
            db.add(post)
            db.flush()
        logger.info("Created post %s (anonymous=%s)", post.id, author.is_anonymous)
        return post

    def get_post(
        self,
        db: Session,
        post_id: int,
        viewer_id: int | None = None,
        *,
        increment_view: bool = True,
    ) -> PostResponse:
        """Return the post detail, counting a view unless told not to."""
        if increment_view:
            with atomic(db):
                result = db.execute(
                    update(Post).where(Post.id == post_id).values(views=Post.views + 1)
                )
                if not result.rowcount:
                    raise PostNotFoundError()
        post = get_post_or_404(db, post_id)
        db.refresh(post)

        comments = db.execute(
            select(Comment)
            .where(Comment.post_id == post_id)
            .order_by(Comment.created_at, Comment.id)
        ).scalars()
        attachments = db.execute(
            select(PostAttachment)
            .where(PostAttachment.post_id == post_id)
            .order_by(PostAttachment.id)
        ).scalars()
        is_liked = None
        if viewer_id is not None:
            is_liked = self.like_registry.is_liked(db, viewer_id, post_id)

        return PostResponse.from_post(
            post,
            comments=[CommentResponse.from_comment(comment) for comment in comments],
            attachments=[AttachmentResponse.model_validate(item) for item in attachments],
            is_liked=is_liked,
        )

    def update_post(
        self,
        db: Session,
        post_id: int,
        data: PostUpdate,
        credential: AuthorCredential,
    ) -> Post:
        """Replace the editable fields of a post after verifying ownership."""
        with atomic(db):
            post = get_post_or_404(db, post_id)
            self.verifier.verify_ownership(post, credential)
            post.category = data.category
            post.title = data.title
            post.content = data.content
            post.tags = data.tags
            self._replace_tags(post, parse_tags(data.tags))
            db.flush()
        return post

    def delete_post(self, db: Session, post_id: int, credential: AuthorCredential) -> None:
        """Delete a post and everything hanging off it, atomically.

        Likes, comments (with their anonymous authors), attachment records and
        stored files, tags, the post and its anonymous author are removed in
        one transaction. A storage failure rolls the whole deletion back.
        """
        with atomic(db):
            post = get_post_or_404(db, post_id)
            self.verifier.verify_ownership(post, credential)
            self._delete_children(db, post)
            author = post.author
            db.delete(post)
            db.flush()
            if isinstance(author, AnonymousAuthor):
                db.delete(author)
                db.flush()
        logger.info("Deleted post %s", post_id)

    def verify_anonymous_post(
        self,
        db: Session,
        post_id: int,
        email: str | None,
        secret: str | None,
    ) -> None:
        """Check anonymous credentials for a post without side effects."""
        post = get_post_or_404(db, post_id)
        self.verifier.verify_challenge(post, email, secret)

    def _delete_children(self, db: Session, post: Post) -> None:
        db.execute(delete(PostLike).where(PostLike.post_id == post.id))

        comments = list(db.execute(select(Comment).where(Comment.post_id == post.id)).scalars())
        anonymous_authors = []
        for comment in comments:
            if isinstance(comment.author, AnonymousAuthor):
                anonymous_authors.append(comment.author)
            db.delete(comment)
        db.flush()
        for author in anonymous_authors:
            db.delete(author)

        urls = list(
            db.execute(
                select(PostAttachment.file_url).where(PostAttachment.post_id == post.id)
            ).scalars()
        )
        db.execute(delete(PostAttachment).where(PostAttachment.post_id == post.id))
        for tag in list(post.tag_rows):
            post.tag_rows.remove(tag)
        db.flush()

        for url in urls:
            self.storage.delete(url)

    @staticmethod
    def _replace_tags(post: Post, names: list[str]) -> None:
        wanted = set(names)
        for row in list(post.tag_rows):
            if row.name not in wanted:
                post.tag_rows.remove(row)
        existing = {row.name for row in post.tag_rows}
        for name in names:
            if name not in existing:
                post.tag_rows.append(PostTag(name=name))


__all__ = ["PostService", "get_post_or_404"]
