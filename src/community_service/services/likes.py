"""Like registry: the (viewer, post) like relation and its bulk lookups."""
from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from community_service.core.errors import ConflictError, PostNotFoundError
from community_service.db.session import atomic
from community_service.models import Post, PostLike

logger = logging.getLogger(__name__)


class LikeRegistry:
    """Owns the like relation.

    Uniqueness of (viewer, post) is enforced by the table's primary key;
    `add_like` relies on that constraint rather than checking first.
    Removing an absent like is a silent no-op while adding a duplicate is a
    `ConflictError`.
    """

    @staticmethod
    def _require_post(db: Session, post_id: int) -> None:
        exists = db.execute(select(Post.id).where(Post.id == post_id)).scalar_one_or_none()
        if exists is None:
            raise PostNotFoundError()

    def add_like(self, db: Session, viewer_id: int, post_id: int) -> None:
        """Record that `viewer_id` likes `post_id`.

        Raises:
            PostNotFoundError: If the post does not exist.
            ConflictError: If the like already exists, including when a
                concurrent identical request won the insert.
        """
        self._require_post(db, post_id)
        try:
            with atomic(db):
                db.execute(insert(PostLike).values(post_id=post_id, account_id=viewer_id))
                db.execute(
                    update(Post).where(Post.id == post_id).values(likes=Post.likes + 1)
                )
        except IntegrityError as exc:
            # A post deleted after the existence check also fails the insert.
            self._require_post(db, post_id)
            logger.info("Duplicate like rejected: viewer=%s post=%s", viewer_id, post_id)
            raise ConflictError("Post already liked") from exc

    def remove_like(self, db: Session, viewer_id: int, post_id: int) -> None:
        """Delete the like if present; absence is not an error.

        Raises:
            PostNotFoundError: If the post does not exist.
        """
        self._require_post(db, post_id)
        with atomic(db):
            result = db.execute(
                delete(PostLike).where(
                    PostLike.post_id == post_id,
                    PostLike.account_id == viewer_id,
                )
            )
            if result.rowcount:
                db.execute(
                    update(Post)
                    .where(Post.id == post_id, Post.likes > 0)
                    .values(likes=Post.likes - 1)
                )

    def is_liked(self, db: Session, viewer_id: int, post_id: int) -> bool:
        """Return whether `viewer_id` likes `post_id`."""
        return post_id in self.batch_check_liked(db, viewer_id, [post_id])

    def batch_check_liked(
        self,
        db: Session,
        viewer_id: int,
        post_ids: Iterable[int],
    ) -> set[int]:
        """Return the subset of `post_ids` liked by `viewer_id`.

        Issues a single query regardless of how many ids are supplied, and
        none at all for an empty input.
        """
        wanted = set(post_ids)
        if not wanted:
            return set()
        rows = db.execute(
            select(PostLike.post_id).where(
                PostLike.account_id == viewer_id,
                PostLike.post_id.in_(wanted),
            )
        ).scalars()
        return set(rows)

    def liked_post_ids_query(self, viewer_id: int):
        """Return a select of post ids liked by `viewer_id`, for composition."""
        return select(PostLike.post_id).where(PostLike.account_id == viewer_id)

    def count_likes(self, db: Session, post_id: int) -> int:
        """Count like rows for a post straight from the relation."""
        return db.execute(
            select(func.count()).select_from(PostLike).where(PostLike.post_id == post_id)
        ).scalar_one()


__all__ = ["LikeRegistry"]
