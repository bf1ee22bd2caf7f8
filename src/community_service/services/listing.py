"""Listing composition: choose one listing strategy and return a page.

Filters are not combined. Exactly one strategy runs per request, picked by a
fixed precedence: tag, then keyword search, then popularity by views, then
popularity by likes, then chronological by category.
"""
from __future__ import annotations

import enum
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from community_service.core.errors import ValidationError
from community_service.core.settings import settings
from community_service.models import (
    Comment,
    MemberAuthor,
    Post,
    PostAttachment,
    PostCategory,
    PostTag,
)
from community_service.models.post import normalize_tag
from community_service.schemas.common import Page
from community_service.schemas.post import PostSummary
from community_service.services.likes import LikeRegistry

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "ALL"


class SortMode(str, enum.Enum):
    """Ordering requested by the client when no tag or keyword is given."""

    RECENCY = "recency"
    VIEWS = "views"
    LIKES = "likes"


class ListingStrategy(str, enum.Enum):
    """The strategy that actually produced a page."""

    TAG = "tag"
    SEARCH = "search"
    POPULAR_BY_VIEWS = "popular_by_views"
    POPULAR_BY_LIKES = "popular_by_likes"
    CHRONOLOGICAL = "chronological"


@dataclass(frozen=True)
class ListingQuery:
    """Raw listing parameters as received from a client."""

    category: str | None = None
    tag: str | None = None
    search_keyword: str | None = None
    sort_mode: SortMode = SortMode.RECENCY
    page: int = 0
    size: int | None = None


@dataclass(frozen=True)
class ListingResult:
    """A page of post summaries and the strategy that built it."""

    strategy: ListingStrategy
    page: Page[PostSummary]

    @property
    def post_ids(self) -> list[int]:
        return [summary.post_id for summary in self.page.content]


def parse_sort_mode(raw: str | None) -> SortMode:
    """Map a client sort value to a `SortMode`; unknown values mean recency."""
    if raw is None:
        return SortMode.RECENCY
    try:
        return SortMode(raw.strip().lower())
    except ValueError:
        return SortMode.RECENCY


def parse_category(raw: str | None) -> PostCategory | None:
    """Return the category filter, or None when listing every category.

    Raises:
        ValidationError: If the value names no known category.
    """
    if raw is None or not raw.strip() or raw.strip().upper() == ALL_CATEGORIES:
        return None
    try:
        return PostCategory(raw.strip().upper())
    except ValueError as err:
        raise ValidationError(f"Unknown category: {raw}") from err


def select_strategy(query: ListingQuery) -> ListingStrategy:
    """Pick the single strategy for `query` by fixed precedence."""
    if query.tag is not None and query.tag.strip():
        return ListingStrategy.TAG
    if query.search_keyword is not None and query.search_keyword.strip():
        return ListingStrategy.SEARCH
    if query.sort_mode == SortMode.VIEWS:
        return ListingStrategy.POPULAR_BY_VIEWS
    if query.sort_mode == SortMode.LIKES:
        return ListingStrategy.POPULAR_BY_LIKES
    return ListingStrategy.CHRONOLOGICAL


def _newest_first(stmt: Select) -> Select:
    return stmt.order_by(Post.created_at.desc(), Post.id.desc())


class PostListingService:
    """Execute listing strategies against the database."""

    def __init__(self, like_registry: LikeRegistry | None = None) -> None:
        self.like_registry = like_registry or LikeRegistry()

    def list_posts(self, db: Session, query: ListingQuery) -> ListingResult:
        """Run the strategy chosen by `select_strategy` and return one page.

        Raises:
            ValidationError: On a negative page or an unknown category (the
                category is only validated when a strategy uses it).
        """
        page, size = self._page_bounds(query)
        strategy = select_strategy(query)

        if strategy == ListingStrategy.TAG:
            stmt = self._by_tag(query.tag or "")
        elif strategy == ListingStrategy.SEARCH:
            stmt = self._by_keyword(query.search_keyword or "")
        elif strategy == ListingStrategy.POPULAR_BY_VIEWS:
            stmt = self._in_category(parse_category(query.category)).order_by(
                Post.views.desc(), Post.created_at.desc(), Post.id.desc()
            )
        elif strategy == ListingStrategy.POPULAR_BY_LIKES:
            stmt = self._in_category(parse_category(query.category)).order_by(
                Post.likes.desc(), Post.created_at.desc(), Post.id.desc()
            )
        else:
            stmt = _newest_first(self._in_category(parse_category(query.category)))

        logger.debug("Listing posts with strategy %s page=%s size=%s", strategy.value, page, size)
        return ListingResult(strategy=strategy, page=self.paginate(db, stmt, page, size))

    def list_by_member(
        self,
        db: Session,
        external_account_id: int,
        page: int = 0,
        size: int | None = None,
    ) -> Page[PostSummary]:
        """Return the posts written by a member account, newest first."""
        page, size = self._page_bounds(ListingQuery(page=page, size=size))
        stmt = _newest_first(
            select(Post)
            .join(MemberAuthor, Post.author_id == MemberAuthor.id)
            .where(MemberAuthor.external_account_id == external_account_id)
        )
        return self.paginate(db, stmt, page, size)

    def list_liked_by(
        self,
        db: Session,
        viewer_id: int,
        page: int = 0,
        size: int | None = None,
    ) -> Page[PostSummary]:
        """Return the posts a viewer liked, newest first, all marked liked."""
        page, size = self._page_bounds(ListingQuery(page=page, size=size))
        stmt = _newest_first(
            select(Post).where(Post.id.in_(self.like_registry.liked_post_ids_query(viewer_id)))
        )
        result = self.paginate(db, stmt, page, size)
        for summary in result.content:
            summary.is_liked_by_current_user = True
        return result

    def annotate_liked(
        self,
        db: Session,
        result: ListingResult,
        viewer_id: int | None,
    ) -> ListingResult:
        """Mark each summary with the viewer's like state using one bulk lookup."""
        if viewer_id is None:
            return result
        liked = self.like_registry.batch_check_liked(db, viewer_id, result.post_ids)
        for summary in result.page.content:
            summary.is_liked_by_current_user = summary.post_id in liked
        return result

    @staticmethod
    def list_all_tags(db: Session) -> list[str]:
        """Return every distinct normalized tag in alphabetical order."""
        return list(db.execute(select(PostTag.name).distinct().order_by(PostTag.name)).scalars())

    @staticmethod
    def _page_bounds(query: ListingQuery) -> tuple[int, int]:
        if query.page < 0:
            raise ValidationError("Page index must not be negative")
        size = query.size or settings.default_page_size
        if size < 1:
            raise ValidationError("Page size must be positive")
        return query.page, min(size, settings.max_page_size)

    @staticmethod
    def _in_category(category: PostCategory | None) -> Select:
        stmt = select(Post)
        if category is not None:
            stmt = stmt.where(Post.category == category)
        return stmt

    @staticmethod
    def _by_tag(tag: str) -> Select:
        name = normalize_tag(tag)
        return _newest_first(
            select(Post).where(Post.id.in_(select(PostTag.post_id).where(PostTag.name == name)))
        )

    @staticmethod
    def _by_keyword(keyword: str) -> Select:
        term = keyword.strip()
        return _newest_first(
            select(Post).where(
                Post.title.icontains(term, autoescape=True)
                | Post.content.icontains(term, autoescape=True)
            )
        )

    def paginate(self, db: Session, stmt: Select, page: int, size: int) -> Page[PostSummary]:
        """Execute `stmt` for one page and build summaries in bulk."""
        total = db.execute(
            select(func.count()).select_from(stmt.order_by(None).subquery())
        ).scalar_one()
        posts = list(db.execute(stmt.limit(size).offset(page * size)).unique().scalars())
        summaries = self._summarize(db, posts)
        return Page[PostSummary].build(summaries, page=page, size=size, total=total)

    @staticmethod
    def _summarize(db: Session, posts: Sequence[Post]) -> list[PostSummary]:
        if not posts:
            return []
        ids = [post.id for post in posts]
        comment_counts = dict(
            db.execute(
                select(Comment.post_id, func.count())
                .where(Comment.post_id.in_(ids))
                .group_by(Comment.post_id)
            ).all()
        )
        with_attachments = set(
            db.execute(
                select(PostAttachment.post_id).where(PostAttachment.post_id.in_(ids)).distinct()
            ).scalars()
        )
        return [
            PostSummary.from_post(
                post,
                comments_count=comment_counts.get(post.id, 0),
                has_attachments=post.id in with_attachments,
            )
            for post in posts
        ]


__all__ = [
    "ListingQuery",
    "ListingResult",
    "ListingStrategy",
    "PostListingService",
    "SortMode",
    "parse_category",
    "parse_sort_mode",
    "select_strategy",
]
