"""Post-related endpoints for the community API."""

from fastapi import APIRouter, Query, status

from community_service.core.errors import AccessDeniedError
from community_service.schemas.author import AnonymousChallenge
from community_service.schemas.common import MessageResponse, Page
from community_service.schemas.post import PostCreate, PostResponse, PostSummary, PostUpdate
from community_service.services.listing import ListingQuery, parse_sort_mode

from ..dependencies import (
    ListingServiceDep,
    MutationIdentityDep,
    OptionalIdentityDep,
    PostServiceDep,
    RequiredIdentityDep,
    SessionDep,
    build_credential,
    build_ownership_credential,
)

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("/", response_model=Page[PostSummary])
async def list_posts(
    db: SessionDep,
    listing: ListingServiceDep,
    identity: OptionalIdentityDep,
    category: str | None = Query(None, description="Category name, or ALL"),
    sort: str | None = Query("recency", description="recency, views or likes"),
    tag: str | None = Query(None, description="Tag filter; overrides search and sort"),
    search: str | None = Query(None, description="Keyword filter; overrides sort"),
    page: int = Query(0, ge=0, description="0-based page index"),
    size: int | None = Query(None, ge=1, description="Page size"),
) -> Page[PostSummary]:
    """List posts using exactly one strategy.

    Precedence is tag, then search, then sort by views, then sort by likes,
    then newest first within the category. Authenticated callers get
    `is_liked_by_current_user` filled in with one bulk lookup.
    """
    query = ListingQuery(
        category=category,
        tag=tag,
        search_keyword=search,
        sort_mode=parse_sort_mode(sort),
        page=page,
        size=size,
    )
    result = listing.list_posts(db, query)
    viewer_id = identity.external_account_id if identity else None
    listing.annotate_liked(db, result, viewer_id)
    return result.page


@router.get("/tags", response_model=list[str])
async def list_tags(db: SessionDep, listing: ListingServiceDep) -> list[str]:
    """Return every tag in use."""
    return listing.list_all_tags(db)


@router.get("/users/{account_id}/liked", response_model=Page[PostSummary])
async def list_liked_posts(
    account_id: int,
    db: SessionDep,
    listing: ListingServiceDep,
    identity: RequiredIdentityDep,
    page: int = Query(0, ge=0),
    size: int | None = Query(None, ge=1),
) -> Page[PostSummary]:
    """Return the posts the caller liked; callers may only list their own."""
    if identity.external_account_id != account_id:
        raise AccessDeniedError("You can only list your own liked posts")
    return listing.list_liked_by(db, account_id, page, size)


@router.get("/users/{account_id}/posts", response_model=Page[PostSummary])
async def list_member_posts(
    account_id: int,
    db: SessionDep,
    listing: ListingServiceDep,
    identity: RequiredIdentityDep,
    page: int = Query(0, ge=0),
    size: int | None = Query(None, ge=1),
) -> Page[PostSummary]:
    """Return the posts the caller wrote; callers may only list their own."""
    if identity.external_account_id != account_id:
        raise AccessDeniedError("You can only list your own posts")
    return listing.list_by_member(db, account_id, page, size)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: int,
    db: SessionDep,
    posts: PostServiceDep,
    identity: OptionalIdentityDep,
    increment_view: bool = Query(True, description="Count this read as a view"),
) -> PostResponse:
    """Get a post with its comments and attachments."""
    viewer_id = identity.external_account_id if identity else None
    return posts.get_post(db, post_id, viewer_id, increment_view=increment_view)


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    db: SessionDep,
    posts: PostServiceDep,
    identity: MutationIdentityDep,
) -> PostResponse:
    """Create a post as the authenticated member or as an anonymous author.

    With a bearer token the post belongs to that account and the anonymous
    email and secret are ignored; without one the post is anonymous.
    """
    credential = build_credential(
        identity,
        display_name=post_data.display_name,
        is_anonymous=post_data.is_anonymous,
        anonymous_email=post_data.anonymous_email,
        anonymous_secret=post_data.anonymous_secret,
    )
    post = posts.create_post(db, post_data, credential)
    return posts.get_post(db, post.id, increment_view=False)


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: int,
    post_data: PostUpdate,
    db: SessionDep,
    posts: PostServiceDep,
    identity: MutationIdentityDep,
) -> PostResponse:
    """Edit a post owned by the caller."""
    credential = build_ownership_credential(
        identity,
        post_data.anonymous_email,
        post_data.anonymous_secret,
    )
    posts.update_post(db, post_id, post_data, credential)
    return posts.get_post(db, post_id, increment_view=False)


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: int,
    db: SessionDep,
    posts: PostServiceDep,
    identity: MutationIdentityDep,
    challenge: AnonymousChallenge | None = None,
) -> MessageResponse:
    """Delete a post with its comments, likes and attachments."""
    challenge = challenge or AnonymousChallenge()
    credential = build_ownership_credential(
        identity,
        challenge.anonymous_email,
        challenge.anonymous_secret,
    )
    posts.delete_post(db, post_id, credential)
    return MessageResponse(message="Post deleted")


@router.post("/{post_id}/verify", response_model=MessageResponse)
async def verify_anonymous_post(
    post_id: int,
    challenge: AnonymousChallenge,
    db: SessionDep,
    posts: PostServiceDep,
) -> MessageResponse:
    """Confirm anonymous credentials before an edit or delete."""
    posts.verify_anonymous_post(db, post_id, challenge.anonymous_email, challenge.anonymous_secret)
    return MessageResponse(message="Verification succeeded")
