"""Comment-related endpoints for the community API."""

from fastapi import APIRouter, Query, status

from community_service.schemas.author import AnonymousChallenge
from community_service.schemas.comment import CommentCreate, CommentResponse, CommentUpdate
from community_service.schemas.common import MessageResponse

from ..dependencies import (
    CommentServiceDep,
    MutationIdentityDep,
    SessionDep,
    build_credential,
    build_ownership_credential,
)

router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("/", response_model=list[CommentResponse])
async def list_comments(
    db: SessionDep,
    comments: CommentServiceDep,
    post_id: int = Query(..., description="Post whose comments to list"),
) -> list[CommentResponse]:
    """List a post's comments, oldest first."""
    return [CommentResponse.from_comment(c) for c in comments.list_for_post(db, post_id)]


@router.get("/author/{author_id}", response_model=list[CommentResponse])
async def list_comments_by_author(
    author_id: int,
    db: SessionDep,
    comments: CommentServiceDep,
) -> list[CommentResponse]:
    """List a member author's comments, newest first."""
    return [CommentResponse.from_comment(c) for c in comments.list_by_author(db, author_id)]


@router.post("/", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    comment_data: CommentCreate,
    db: SessionDep,
    comments: CommentServiceDep,
    identity: MutationIdentityDep,
) -> CommentResponse:
    credential = build_credential(
        identity,
        display_name=comment_data.display_name,
        is_anonymous=comment_data.is_anonymous,
        anonymous_email=comment_data.anonymous_email,
        anonymous_secret=comment_data.anonymous_secret,
    )
    comment = comments.create_comment(db, comment_data.post_id, comment_data.content, credential)
    return CommentResponse.from_comment(comment)


@router.put("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: int,
    comment_data: CommentUpdate,
    db: SessionDep,
    comments: CommentServiceDep,
    identity: MutationIdentityDep,
) -> CommentResponse:
    credential = build_ownership_credential(
        identity,
        comment_data.anonymous_email,
        comment_data.anonymous_secret,
    )
    comment = comments.update_comment(db, comment_id, comment_data.content, credential)
    return CommentResponse.from_comment(comment)


@router.delete("/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: int,
    db: SessionDep,
    comments: CommentServiceDep,
    identity: MutationIdentityDep,
    challenge: AnonymousChallenge | None = None,
) -> MessageResponse:
    challenge = challenge or AnonymousChallenge()
    credential = build_ownership_credential(
        identity,
        challenge.anonymous_email,
        challenge.anonymous_secret,
    )
    comments.delete_comment(db, comment_id, credential)
    return MessageResponse(message="Comment deleted")


@router.post("/{comment_id}/verify", response_model=MessageResponse)
async def verify_anonymous_comment(
    comment_id: int,
    challenge: AnonymousChallenge,
    db: SessionDep,
    comments: CommentServiceDep,
) -> MessageResponse:
    """Confirm anonymous credentials before an edit or delete."""
    comments.verify_anonymous_comment(
        db,
        comment_id,
        challenge.anonymous_email,
        challenge.anonymous_secret,
    )
    return MessageResponse(message="Verification succeeded")
