"""Like endpoints; members only."""

from fastapi import APIRouter, status

from community_service.schemas.common import MessageResponse

from ..dependencies import LikeRegistryDep, RequiredIdentityDep, SessionDep

router = APIRouter(prefix="/posts", tags=["likes"])


@router.post(
    "/{post_id}/likes",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_like(
    post_id: int,
    db: SessionDep,
    likes: LikeRegistryDep,
    identity: RequiredIdentityDep,
) -> MessageResponse:
    """Like a post; liking twice is a 409."""
    likes.add_like(db, identity.external_account_id, post_id)
    return MessageResponse(message="Like added")


@router.delete("/{post_id}/likes", response_model=MessageResponse)
async def remove_like(
    post_id: int,
    db: SessionDep,
    likes: LikeRegistryDep,
    identity: RequiredIdentityDep,
) -> MessageResponse:
    """Remove a like; removing an absent like still succeeds."""
    likes.remove_like(db, identity.external_account_id, post_id)
    return MessageResponse(message="Like removed")
