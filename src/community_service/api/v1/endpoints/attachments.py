"""Attachment endpoints: list, upload and delete files on posts."""

from typing import Annotated

from fastapi import APIRouter, File, Form, UploadFile, status

from community_service.schemas.attachment import AttachmentResponse
from community_service.schemas.author import AnonymousChallenge
from community_service.schemas.common import MessageResponse
from community_service.services.posts import get_post_or_404

from ..dependencies import (
    AttachmentServiceDep,
    MutationIdentityDep,
    PostServiceDep,
    SessionDep,
    build_ownership_credential,
)

router = APIRouter(prefix="/posts", tags=["attachments"])


@router.get("/{post_id}/attachments", response_model=list[AttachmentResponse])
async def list_attachments(
    post_id: int,
    db: SessionDep,
    attachments: AttachmentServiceDep,
) -> list[AttachmentResponse]:
    get_post_or_404(db, post_id)
    return [
        AttachmentResponse.model_validate(item)
        for item in attachments.list_for_post(db, post_id)
    ]


@router.post(
    "/{post_id}/attachments",
    response_model=list[AttachmentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def upload_attachments(
    post_id: int,
    files: Annotated[list[UploadFile], File(...)],
    db: SessionDep,
    posts: PostServiceDep,
    attachments: AttachmentServiceDep,
    identity: MutationIdentityDep,
    anonymous_email: Annotated[str | None, Form()] = None,
    anonymous_secret: Annotated[str | None, Form()] = None,
) -> list[AttachmentResponse]:
    """Upload files to a post owned by the caller."""
    post = get_post_or_404(db, post_id)
    credential = build_ownership_credential(identity, anonymous_email, anonymous_secret)
    posts.verifier.verify_ownership(post, credential)

    payload = [(upload.filename or "", await upload.read()) for upload in files]
    records = attachments.upload(db, post, payload)
    return [AttachmentResponse.model_validate(record) for record in records]


@router.delete("/attachments/{attachment_id}", response_model=MessageResponse)
async def delete_attachment(
    attachment_id: int,
    db: SessionDep,
    posts: PostServiceDep,
    attachments: AttachmentServiceDep,
    identity: MutationIdentityDep,
    challenge: AnonymousChallenge | None = None,
) -> MessageResponse:
    """Delete one attachment from a post owned by the caller."""
    attachment = attachments.get(db, attachment_id)
    post = get_post_or_404(db, attachment.post_id)
    challenge = challenge or AnonymousChallenge()
    credential = build_ownership_credential(
        identity,
        challenge.anonymous_email,
        challenge.anonymous_secret,
    )
    posts.verifier.verify_ownership(post, credential)
    attachments.delete_attachment(db, attachment)
    return MessageResponse(message="Attachment deleted")
