"""Attachment-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict


class AttachmentResponse(BaseModel):
    """Stored file metadata returned by the API."""

    id: int
    post_id: int
    original_filename: str
    file_url: str
    file_size: int
    formatted_size: str

    model_config = ConfigDict(from_attributes=True)
