"""Author credential schemas shared by creation and permission checks."""

from pydantic import BaseModel, ConfigDict, Field


class AuthorCredential(BaseModel):
    """Identity payload supplied with a content request.

    Member fields are filled from a validated bearer token by the API layer,
    never from the request body; anonymous fields come from the body.
    """

    external_account_id: int | None = None
    display_name: str | None = Field(None, max_length=100)
    is_anonymous: bool = False
    anonymous_email: str | None = None
    anonymous_secret: str | None = None

    model_config = ConfigDict(frozen=True)


class AnonymousChallenge(BaseModel):
    """Email and secret pair used to prove ownership of anonymous content."""

    anonymous_email: str | None = Field(None, description="Email given at creation time")
    anonymous_secret: str | None = Field(None, description="Secret given at creation time")
