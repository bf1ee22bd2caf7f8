"""Client for the external identity-token validator.

The identity service owns token issuance; this module only asks it who a
bearer token belongs to. Invalid tokens and an unreachable service are
reported as different errors so read paths can degrade while mutation paths
fail closed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from community_service.core.errors import AuthDependencyError, AuthenticationError
from community_service.core.settings import settings

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "
ME_PATH = "/api/v1/auth/me"
HTTP_SERVER_ERROR = 500


@dataclass(frozen=True)
class ResolvedIdentity:
    """Identity returned by the validator for a good token."""

    external_account_id: int
    display_name: str | None
    email: str | None


def extract_token(authorization_header: str | None) -> str:
    """Return the token from an ``Authorization: Bearer`` header.

    Raises:
        AuthenticationError: If the header is missing or not a bearer header.
    """
    if not authorization_header or not authorization_header.startswith(BEARER_PREFIX):
        raise AuthenticationError("Malformed Authorization header")
    token = authorization_header[len(BEARER_PREFIX):].strip()
    if not token:
        raise AuthenticationError("Malformed Authorization header")
    return token


class IdentityTokenValidator:
    """Resolve bearer tokens through the identity service's ``/auth/me``."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.auth_service_url).rstrip("/")
        self.timeout_seconds = (
            timeout_seconds
            if timeout_seconds is not None
            else settings.auth_service_timeout_seconds
        )
        self._transport = transport

    async def validate(self, token: str) -> ResolvedIdentity:
        """Return the identity behind `token`.

        Raises:
            AuthenticationError: The service rejected the token or answered
                with an unusable body.
            AuthDependencyError: The service could not be reached, timed out
                or failed with a 5xx status.
        """
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout_seconds),
                transport=self._transport,
            ) as client:
                response = await client.get(
                    ME_PATH,
                    headers={
                        "Authorization": f"{BEARER_PREFIX}{token}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.HTTPError as exc:
            logger.error("Identity service call failed: %s", exc)
            raise AuthDependencyError() from exc

        if response.status_code >= HTTP_SERVER_ERROR:
            logger.error("Identity service returned %s", response.status_code)
            raise AuthDependencyError()
        if not response.is_success:
            logger.warning("Identity service rejected token with %s", response.status_code)
            raise AuthenticationError()

        return self._parse(response)

    @staticmethod
    def _parse(response: httpx.Response) -> ResolvedIdentity:
        try:
            body = response.json()
        except ValueError as exc:
            logger.error("Identity service returned a non-JSON body")
            raise AuthenticationError() from exc

        if not isinstance(body, dict) or str(body.get("result", "")).upper() != "SUCCESS":
            message = body.get("message") if isinstance(body, dict) else None
            logger.warning("Identity service reported failure: %s", message)
            raise AuthenticationError()

        data = body.get("data")
        if not isinstance(data, dict):
            raise AuthenticationError()
        try:
            account_id = int(data["id"])
        except (KeyError, TypeError, ValueError) as exc:
            raise AuthenticationError() from exc
        return ResolvedIdentity(
            external_account_id=account_id,
            display_name=data.get("username"),
            email=data.get("email"),
        )

    async def validate_header(self, authorization_header: str | None) -> ResolvedIdentity:
        """Extract the bearer token from a header value and validate it."""
        return await self.validate(extract_token(authorization_header))


__all__ = [
    "IdentityTokenValidator",
    "ResolvedIdentity",
    "extract_token",
]
