# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")

from community_service.api.v1.dependencies import (
    get_attachment_storage,
    get_secret_hasher,
    get_token_validator,
)
from community_service.core.errors import AuthDependencyError, AuthenticationError
from community_service.core.security import SecretHasher
from community_service.db.session import Base, enable_sqlite_savepoints
from community_service.db.session import get_db as app_get_session
from community_service.main import app as fastapi_app
from community_service.models import Post, PostCategory
from community_service.schemas.author import AuthorCredential
from community_service.schemas.post import PostCreate
from community_service.services.attachments import LocalAttachmentStorage
from community_service.services.auth import IdentityTokenValidator, ResolvedIdentity
from community_service.services.comments import CommentService
from community_service.services.identity import IdentityResolver
from community_service.services.likes import LikeRegistry
from community_service.services.listing import PostListingService
from community_service.services.permissions import PermissionVerifier
from community_service.services.posts import PostService

TEST_DB_URL = "sqlite://"

MEMBER_ID = 101
OTHER_MEMBER_ID = 202
ANON_EMAIL = "anon@example.com"
ANON_SECRET = "s3cret-pass"

IDENTITIES = {
    "member-token": ResolvedIdentity(MEMBER_ID, "alice", "alice@example.com"),
    "other-token": ResolvedIdentity(OTHER_MEMBER_ID, "bob", "bob@example.com"),
    "long-name-token": ResolvedIdentity(303, "x" * 150, "long@example.com"),
}


class FakeTokenValidator(IdentityTokenValidator):
    """Resolve a fixed set of tokens without calling the identity service."""

    def __init__(self) -> None:
        super().__init__(base_url="http://identity.test", timeout_seconds=1.0)
        self.available = True
        self.calls = 0

    async def validate(self, token: str) -> ResolvedIdentity:
        self.calls += 1
        if not self.available:
            raise AuthDependencyError()
        try:
            return IDENTITIES[token]
        except KeyError as exc:
            raise AuthenticationError() from exc


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def statements(engine: Engine) -> Iterator[list[str]]:
    """Collect every SQL statement sent to the database while active."""
    captured: list[str] = []

    def _capture(conn, cursor, statement, parameters, context, executemany) -> None:
        captured.append(statement)

    event.listen(engine, "before_cursor_execute", _capture)
    try:
        yield captured
    finally:
        event.remove(engine, "before_cursor_execute", _capture)


@pytest.fixture(scope="session")
def hasher() -> SecretHasher:
    """A cheap scrypt configuration so tests stay fast."""
    return SecretHasher(n=2**4, r=8, p=1)


@pytest.fixture()
def storage(tmp_path) -> LocalAttachmentStorage:
    return LocalAttachmentStorage(
        base_path=tmp_path / "uploads",
        max_bytes=1024,
        allowed_extensions=["txt", "png", "pdf"],
    )


@pytest.fixture()
def like_registry() -> LikeRegistry:
    return LikeRegistry()


@pytest.fixture()
def resolver(hasher: SecretHasher) -> IdentityResolver:
    return IdentityResolver(hasher)


@pytest.fixture()
def verifier(hasher: SecretHasher) -> PermissionVerifier:
    return PermissionVerifier(hasher)


@pytest.fixture()
def post_service(
    resolver: IdentityResolver,
    verifier: PermissionVerifier,
    storage: LocalAttachmentStorage,
    like_registry: LikeRegistry,
) -> PostService:
    return PostService(resolver, verifier, storage, like_registry)


@pytest.fixture()
def comment_service(resolver: IdentityResolver, verifier: PermissionVerifier) -> CommentService:
    return CommentService(resolver, verifier)


@pytest.fixture()
def listing_service(like_registry: LikeRegistry) -> PostListingService:
    return PostListingService(like_registry)


@pytest.fixture()
def member_credential() -> AuthorCredential:
    return AuthorCredential(external_account_id=MEMBER_ID, display_name="alice")


@pytest.fixture()
def anonymous_credential() -> AuthorCredential:
    return AuthorCredential(
        display_name="guest",
        is_anonymous=True,
        anonymous_email=ANON_EMAIL,
        anonymous_secret=ANON_SECRET,
    )


def build_post_data(**overrides: Any) -> PostCreate:
    fields: dict[str, Any] = {
        "category": PostCategory.FREE_BOARD,
        "title": "Test post",
        "content": "Test post content",
        "tags": None,
    }
    fields.update(overrides)
    return PostCreate(**fields)


@pytest.fixture()
def member_post(
    db_session: Session,
    post_service: PostService,
    member_credential: AuthorCredential,
) -> Post:
    """A post written by the primary member."""
    return post_service.create_post(db_session, build_post_data(), member_credential)


@pytest.fixture()
def anonymous_post(
    db_session: Session,
    post_service: PostService,
    anonymous_credential: AuthorCredential,
) -> Post:
    """A post written anonymously with the shared test email and secret."""
    return post_service.create_post(
        db_session,
        build_post_data(title="Anonymous post"),
        anonymous_credential,
    )


@pytest.fixture()
def token_validator() -> FakeTokenValidator:
    return FakeTokenValidator()


@pytest.fixture()
def app(
    db_session: Session,
    hasher: SecretHasher,
    storage: LocalAttachmentStorage,
    token_validator: FakeTokenValidator,
) -> Iterator[FastAPI]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    fastapi_app.dependency_overrides[app_get_session] = _get_session_override
    fastapi_app.dependency_overrides[get_secret_hasher] = lambda: hasher
    fastapi_app.dependency_overrides[get_attachment_storage] = lambda: storage
    fastapi_app.dependency_overrides[get_token_validator] = lambda: token_validator
    try:
        yield fastapi_app
    finally:
        fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def auth_headers() -> dict[str, str]:
    """Authorization headers for the primary member."""
    return {"Authorization": "Bearer member-token"}


@pytest.fixture()
def other_auth_headers() -> dict[str, str]:
    """Authorization headers for the secondary member."""
    return {"Authorization": "Bearer other-token"}
