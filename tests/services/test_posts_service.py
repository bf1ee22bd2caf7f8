# tests/services/test_posts_service.py
"""Tests for the post lifecycle."""

import pytest
from sqlalchemy import select

from community_service.core.errors import (
    AccessDeniedError,
    PostNotFoundError,
    StorageError,
    ValidationError,
)
from community_service.models import (
    AnonymousAuthor,
    Author,
    Comment,
    MemberAuthor,
    Post,
    PostAttachment,
    PostCategory,
    PostLike,
    PostTag,
)
from community_service.schemas.author import AuthorCredential
from community_service.schemas.post import PostUpdate
from community_service.services.attachments import AttachmentService
from conftest import ANON_EMAIL, ANON_SECRET, MEMBER_ID, OTHER_MEMBER_ID, build_post_data


def _count(db_session, model) -> int:
    return len(db_session.scalars(select(model)).all())


def _update(**overrides) -> PostUpdate:
    fields = {
        "category": PostCategory.QNA,
        "title": "Edited",
        "content": "Edited content",
        "tags": "#edited",
    }
    fields.update(overrides)
    return PostUpdate(**fields)


def test_create_member_post(db_session, post_service, member_credential) -> None:
    post = post_service.create_post(
        db_session, build_post_data(tags="#Wine, #tips #wine"), member_credential
    )
    assert isinstance(post.author, MemberAuthor)
    assert post.views == 0
    assert post.likes == 0
    assert sorted(tag.name for tag in post.tag_rows) == ["tips", "wine"]


def test_two_member_posts_share_one_author(db_session, post_service, member_credential) -> None:
    first = post_service.create_post(db_session, build_post_data(), member_credential)
    second = post_service.create_post(db_session, build_post_data(), member_credential)
    assert first.author_id == second.author_id


def test_anonymous_posts_get_separate_authors(
    db_session, post_service, anonymous_credential
) -> None:
    first = post_service.create_post(db_session, build_post_data(), anonymous_credential)
    second = post_service.create_post(db_session, build_post_data(), anonymous_credential)
    assert first.author_id != second.author_id


def test_failed_author_resolution_leaves_no_rows(db_session, post_service) -> None:
    with pytest.raises(ValidationError):
        post_service.create_post(
            db_session,
            build_post_data(),
            AuthorCredential(is_anonymous=True, anonymous_email=ANON_EMAIL),
        )
    assert _count(db_session, Post) == 0
    assert _count(db_session, Author) == 0


class TestGetPost:
    def test_read_counts_a_view(self, db_session, post_service, member_post) -> None:
        post_service.get_post(db_session, member_post.id)
        detail = post_service.get_post(db_session, member_post.id)
        assert detail.views == 2

    def test_read_without_increment(self, db_session, post_service, member_post) -> None:
        detail = post_service.get_post(db_session, member_post.id, increment_view=False)
        assert detail.views == 0

    def test_missing_post(self, db_session, post_service) -> None:
        with pytest.raises(PostNotFoundError):
            post_service.get_post(db_session, 99999)

    def test_viewer_like_state(self, db_session, post_service, like_registry, member_post) -> None:
        like_registry.add_like(db_session, OTHER_MEMBER_ID, member_post.id)
        liked = post_service.get_post(db_session, member_post.id, OTHER_MEMBER_ID)
        not_liked = post_service.get_post(db_session, member_post.id, MEMBER_ID)
        anonymous = post_service.get_post(db_session, member_post.id)

        assert liked.is_liked_by_current_user is True
        assert not_liked.is_liked_by_current_user is False
        assert anonymous.is_liked_by_current_user is None
        assert liked.likes == 1

    def test_detail_exposes_member_id_only(
        self, db_session, post_service, member_post, anonymous_post
    ) -> None:
        member_detail = post_service.get_post(db_session, member_post.id)
        anonymous_detail = post_service.get_post(db_session, anonymous_post.id)

        assert member_detail.author_id == MEMBER_ID
        assert member_detail.author_name == "alice"
        assert anonymous_detail.author_id is None
        assert anonymous_detail.is_anonymous is True
        assert ANON_EMAIL not in anonymous_detail.model_dump_json()


class TestUpdatePost:
    def test_owner_can_update(self, db_session, post_service, member_post) -> None:
        post = post_service.update_post(
            db_session,
            member_post.id,
            _update(),
            AuthorCredential(external_account_id=MEMBER_ID),
        )
        assert post.title == "Edited"
        assert post.category is PostCategory.QNA
        assert [tag.name for tag in post.tag_rows] == ["edited"]

    def test_anonymous_owner_can_update(self, db_session, post_service, anonymous_post) -> None:
        post = post_service.update_post(
            db_session,
            anonymous_post.id,
            _update(),
            AuthorCredential(anonymous_email=ANON_EMAIL, anonymous_secret=ANON_SECRET),
        )
        assert post.content == "Edited content"

    def test_non_owner_cannot_update(self, db_session, post_service, member_post) -> None:
        with pytest.raises(AccessDeniedError):
            post_service.update_post(
                db_session,
                member_post.id,
                _update(),
                AuthorCredential(external_account_id=OTHER_MEMBER_ID),
            )
        db_session.refresh(member_post)
        assert member_post.title == "Test post"


class TestDeletePost:
    def test_delete_cascades_to_children(
        self,
        db_session,
        post_service,
        comment_service,
        like_registry,
        storage,
        anonymous_post,
        member_credential,
        anonymous_credential,
    ) -> None:
        post_id = anonymous_post.id
        comment_service.create_comment(db_session, post_id, "member says", member_credential)
        comment_service.create_comment(db_session, post_id, "anon says", anonymous_credential)
        like_registry.add_like(db_session, MEMBER_ID, post_id)
        [attachment] = AttachmentService(storage).upload(
            db_session, anonymous_post, [("notes.txt", b"hello")]
        )
        stored_path = storage.base_path.joinpath(*attachment.file_url.split("/")[2:])
        assert stored_path.exists()

        post_service.delete_post(
            db_session,
            post_id,
            AuthorCredential(anonymous_email=ANON_EMAIL, anonymous_secret=ANON_SECRET),
        )

        assert db_session.get(Post, post_id) is None
        assert _count(db_session, Comment) == 0
        assert _count(db_session, PostLike) == 0
        assert _count(db_session, PostAttachment) == 0
        assert _count(db_session, PostTag) == 0
        assert _count(db_session, AnonymousAuthor) == 0
        # The member author outlives its content.
        assert _count(db_session, MemberAuthor) == 1
        assert not stored_path.exists()

    def test_delete_denied_changes_nothing(self, db_session, post_service, anonymous_post) -> None:
        with pytest.raises(AccessDeniedError):
            post_service.delete_post(
                db_session,
                anonymous_post.id,
                AuthorCredential(anonymous_email=ANON_EMAIL, anonymous_secret="wrong"),
            )
        assert db_session.get(Post, anonymous_post.id) is not None

    def test_storage_failure_rolls_back(
        self, db_session, post_service, storage, member_post, mocker
    ) -> None:
        AttachmentService(storage).upload(db_session, member_post, [("a.txt", b"data")])
        mocker.patch.object(storage, "delete", side_effect=StorageError("disk gone"))

        with pytest.raises(StorageError):
            post_service.delete_post(
                db_session, member_post.id, AuthorCredential(external_account_id=MEMBER_ID)
            )

        assert db_session.get(Post, member_post.id) is not None
        assert _count(db_session, PostAttachment) == 1


class TestVerifyAnonymousPost:
    def test_correct_credentials(self, db_session, post_service, anonymous_post) -> None:
        post_service.verify_anonymous_post(db_session, anonymous_post.id, ANON_EMAIL, ANON_SECRET)

    def test_member_post_is_not_anonymous(self, db_session, post_service, member_post) -> None:
        with pytest.raises(ValidationError):
            post_service.verify_anonymous_post(db_session, member_post.id, ANON_EMAIL, ANON_SECRET)

    def test_missing_post(self, db_session, post_service) -> None:
        with pytest.raises(PostNotFoundError):
            post_service.verify_anonymous_post(db_session, 99999, ANON_EMAIL, ANON_SECRET)
