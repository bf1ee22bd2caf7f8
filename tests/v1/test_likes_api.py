# tests/v1/test_likes_api.py
"""Tests for like endpoints."""

import pytest
from fastapi import status


@pytest.fixture()
def post_id(member_post) -> int:
    return member_post.id


def test_like_and_unlike(client, auth_headers, post_id) -> None:
    response = client.post(f"/api/v1/posts/{post_id}/likes", headers=auth_headers)
    assert response.status_code == status.HTTP_201_CREATED

    detail = client.get(f"/api/v1/posts/{post_id}", headers=auth_headers).json()
    assert detail["likes"] == 1
    assert detail["is_liked_by_current_user"] is True

    response = client.delete(f"/api/v1/posts/{post_id}/likes", headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK

    detail = client.get(f"/api/v1/posts/{post_id}", headers=auth_headers).json()
    assert detail["likes"] == 0
    assert detail["is_liked_by_current_user"] is False


def test_duplicate_like_is_conflict(client, auth_headers, post_id) -> None:
    client.post(f"/api/v1/posts/{post_id}/likes", headers=auth_headers)
    response = client.post(f"/api/v1/posts/{post_id}/likes", headers=auth_headers)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["code"] == "CONFLICT"


def test_unlike_without_like_succeeds(client, auth_headers, post_id) -> None:
    response = client.delete(f"/api/v1/posts/{post_id}/likes", headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK


def test_like_requires_authentication(client, post_id) -> None:
    response = client.post(f"/api/v1/posts/{post_id}/likes")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_like_fails_closed_when_identity_service_is_down(
    client, auth_headers, post_id, token_validator
) -> None:
    token_validator.available = False
    response = client.post(f"/api/v1/posts/{post_id}/likes", headers=auth_headers)
    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE


def test_like_missing_post(client, auth_headers) -> None:
    response = client.post("/api/v1/posts/99999/likes", headers=auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND
