# tests/v1/test_social_api.py
"""Tests for vote, comment, reply and follow endpoints."""

import pytest
from fastapi import status


@pytest.fixture()
def video(publish_video, alice):
    return publish_video(alice.uid)


def test_upvote_then_duplicate(client, video, bob_headers):
    url = f"/api/v1/social/videos/upvote/{video.video_id}"

    first = client.post(url, headers=bob_headers).json()
    second = client.post(url, headers=bob_headers).json()

    assert first == {"message": "Upvoted", "created": True, "cleared_opposite": False}
    assert second == {"message": "Already upvoted", "created": False, "cleared_opposite": False}


def test_downvote_clears_upvote(client, video, bob_headers):
    client.post(f"/api/v1/social/videos/upvote/{video.video_id}", headers=bob_headers)
    response = client.post(f"/api/v1/social/videos/downvote/{video.video_id}", headers=bob_headers)

    assert response.json()["cleared_opposite"] is True
    state = client.get(f"/api/v1/social/videos/{video.video_id}/my-reaction", headers=bob_headers)
    assert state.json() == {"upvoted": False, "downvoted": True}


def test_vote_on_missing_video(client, bob_headers):
    response = client.post("/api/v1/social/videos/upvote/missing", headers=bob_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"detail": "Video not found"}


def test_comment_and_reply(client, video, alice_headers, bob_headers):
    created = client.post(
        f"/api/v1/social/videos/comment/{video.video_id}",
        json={"comment": "lovely"},
        headers=bob_headers,
    )
    assert created.status_code == status.HTTP_201_CREATED
    comment_id = created.json()["comment_id"]

    reply_url = f"/api/v1/social/videos/reply/{comment_id}"
    first = client.post(reply_url, json={"reply": "thanks"}, headers=alice_headers).json()
    second = client.post(reply_url, json={"reply": "thank you"}, headers=alice_headers).json()

    assert first["created"] is True
    assert second["created"] is False
    assert second["body"] == "thank you"
    assert second["reply_id"] == first["reply_id"]


def test_blank_comment_is_422(client, video, bob_headers):
    response = client.post(
        f"/api/v1/social/videos/comment/{video.video_id}",
        json={"comment": "   "},
        headers=bob_headers,
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_reply_to_missing_comment(client, bob_headers):
    response = client.post(
        "/api/v1/social/videos/reply/missing", json={"reply": "hi"}, headers=bob_headers
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_follow_and_unfollow(client, alice, bob, alice_headers):
    followed = client.post(f"/api/v1/social/users/follow/{bob.username}", headers=alice_headers)
    assert followed.status_code == status.HTTP_200_OK
    assert followed.json() == {
        "message": "Followed successfully",
        "follower_uid": alice.uid,
        "followed_uid": bob.uid,
        "followers": 1,
        "following": 1,
    }

    again = client.post(f"/api/v1/social/users/follow/{bob.username}", headers=alice_headers)
    assert again.status_code == status.HTTP_409_CONFLICT
    assert again.json() == {"detail": "You are already following this user"}

    unfollowed = client.post(f"/api/v1/social/users/unfollow/{bob.username}", headers=alice_headers)
    assert unfollowed.json()["message"] == "Unfollowed successfully"
    assert unfollowed.json()["followers"] == 0

    missing_edge = client.post(f"/api/v1/social/users/unfollow/{bob.username}", headers=alice_headers)
    assert missing_edge.status_code == status.HTTP_409_CONFLICT


def test_follow_self_and_unknown_user(client, alice, alice_headers):
    self_follow = client.post(f"/api/v1/social/users/follow/{alice.username}", headers=alice_headers)
    assert self_follow.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert self_follow.json() == {"detail": "You cannot follow yourself"}

    unknown = client.post("/api/v1/social/users/follow/nobody", headers=alice_headers)
    assert unknown.status_code == status.HTTP_404_NOT_FOUND


def test_follow_requires_auth(client, bob):
    response = client.post(f"/api/v1/social/users/follow/{bob.username}")
    assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)
