# tests/v1/test_videos_api.py
"""Tests for the video endpoints."""

from fastapi import status

from reel_stage.core.errors import Internal


def _begin(client, headers, title="Clip"):
    response = client.post(
        "/api/v1/videos/upload",
        json={"video_title": title, "video_description": "desc", "video_tags": ["a"]},
        headers=headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_upload_requires_auth(client):
    response = client.post("/api/v1/videos/upload", json={"video_title": "x"})
    assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)


def test_upload_with_invalid_token(client):
    response = client.post(
        "/api/v1/videos/upload",
        json={"video_title": "x"},
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_upload_for_unknown_user(client, headers_for):
    response = client.post(
        "/api/v1/videos/upload", json={"video_title": "x"}, headers=headers_for("ghost")
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_upload_rejects_empty_title(client, alice_headers):
    response = client.post("/api/v1/videos/upload", json={"video_title": ""}, headers=alice_headers)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_upload_and_acknowledge_flow(client, storage, alice_headers):
    slot = _begin(client, alice_headers)
    video_id = slot["video_id"]
    assert set(slot["locations"]) == {"video", "thumbnail"}

    early = client.post(f"/api/v1/videos/upload/ack/{video_id}", headers=alice_headers)
    assert early.status_code == status.HTTP_409_CONFLICT

    for location in slot["locations"].values():
        storage.put(location["path"])

    published = client.post(f"/api/v1/videos/upload/ack/{video_id}", headers=alice_headers)
    assert published.status_code == status.HTTP_200_OK
    body = published.json()
    assert body["video_id"] == video_id
    assert body["upvote_count"] == 0

    again = client.post(f"/api/v1/videos/upload/ack/{video_id}", headers=alice_headers)
    assert again.status_code == status.HTTP_404_NOT_FOUND


def test_acknowledge_storage_outage_is_503(client, storage, alice_headers):
    slot = _begin(client, alice_headers)
    storage.fail_exists = True

    response = client.post(f"/api/v1/videos/upload/ack/{slot['video_id']}", headers=alice_headers)
    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE


def test_get_video_records_view_and_reaction(client, reactions, publish_video, alice, bob_headers, bob):
    video = publish_video(alice.uid)
    reactions.set_upvote(bob.uid, video.video_id)

    response = client.get(f"/api/v1/videos/{video.video_id}", headers=bob_headers)
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["upvoted"] is True
    assert body["downvoted"] is False
    assert body["view_error"] is None
    assert body["video_url"] == f"https://cdn.test/{video.video_path}"

    anonymous = client.get(f"/api/v1/videos/{video.video_id}").json()
    assert anonymous["upvoted"] is False
    assert anonymous["video"]["view_count"] == 1


def test_get_missing_video(client):
    assert client.get("/api/v1/videos/missing").status_code == status.HTTP_404_NOT_FOUND


def test_delete_video_by_owner_and_stranger(client, publish_video, alice, alice_headers, bob_headers):
    video = publish_video(alice.uid)

    forbidden = client.delete(f"/api/v1/videos/{video.video_id}", headers=bob_headers)
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN

    deleted = client.delete(f"/api/v1/videos/{video.video_id}", headers=alice_headers)
    assert deleted.status_code == status.HTTP_204_NO_CONTENT
    assert client.get(f"/api/v1/videos/{video.video_id}").status_code == status.HTTP_404_NOT_FOUND


def test_view_failure_does_not_fail_read(client, mocker, reactions, publish_video, alice):
    video = publish_video(alice.uid)
    mocker.patch.object(reactions, "record_view", side_effect=Internal("record view failed"))

    response = client.get(f"/api/v1/videos/{video.video_id}")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["view_error"] == "record view failed"
