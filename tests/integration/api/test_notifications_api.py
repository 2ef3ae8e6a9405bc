"""Integration tests for notification endpoints."""

from collections.abc import Callable

from factories import album_payload
from fastapi.testclient import TestClient

Login = Callable[..., dict[str, str]]


def _liked_ranking(client: TestClient, owner: dict[str, str], *likers: dict[str, str]) -> str:
    ranking_id = client.post(
        "/rankings",
        json={"title": "Best", "ranking_type": "albums", "items": [album_payload("al1")]},
        headers=owner,
    ).json()["id"]
    for liker in likers:
        client.post(f"/rankings/{ranking_id}/like", headers=liker)
    return ranking_id


def test_list_newest_first_with_limit(client: TestClient, login: Login) -> None:
    alice = login("alice")
    _liked_ranking(client, alice, login("bob"), login("carol"), login("dave"))

    everything = client.get("/notifications", headers=alice).json()["notifications"]
    limited = client.get("/notifications", params={"limit": 2}, headers=alice).json()

    assert len(everything) == 3
    assert [n["data"]["liker_id"] for n in everything] == ["dave", "carol", "bob"]
    assert len(limited["notifications"]) == 2


def test_limit_must_be_positive(client: TestClient, login: Login) -> None:
    response = client.get("/notifications", params={"limit": 0}, headers=login("alice"))
    assert response.status_code == 400


def test_mark_by_ids_and_unread_filter(client: TestClient, login: Login) -> None:
    alice = login("alice")
    _liked_ranking(client, alice, login("bob"), login("carol"))
    first, second = client.get("/notifications", headers=alice).json()["notifications"]

    marked = client.patch(
        "/notifications", json={"notificationIds": [first["id"]]}, headers=alice
    )

    assert marked.json() == {"success": True, "updated": 1}
    unread = client.get("/notifications", params={"unread_only": True}, headers=alice).json()
    assert [n["id"] for n in unread["notifications"]] == [second["id"]]


def test_mark_all_only_touches_caller(client: TestClient, login: Login) -> None:
    alice = login("alice")
    bob = login("bob")
    _liked_ranking(client, alice, bob)
    _liked_ranking(client, bob, alice)

    marked = client.patch("/notifications", json={"markAllRead": True}, headers=alice)

    assert marked.json()["updated"] == 1
    bob_unread = client.get("/notifications", params={"unread_only": True}, headers=bob).json()
    assert len(bob_unread["notifications"]) == 1


def test_cannot_mark_someone_elses_notification(client: TestClient, login: Login) -> None:
    alice = login("alice")
    bob = login("bob")
    _liked_ranking(client, alice, bob)
    alice_notification = client.get("/notifications", headers=alice).json()["notifications"][0]

    marked = client.patch(
        "/notifications", json={"notificationIds": [alice_notification["id"]]}, headers=bob
    )

    assert marked.json()["updated"] == 0
    assert client.get("/notifications", headers=alice).json()["notifications"][0]["is_read"] is False


def test_patch_without_ids_or_flag_is_noop(client: TestClient, login: Login) -> None:
    response = client.patch("/notifications", json={}, headers=login("alice"))
    assert response.status_code == 200
    assert response.json()["updated"] == 0


def test_stream_requires_auth(client: TestClient) -> None:
    response = client.get("/notifications/stream")
    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated"}
