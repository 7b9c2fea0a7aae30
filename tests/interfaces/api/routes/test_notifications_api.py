"""Integration tests for the notification HTTP endpoints and websocket."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from notifier.infrastructure.security import create_access_token
from notifier.main import create_app

OWNER = "owner@example.com"
ACTOR = "actor@example.com"
ADMIN = "admin@example.com"
NOON = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)


def _token(email: str, claim: str = "sub") -> str:
    return create_access_token({claim: email})


def _auth(email: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {_token(email)}"}


def _admin_auth(**claims) -> dict[str, str]:
    token = create_access_token({"sub": ADMIN, **(claims or {"role": "admin"})})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def client(db_engine, sinks, clock):
    app = create_app(db_engine=db_engine, sinks=sinks, clock=clock)
    with TestClient(app) as test_client:
        yield test_client


def _like_event(**overrides):
    payload = {
        "recipient_email": OWNER,
        "action_type": "LIKE",
        "media_id": "media-1",
        "media_title": "Sunset",
        "message": "Actor liked your content",
    }
    payload.update(overrides)
    return payload


def test_requests_without_token_are_rejected(client: TestClient) -> None:
    assert client.get("/notifications/").status_code == 401
    invalid = client.get(
        "/notifications/unread-count", headers={"Authorization": "Bearer not-a-token"}
    )
    assert invalid.status_code == 401
    assert invalid.json()["detail"] == "Authentication error: Invalid token"


def test_event_creates_and_lists_notification(client: TestClient) -> None:
    response = client.post("/notifications/events", json=_like_event(), headers=_auth(ACTOR))
    assert response.status_code == 200
    body = response.json()
    assert body["created"] is True
    assert body["status"] == "ok"
    notification_id = body["notification"]["notification_id"]

    listing = client.get("/notifications/", headers=_auth(OWNER))
    assert listing.status_code == 200
    assert "X-Notification-Source" not in listing.headers
    page = listing.json()
    assert page["source"] == "primary"
    assert page["pagination"] == {"page": 1, "limit": 20, "total": 1, "pages": 1}
    assert page["notifications"][0]["notification_id"] == notification_id

    assert client.get("/notifications/unread-count", headers=_auth(OWNER)).json() == {"count": 1}

    read = client.post(
        f"/notifications/{notification_id}/read",
        json={"channel": "email"},
        headers=_auth(OWNER),
    )
    assert read.status_code == 200
    assert read.json()["is_read"] is True
    assert read.json()["fallback"] is False
    assert client.get("/notifications/unread-count", headers=_auth(OWNER)).json() == {"count": 0}


def test_self_notification_event_is_skipped(client: TestClient) -> None:
    response = client.post("/notifications/events", json=_like_event(), headers=_auth(OWNER))

    assert response.json()["created"] is False
    assert response.json()["reason"] == "self_notification"
    assert response.json()["notification"] is None


def test_fallback_listing_sets_headers(client: TestClient, seed) -> None:
    seed.media("media-1", OWNER, "Sunset")
    seed.interaction("i1", "media-1", ACTOR, "LIKE", NOON - timedelta(hours=1))

    response = client.get("/notifications/", headers=_auth(OWNER))

    assert response.status_code == 200
    assert response.headers["X-Notification-Source"] == "fallback"
    assert response.headers["X-Fallback-Reason"]
    assert response.json()["notifications"][0]["notification_id"] == "fallback_interaction_i1"

    fallback_read = client.post(
        "/notifications/fallback_interaction_i1/read", headers=_auth(OWNER)
    )
    assert fallback_read.status_code == 200
    assert fallback_read.json()["fallback"] is True


def test_mark_unknown_notification_returns_404(client: TestClient) -> None:
    response = client.post("/notifications/missing/read", headers=_auth(OWNER))

    assert response.status_code == 404


def test_mark_all_read(client: TestClient, seed) -> None:
    seed.notification("n1", OWNER, NOON)
    seed.notification("n2", OWNER, NOON)

    response = client.post("/notifications/read-all", headers=_auth(OWNER))

    assert response.json() == {"updated": 2}


def test_preferences_roundtrip(client: TestClient) -> None:
    defaults = client.get("/notifications/preferences", headers=_auth(OWNER)).json()
    assert defaults["like_notifications"] is True
    assert defaults["quiet_hours_start"] == "22:00:00"
    assert defaults["max_daily_notifications"] == 100

    updated = client.put(
        "/notifications/preferences",
        json={"like_notifications": False, "quiet_hours_start": "23:30", "email": "x@y.z"},
        headers=_auth(OWNER),
    )
    assert updated.status_code == 200
    assert updated.json()["like_notifications"] is False
    assert updated.json()["quiet_hours_start"] == "23:30:00"
    assert updated.json()["email"] == OWNER

    skipped = client.post("/notifications/events", json=_like_event(), headers=_auth(ACTOR))
    assert skipped.json()["reason"] == "action_disabled"

    invalid = client.put(
        "/notifications/preferences",
        json={"like_notifications": None},
        headers=_auth(OWNER),
    )
    assert invalid.status_code == 400


def test_websocket_rejects_missing_token(client: TestClient) -> None:
    with client.websocket_connect("/notifications/ws") as ws:
        with pytest.raises(WebSocketDisconnect) as exc_info:
            ws.receive_json()

    assert exc_info.value.code == 1008
    assert exc_info.value.reason == "Authentication error: No token provided"


def test_websocket_rejects_invalid_token(client: TestClient) -> None:
    with client.websocket_connect("/notifications/ws?token=garbage") as ws:
        with pytest.raises(WebSocketDisconnect) as exc_info:
            ws.receive_json()

    assert exc_info.value.code == 1008
    assert exc_info.value.reason == "Authentication error: Invalid token"


def test_websocket_session_flow(client: TestClient) -> None:
    with client.websocket_connect(f"/notifications/ws?token={_token(OWNER, 'email')}") as ws:
        assert ws.receive_json() == {"type": "unread_count", "data": {"count": 0}}

        ws.send_json({"type": "ping"})
        assert ws.receive_json()["type"] == "pong"

        online = client.get("/notifications/online", headers=_admin_auth()).json()
        assert online == {"count": 1, "users": [OWNER]}

        created = client.post(
            "/notifications/events", json=_like_event(), headers=_auth(ACTOR)
        ).json()
        pushed = ws.receive_json()
        assert pushed["type"] == "new_notification"
        assert pushed["data"]["notification_id"] == created["notification"]["notification_id"]

        ws.send_json({"type": "get_notifications", "data": {"page": 1, "limit": 5}})
        listing = ws.receive_json()
        assert listing["type"] == "notifications_list"
        assert listing["data"]["pagination"]["total"] == 1

        notification_id = pushed["data"]["notification_id"]
        ws.send_json({"type": "mark_notification_read", "data": {"notificationId": notification_id}})
        assert ws.receive_json() == {
            "type": "notification_marked_read",
            "data": {"notificationId": notification_id},
        }
        assert ws.receive_json() == {"type": "unread_count", "data": {"count": 0}}

        ws.send_json({"type": "update_notification_preferences", "data": {"push_notifications": False}})
        updated = ws.receive_json()
        assert updated["type"] == "notification_preferences_updated"
        assert updated["data"]["push_notifications"] is False

        ws.send_json({"type": "update_notification_preferences", "data": {"max_daily_notifications": -5}})
        assert ws.receive_json()["type"] == "error"

        ws.send_json({"type": "get_notification_preferences"})
        preferences = ws.receive_json()
        assert preferences["type"] == "notification_preferences"
        assert preferences["data"]["email"] == OWNER

        broadcast = client.post(
            "/notifications/system",
            json={"title": "Maintenance", "message": "Back soon"},
            headers=_admin_auth(),
        )
        assert broadcast.json() == {"delivered": 1}
        system = ws.receive_json()
        assert system["type"] == "system_notification"
        assert system["data"]["title"] == "Maintenance"


def test_websocket_accepts_authorization_header(client: TestClient) -> None:
    with client.websocket_connect("/notifications/ws", headers=_auth(OWNER)) as ws:
        assert ws.receive_json()["type"] == "unread_count"


def test_system_and_online_routes_require_admin(client: TestClient) -> None:
    forbidden = client.post(
        "/notifications/system",
        json={"title": "Maintenance", "message": "Back soon"},
        headers=_auth(ACTOR),
    )
    assert forbidden.status_code == 403
    assert forbidden.json()["detail"] == "Not authorized"
    assert client.get("/notifications/online", headers=_auth(ACTOR)).status_code == 403
    assert client.get("/notifications/online").status_code == 401

    flagged = client.get("/notifications/online", headers=_admin_auth(is_admin=True))
    assert flagged.json() == {"count": 0, "users": []}

    with client.websocket_connect("/notifications/ws", headers=_auth(OWNER)) as ws:
        ws.receive_json()
        delivered = client.post(
            "/notifications/system",
            json={"title": "Maintenance", "message": "Back soon"},
            headers=_auth(ACTOR),
        )
        assert delivered.status_code == 403
        ws.send_json({"type": "ping"})
        assert ws.receive_json()["type"] == "pong"


def test_websocket_binary_frame_gets_error_event(client: TestClient) -> None:
    with client.websocket_connect("/notifications/ws", headers=_auth(OWNER)) as ws:
        assert ws.receive_json()["type"] == "unread_count"

        ws.send_bytes(b"\x00\x01")
        assert ws.receive_json() == {"type": "error", "data": {"message": "Invalid message"}}

        ws.send_text("not json")
        assert ws.receive_json()["data"] == {"message": "Invalid message"}

        ws.send_json({"type": "ping"})
        assert ws.receive_json()["type"] == "pong"
