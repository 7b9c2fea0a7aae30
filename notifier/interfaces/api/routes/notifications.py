"""Endpoints and websocket handler for realtime notifications."""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)

from notifier.application.notifications import NotificationEngine
from notifier.domain.entities import NotificationSourceTag, ReadReceipt
from notifier.infrastructure.notifications import (
    ConnectionRegistry,
    NotificationPublisher,
    normalize,
    serialize_notification,
    serialize_page,
)
from notifier.infrastructure.security import (
    CredentialsError,
    MissingCredentialsError,
    authenticate_token,
    extract_bearer_token,
)
from notifier.interfaces.api.dependencies import (
    get_connection_registry,
    get_current_email,
    get_notification_engine,
    get_publisher,
    require_admin,
)
from notifier.interfaces.api.schemas import (
    MarkAllReadResponse,
    MarkReadRequest,
    MarkReadResponse,
    NotificationEventCreate,
    NotificationEventResult,
    NotificationPageRead,
    OnlineUsersRead,
    PreferenceRead,
    PreferenceUpdate,
    SystemNotificationRequest,
    SystemNotificationResponse,
    UnreadCountRead,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])

POLICY_VIOLATION = 1008
MISSING_TOKEN_REASON = "Authentication error: No token provided"
INVALID_TOKEN_REASON = "Authentication error: Invalid token"


def _receipt_to_schema(receipt: ReadReceipt) -> MarkReadResponse:
    return MarkReadResponse(
        notification_id=receipt.notification_id,
        user_email=receipt.user_email,
        is_read=receipt.is_read,
        read_at=receipt.read_at,
        fallback=receipt.fallback,
    )


async def _refresh_unread_count(
    engine: NotificationEngine, publisher: NotificationPublisher, email: str
) -> int:
    count = await engine.get_unread_count(email)
    await publisher.send_unread_count(email, count)
    return count


@router.get("/", response_model=NotificationPageRead)
async def list_notifications(
    response: Response,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = False,
    email: str = Depends(get_current_email),
    engine: NotificationEngine = Depends(get_notification_engine),
) -> dict[str, Any]:
    """Return one page of notifications for the authenticated user."""

    result = await engine.get_user_notifications(
        email, page=page, limit=limit, unread_only=unread_only
    )
    if result.source is not NotificationSourceTag.PRIMARY:
        response.headers["X-Notification-Source"] = result.source.value
        if result.fallback_reason:
            response.headers["X-Fallback-Reason"] = result.fallback_reason
    return serialize_page(result)


@router.post("/events", response_model=NotificationEventResult)
async def submit_notification_event(
    payload: NotificationEventCreate,
    email: str = Depends(get_current_email),
    engine: NotificationEngine = Depends(get_notification_engine),
) -> NotificationEventResult:
    """Run the creation pipeline for an action taken by the authenticated user."""

    result = await engine.create(
        recipient_email=payload.recipient_email,
        actor_email=email,
        action_type=payload.action_type,
        media_id=payload.media_id,
        media_title=payload.media_title,
        message=payload.message,
        metadata=payload.metadata,
        priority=payload.priority,
    )
    return NotificationEventResult(
        created=result.created,
        status=result.status.value,
        reason=result.reason.value if result.reason else None,
        detail=result.detail,
        degraded=result.degraded,
        notification=(
            serialize_notification(result.notification) if result.notification else None
        ),
    )


@router.get("/unread-count", response_model=UnreadCountRead)
async def unread_count(
    email: str = Depends(get_current_email),
    engine: NotificationEngine = Depends(get_notification_engine),
) -> UnreadCountRead:
    return UnreadCountRead(count=await engine.get_unread_count(email))


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_notifications_read(
    email: str = Depends(get_current_email),
    engine: NotificationEngine = Depends(get_notification_engine),
    publisher: NotificationPublisher = Depends(get_publisher),
) -> MarkAllReadResponse:
    updated = await engine.mark_all_as_read(email)
    await _refresh_unread_count(engine, publisher, email)
    return MarkAllReadResponse(updated=updated)


@router.post("/{notification_id}/read", response_model=MarkReadResponse)
async def mark_notification_read(
    notification_id: str,
    payload: MarkReadRequest | None = None,
    email: str = Depends(get_current_email),
    engine: NotificationEngine = Depends(get_notification_engine),
    publisher: NotificationPublisher = Depends(get_publisher),
) -> MarkReadResponse:
    """Mark one notification as read for the authenticated user."""

    channel = (payload or MarkReadRequest()).channel
    receipt = await engine.mark_as_read(notification_id, email, channel)
    if receipt is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found"
        )
    await _refresh_unread_count(engine, publisher, email)
    return _receipt_to_schema(receipt)


@router.get("/preferences", response_model=PreferenceRead)
async def get_preferences(
    email: str = Depends(get_current_email),
    engine: NotificationEngine = Depends(get_notification_engine),
) -> PreferenceRead:
    return PreferenceRead.model_validate(await engine.get_user_preferences(email))


@router.put("/preferences", response_model=PreferenceRead)
async def update_preferences(
    payload: PreferenceUpdate,
    email: str = Depends(get_current_email),
    engine: NotificationEngine = Depends(get_notification_engine),
) -> PreferenceRead:
    """Apply a partial update to the authenticated user's preferences."""

    try:
        preference = await engine.update_user_preferences(email, payload.changes())
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return PreferenceRead.model_validate(preference)


@router.post("/system", response_model=SystemNotificationResponse)
async def send_system_notification(
    payload: SystemNotificationRequest,
    email: str = Depends(require_admin),
    engine: NotificationEngine = Depends(get_notification_engine),
    publisher: NotificationPublisher = Depends(get_publisher),
) -> SystemNotificationResponse:
    """Broadcast an announcement to every connected user."""

    delivered = await publisher.broadcast_system(
        {
            **payload.model_dump(mode="json"),
            "sender_email": email,
            "created_at": engine.now(),
        }
    )
    logger.info("System notification %r sent by %s", payload.title, email)
    return SystemNotificationResponse(delivered=delivered)


@router.get("/online", response_model=OnlineUsersRead)
async def online_users(
    _: str = Depends(require_admin),
    registry: ConnectionRegistry = Depends(get_connection_registry),
) -> OnlineUsersRead:
    users = registry.online_users()
    return OnlineUsersRead(count=len(users), users=users)


async def _send_event(websocket: WebSocket, event: str, data: Any = None) -> None:
    await websocket.send_json({"type": event, "data": normalize(data)})


async def _handle_client_event(
    websocket: WebSocket,
    email: str,
    event: str | None,
    data: dict[str, Any],
    engine: NotificationEngine,
    publisher: NotificationPublisher,
) -> None:
    if event == "ping":
        await _send_event(websocket, "pong")
        return

    if event == "get_notifications":
        page = await engine.get_user_notifications(
            email,
            page=int(data.get("page") or 1),
            limit=int(data.get("limit") or 20),
        )
        await _send_event(websocket, "notifications_list", serialize_page(page))
        return

    if event == "mark_notification_read":
        notification_id = data.get("notificationId")
        if not notification_id:
            await _send_event(websocket, "error", {"message": "notificationId is required"})
            return
        receipt = await engine.mark_as_read(
            str(notification_id), email, data.get("channel") or "in_app"
        )
        if receipt is None:
            await _send_event(websocket, "error", {"message": "Notification not found"})
            return
        await _send_event(
            websocket, "notification_marked_read", {"notificationId": receipt.notification_id}
        )
        await _refresh_unread_count(engine, publisher, email)
        return

    if event == "mark_all_read":
        updated = await engine.mark_all_as_read(email)
        await _send_event(websocket, "all_notifications_marked_read", {"count": updated})
        await _refresh_unread_count(engine, publisher, email)
        return

    if event == "get_notification_preferences":
        preference = await engine.get_user_preferences(email)
        await _send_event(websocket, "notification_preferences", preference)
        return

    if event == "update_notification_preferences":
        try:
            preference = await engine.update_user_preferences(email, data)
        except ValueError as exc:
            await _send_event(websocket, "error", {"message": str(exc)})
            return
        await _send_event(websocket, "notification_preferences_updated", preference)
        return

    await _send_event(websocket, "error", {"message": f"Unknown event: {event}"})


async def _reject_handshake(websocket: WebSocket, reason: str) -> None:
    await websocket.accept()
    await websocket.close(code=POLICY_VIOLATION, reason=reason)


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notifications to the authenticated user.

    Rejected handshakes are accepted and then closed with 1008 so clients
    receive the close reason; no event is exchanged on such a connection.
    """

    token = extract_bearer_token(
        auth_token=websocket.query_params.get("token"), headers=websocket.headers
    )
    try:
        email = authenticate_token(token)
    except MissingCredentialsError:
        logger.info("Rejected websocket connection without token")
        await _reject_handshake(websocket, MISSING_TOKEN_REASON)
        return
    except CredentialsError as exc:
        logger.info("Rejected websocket connection: %s", exc)
        await _reject_handshake(websocket, INVALID_TOKEN_REASON)
        return

    engine: NotificationEngine = websocket.app.state.engine
    registry: ConnectionRegistry = websocket.app.state.registry
    publisher: NotificationPublisher = websocket.app.state.publisher

    await websocket.accept()
    await registry.register(email, websocket)
    try:
        await publisher.send_unread_count(email, await engine.get_unread_count(email))
        while True:
            try:
                message = await websocket.receive_json()
            except (json.JSONDecodeError, KeyError):
                # KeyError: binary frames carry no text payload
                await _send_event(websocket, "error", {"message": "Invalid message"})
                continue

            if not isinstance(message, dict):
                await _send_event(websocket, "error", {"message": "Invalid message"})
                continue

            data = message.get("data")
            try:
                await _handle_client_event(
                    websocket,
                    email,
                    message.get("type"),
                    data if isinstance(data, dict) else {},
                    engine,
                    publisher,
                )
            except WebSocketDisconnect:
                raise
            except Exception:
                logger.exception("Error handling %s event for %s", message.get("type"), email)
                await _send_event(websocket, "error", {"message": "Internal error"})
    except WebSocketDisconnect:
        logger.debug("Websocket closed by %s", email)
    finally:
        await registry.unregister(email, websocket)


__all__ = ["router"]
