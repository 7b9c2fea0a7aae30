"""Connection registry for notification websockets."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class SessionHandle(Protocol):
    """The part of a websocket the registry needs."""

    async def send_json(self, data: Any) -> None: ...

    async def close(self, code: int = 1000, reason: str | None = None) -> None: ...


class ConnectionRegistry:
    """Map each authenticated user email to its single live websocket.

    A new connection for an email replaces the previous mapping. Every mutation
    of the map happens under an ``asyncio.Lock`` because connects and
    disconnects for the same user may interleave.
    """

    def __init__(self) -> None:
        self._connections: dict[str, SessionHandle] = {}
        self._lock = asyncio.Lock()

    async def register(self, email: str, websocket: SessionHandle) -> SessionHandle | None:
        """Register ``websocket`` for ``email`` and return the session it replaced."""

        async with self._lock:
            previous = self._connections.get(email)
            self._connections[email] = websocket
        if previous is not None and previous is not websocket:
            logger.info("Replaced existing realtime session for %s", email)
        else:
            logger.info("User connected: %s", email)
        return previous

    async def unregister(self, email: str, websocket: SessionHandle) -> bool:
        """Remove the mapping for ``email`` if it still points at ``websocket``."""

        async with self._lock:
            if self._connections.get(email) is not websocket:
                return False
            del self._connections[email]
        logger.info("User disconnected: %s", email)
        return True

    async def disconnect_user(self, email: str, *, code: int = 1000) -> bool:
        """Close the live session of ``email`` and drop its mapping."""

        async with self._lock:
            websocket = self._connections.pop(email, None)
        if websocket is None:
            return False
        try:
            await websocket.close(code=code)
        except Exception:  # pragma: no cover - socket already gone
            logger.debug("Websocket for %s was already closed", email)
        logger.info("User forcibly disconnected: %s", email)
        return True

    async def push_to_user(self, email: str, event: str, payload: Any) -> bool:
        """Send ``event`` to ``email``; return ``False`` when the user is offline."""

        websocket = self._connections.get(email)
        if websocket is None:
            return False
        try:
            await websocket.send_json({"type": event, "data": payload})
        except Exception:
            logger.warning("Dropping broken realtime session for %s", email, exc_info=True)
            await self.unregister(email, websocket)
            return False
        return True

    async def broadcast(self, event: str, payload: Any) -> int:
        """Send ``event`` to every connected user and return how many received it."""

        delivered = 0
        for email in self.online_users():
            if await self.push_to_user(email, event, payload):
                delivered += 1
        logger.info("Broadcast %s to %s connected users", event, delivered)
        return delivered

    def is_online(self, email: str) -> bool:
        return email in self._connections

    def online_users(self) -> list[str]:
        return list(self._connections)

    def online_count(self) -> int:
        return len(self._connections)


__all__ = ["ConnectionRegistry", "SessionHandle"]
