"""
Presence registry and realtime gateway.

Binds Socket.IO connections to user identities and pushes server events to a
user's live connection.

Lifecycle:
- ``init(app)`` creates the Socket.IO server and wraps the HTTP ASGI app
- ``start()`` installs the handshake gate and the event handlers
- ``emit_to_user(...)`` is used by HTTP handlers to push device updates

Client events (acknowledged through the client callback):
- ``addUser(user_id)``: bind this connection to ``user_id``
- ``removeUser(user_id)``: clear the user's connection handle
- ``checkSocket(user_id)``: re-sync the stored handle with this connection
- ``disconnect``: clear whichever user is bound to this connection

Handshake auth payload: ``{"token": "<jwt>"}`` or ``{"token": "Bearer <jwt>"}``.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

import socketio
from socketio import exceptions

from plantpal.auth.jwt import strip_bearer, verify_token
from plantpal.errors import (
    DeliveryError,
    PresenceError,
    UninitializedGatewayError,
    UserNotFoundError,
)
from plantpal.realtime.acks import Ack
from plantpal.services.presence_store import PresenceRecord, PresenceStore

logger = logging.getLogger(__name__)

ACCESS_TOKEN_REQUIRED = "Please provide the access token."
UNEXPECTED_ERROR = "Internal server error"

Verifier = Callable[[str], Union[dict, Awaitable[dict]]]


class PresenceGateway:
    """One instance per process, created at startup and passed to consumers."""

    def __init__(
        self,
        store: PresenceStore,
        verifier: Verifier = verify_token,
        *,
        cors_origins: Union[str, list[str]] = "*",
        socketio_path: str = "socket.io",
        handshake_timeout: Optional[float] = None,
    ):
        self.store = store
        self.verifier = verifier
        self.cors_origins = cors_origins
        self.socketio_path = socketio_path
        self.handshake_timeout = handshake_timeout
        self._sio: Optional[socketio.AsyncServer] = None

    @property
    def server(self) -> socketio.AsyncServer:
        if self._sio is None:
            raise UninitializedGatewayError()
        return self._sio

    @property
    def is_initialized(self) -> bool:
        return self._sio is not None

    def init(self, app) -> socketio.ASGIApp:
        """Create the Socket.IO server and mount it in front of ``app``."""
        if self._sio is not None:
            logger.warning("Gateway initialized twice, replacing the existing Socket.IO server")
        self._sio = socketio.AsyncServer(
            async_mode="asgi",
            cors_allowed_origins=self.cors_origins,
            logger=False,
            engineio_logger=False,
        )
        return socketio.ASGIApp(self._sio, other_asgi_app=app, socketio_path=self.socketio_path)

    def start(self) -> None:
        """Install the handshake gate and connection event handlers."""
        sio = self.server
        sio.on("connect", self.authenticate)
        sio.on("addUser", self.add_user)
        sio.on("removeUser", self.remove_user)
        sio.on("checkSocket", self.check_socket)
        sio.on("disconnect", self.handle_disconnect)
        logger.info(f"Realtime gateway listening on /{self.socketio_path}")

    # ============================================================
    # Handshake gate
    # ============================================================

    async def authenticate(self, sid: str, environ: dict, auth: Any = None) -> None:
        """Reject the connection unless it carries a valid access token."""
        token = auth.get("token") if isinstance(auth, dict) else None
        if not isinstance(token, str) or not token:
            raise exceptions.ConnectionRefusedError(ACCESS_TOKEN_REQUIRED)

        try:
            claim = await self._verify(strip_bearer(token))
        except Exception as e:
            logger.debug(f"Handshake rejected for {sid}: {e!r}")
            raise exceptions.ConnectionRefusedError(ACCESS_TOKEN_REQUIRED) from e

        if not isinstance(claim, dict) or claim.get("user_id") is None:
            raise exceptions.ConnectionRefusedError(ACCESS_TOKEN_REQUIRED)

        await self.server.save_session(sid, {"user_id": claim["user_id"], "claim": claim})

    async def _verify(self, token: str) -> dict:
        result = self.verifier(token)
        if inspect.isawaitable(result):
            result = await asyncio.wait_for(result, self.handshake_timeout)
        return result

    # ============================================================
    # Client events
    # ============================================================

    async def add_user(self, sid: str, user_id: Any = None) -> dict:
        try:
            user_id = _parse_user_id(user_id)
            user = await self._require_user(user_id)

            if user.socket_id != sid:
                await self.store.update_user_socket_id(user_id, sid)

            await self.server.enter_room(sid, str(user_id))
            return Ack.ok(f"User {user_id} added", user_id).to_payload()
        except Exception as e:
            return _failed("addUser", e)

    async def remove_user(self, sid: str, user_id: Any = None) -> dict:
        try:
            user_id = _parse_user_id(user_id)
            user = await self._require_user(user_id)

            # Any authenticated connection may clear any user's handle.
            if user.socket_id is not None:
                await self.store.update_user_socket_id(user_id, None)

            return Ack.ok(f"User {user_id} removed from connected users", user_id).to_payload()
        except Exception as e:
            return _failed("removeUser", e)

    async def check_socket(self, sid: str, user_id: Any = None) -> dict:
        try:
            user_id = _parse_user_id(user_id)
            user = await self._require_user(user_id)

            if user.socket_id != sid:
                await self.store.update_user_socket_id(user_id, sid)
                return Ack.ok("Socket was updated").to_payload()

            return Ack.ok("Socket is up to date").to_payload()
        except Exception as e:
            return _failed("checkSocket", e)

    async def handle_disconnect(self, sid: str, reason: Any = None) -> None:
        try:
            user = await self.store.get_user_by_socket(sid)
            if user:
                await self.store.update_user_socket_id(user.user_id, None)
                logger.info(f"User {user.user_id} went offline ({sid})")
        except Exception:
            logger.exception(f"Error during disconnect of {sid}")

    async def _require_user(self, user_id: int) -> PresenceRecord:
        user = await self.store.get_user_by_id(user_id)
        if not user:
            raise UserNotFoundError()
        return user

    # ============================================================
    # Server push
    # ============================================================

    async def emit_to_user(self, user_id: int, event: str, data: Any) -> bool:
        """Push ``event`` to the user's live connection.

        Best effort: returns False and logs when the user is unknown, offline
        or the send fails. Never waits for a client acknowledgment.
        """
        sio = self.server

        try:
            user = await self.store.get_user_by_id(user_id)
            if not user or not user.is_online:
                raise DeliveryError(f"User {user_id} is not connected")

            await sio.emit(event, data, to=user.socket_id)
        except DeliveryError as e:
            logger.warning(f"Error emitting {event} to user {user_id}: {e}")
            return False
        except Exception:
            logger.exception(f"Error emitting {event} to user {user_id}")
            return False

        return True


def _parse_user_id(value: Any) -> int:
    if isinstance(value, bool):
        raise PresenceError("Invalid user id")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise PresenceError("Invalid user id") from None


def _failed(event: str, error: Exception) -> dict:
    if isinstance(error, PresenceError):
        logger.info(f"{event} failed: {error}")
        return Ack.fail(str(error) or type(error).__name__).to_payload()
    logger.exception(f"{event} failed")
    return Ack.fail(UNEXPECTED_ERROR).to_payload()
