"""Operation WebSocket gateway.

Accepts browser connections, checks the ``token`` query parameter against the
identity service, registers the session and dispatches the frames the client
sends afterwards.
"""

from __future__ import annotations

import contextlib
import json
from collections.abc import AsyncIterator
from http import HTTPStatus
from typing import Any
from urllib.parse import parse_qs, urlsplit

import structlog
from websockets.asyncio.server import Server, ServerConnection
from websockets.asyncio.server import serve as websockets_serve
from websockets.exceptions import ConnectionClosed
from websockets.http11 import Request, Response

from dootask_auth import Identity, IdentityVerifier

from .manager import ConnectionManager
from .socket import ClientSocket, WebsocketsClientSocket
from .types import (
    CLOSE_AUTH_FAILED,
    CLOSE_MISSING_TOKEN,
    FrameType,
    connected_frame,
    pong_frame,
)

DEFAULT_PATH = "/ws"
DEFAULT_SESSION_TTL_SECONDS = 3600
HEALTH_PATHS = frozenset({"/healthz", "/health"})


def extract_token(request_path: str) -> str | None:
    """Return the ``token`` query parameter of a request path, if any."""
    values = parse_qs(urlsplit(request_path).query).get("token")
    if not values or not values[0].strip():
        return None
    return values[0].strip()


class ConnectionGateway:
    """Accept loop and authentication gate in front of the ConnectionManager."""

    def __init__(
        self,
        manager: ConnectionManager,
        verifier: IdentityVerifier,
        *,
        path: str = DEFAULT_PATH,
        session_ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
        logger: Any | None = None,
    ) -> None:
        self._manager = manager
        self._verifier = verifier
        self._path = path
        self._session_ttl = session_ttl_seconds
        self._logger = logger or structlog.get_logger(__name__)

    @property
    def manager(self) -> ConnectionManager:
        return self._manager

    @contextlib.asynccontextmanager
    async def serve(self, host: str = "0.0.0.0", port: int = 7000) -> AsyncIterator[Server]:
        """Run the WebSocket server for the duration of the context."""
        async with websockets_serve(
            self.handle_connection,
            host,
            port,
            process_request=self.process_request,
        ) as server:
            self._logger.info(
                "Operation WebSocket server started", host=host, port=port, path=self._path
            )
            try:
                yield server
            finally:
                self._manager.close()
                self._logger.info("Operation WebSocket server stopped")

    def process_request(self, connection: ServerConnection, request: Request) -> Response | None:
        """Answer health checks and refuse upgrades on other paths."""
        path = urlsplit(request.path).path
        if path in HEALTH_PATHS:
            return connection.respond(HTTPStatus.OK, "ok\n")
        if path != self._path:
            return connection.respond(HTTPStatus.NOT_FOUND, "Not found\n")
        return None

    async def handle_connection(self, connection: ServerConnection) -> None:
        socket = WebsocketsClientSocket(connection)
        request_path = connection.request.path if connection.request is not None else "/"
        session_id = await self.authenticate(socket, request_path)
        if session_id is None:
            return
        try:
            async for message in connection:
                await self.handle_message(session_id, message)
        except ConnectionClosed as e:
            self._logger.error("WebSocket error", session_id=session_id, error=str(e))
        finally:
            socket.mark_closed()

    async def authenticate(self, socket: ClientSocket, request_path: str) -> str | None:
        """Verify the connection's token and register it.

        Returns the new session id, or None after closing a rejected socket.
        """
        token = extract_token(request_path)
        if token is None:
            self._logger.warning("WebSocket connection rejected: missing token")
            await socket.close(CLOSE_MISSING_TOKEN, "missing token")
            return None

        identity = await self._verify(token)
        if identity is None:
            self._logger.warning("WebSocket connection rejected: invalid token")
            await socket.close(CLOSE_AUTH_FAILED, "authentication failed")
            return None

        session_id = self._manager.register(socket, identity.user_id, token)
        session = self._manager.get(session_id)
        if session is None:
            self._logger.warning(
                "WebSocket connection closed during registration", session_id=session_id
            )
            return None
        expires_at_ms = int((session.created_at.timestamp() + self._session_ttl) * 1000)
        try:
            await socket.send_frame(connected_frame(session_id, expires_at_ms))
        except Exception as e:
            self._logger.error(
                "Failed to send connected frame", session_id=session_id, error=str(e)
            )
            socket.mark_closed()
            return None
        return session_id

    async def _verify(self, token: str) -> Identity | None:
        try:
            return await self._verifier.verify(token)
        except Exception as e:
            self._logger.error("Token verification failed", error=str(e))
            return None

    async def handle_message(self, session_id: str, data: str | bytes) -> None:
        """Dispatch one frame received from ``session_id``."""
        try:
            msg = json.loads(data)
        except (ValueError, UnicodeDecodeError, RecursionError) as e:
            self._logger.error(
                "Failed to parse WebSocket message", session_id=session_id, error=str(e)
            )
            return
        if not isinstance(msg, dict):
            self._logger.error(
                "Failed to parse WebSocket message",
                session_id=session_id,
                error="frame is not a JSON object",
            )
            return

        msg_type = msg.get("type")
        if msg_type == FrameType.RESPONSE.value:
            self._manager.handle_response(msg)
        elif msg_type == FrameType.PING.value:
            await self._send_pong(session_id)
        else:
            self._logger.warning("Unknown message type", session_id=session_id, msg_type=msg_type)

    async def _send_pong(self, session_id: str) -> None:
        session = self._manager.get(session_id)
        if session is None or not session.socket.writable:
            return
        try:
            await session.socket.send_frame(pong_frame())
        except Exception as e:
            self._logger.error("Failed to send pong", session_id=session_id, error=str(e))

    def stats(self) -> dict[str, int]:
        return self._manager.stats()
