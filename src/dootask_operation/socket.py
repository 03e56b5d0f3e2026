"""Client socket abstraction.

A :class:`ClientSocket` is owned by exactly one session. Callers can only ask
whether it is writable, send a frame, close it, and observe its closing.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Callable

import structlog
from websockets.asyncio.server import ServerConnection
from websockets.protocol import State

from .types import ConnectionState

logger = structlog.get_logger(__name__)

CloseCallback = Callable[[], None]


def encode_frame(frame: dict[str, Any]) -> str:
    return json.dumps(frame, ensure_ascii=False)


class ClientSocket(ABC):
    """Abstract client socket."""

    def __init__(self) -> None:
        self._close_callbacks: list[CloseCallback] = []
        self._closed_notified = False

    @property
    @abstractmethod
    def state(self) -> ConnectionState:
        ...

    @property
    def writable(self) -> bool:
        return self.state is ConnectionState.OPEN

    @abstractmethod
    async def send_frame(self, frame: dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None:
        ...

    def on_close(self, callback: CloseCallback) -> None:
        """Register a callback run once when the socket closes."""
        if self._closed_notified:
            callback()
            return
        self._close_callbacks.append(callback)

    def mark_closed(self) -> None:
        """Run the close callbacks. Later calls do nothing."""
        if self._closed_notified:
            return
        self._closed_notified = True
        callbacks, self._close_callbacks = self._close_callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Close callback failed")


class WebsocketsClientSocket(ClientSocket):
    """ClientSocket backed by a ``websockets`` server connection."""

    def __init__(self, connection: ServerConnection) -> None:
        super().__init__()
        self._connection = connection

    @property
    def connection(self) -> ServerConnection:
        return self._connection

    @property
    def state(self) -> ConnectionState:
        state = self._connection.state
        if state is State.OPEN:
            return ConnectionState.OPEN
        if state is State.CLOSING:
            return ConnectionState.CLOSING
        if state is State.CLOSED:
            return ConnectionState.CLOSED
        # CONNECTING: the handshake has not completed yet.
        return ConnectionState.CLOSING

    async def send_frame(self, frame: dict[str, Any]) -> None:
        await self._connection.send(encode_frame(frame))

    async def close(self, code: int = 1000, reason: str = "") -> None:
        await self._connection.close(code, reason)


class InMemoryClientSocket(ClientSocket):
    """In-memory client socket for testing."""

    def __init__(self) -> None:
        super().__init__()
        self._state = ConnectionState.OPEN
        self._sent_frames: list[dict[str, Any]] = []
        self._send_error: Exception | None = None
        self.close_code: int | None = None
        self.close_reason: str | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    async def send_frame(self, frame: dict[str, Any]) -> None:
        if self._send_error is not None:
            raise self._send_error
        if self._state is not ConnectionState.OPEN:
            raise ConnectionError("Socket is not open")
        # Round-trip through JSON so tests see what a client would receive.
        self._sent_frames.append(json.loads(encode_frame(frame)))

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.close_code = code
        self.close_reason = reason
        self._state = ConnectionState.CLOSED
        self.mark_closed()

    def fail_sends(self, error: Exception) -> None:
        self._send_error = error

    def set_state(self, state: ConnectionState) -> None:
        self._state = state

    def get_sent_frames(self) -> list[dict[str, Any]]:
        return list(self._sent_frames)
