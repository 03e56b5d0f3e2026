"""Operation bridge types and wire frames."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .socket import ClientSocket

CLOSE_MISSING_TOKEN = 4001
CLOSE_AUTH_FAILED = 4002


class ConnectionState(Enum):
    """Client socket state."""

    OPEN = auto()
    CLOSING = auto()
    CLOSED = auto()


class FrameType(str, Enum):
    """Value of the ``type`` discriminator of a frame."""

    CONNECTED = "connected"
    REQUEST = "request"
    RESPONSE = "response"
    PING = "ping"
    PONG = "pong"


@dataclass
class Session:
    """A registered client connection."""

    id: str
    user_id: int
    token: str
    socket: ClientSocket
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


def connected_frame(session_id: str, expires_at_ms: int) -> dict[str, Any]:
    return {
        "type": FrameType.CONNECTED.value,
        "session_id": session_id,
        "expires_at": expires_at_ms,
    }


def request_frame(request_id: str, action: str, payload: Any) -> dict[str, Any]:
    return {
        "id": request_id,
        "type": FrameType.REQUEST.value,
        "action": action,
        "payload": payload,
    }


def pong_frame() -> dict[str, Any]:
    return {"type": FrameType.PONG.value}
