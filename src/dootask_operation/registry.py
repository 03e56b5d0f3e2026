"""Session registry."""

from __future__ import annotations

import uuid
from typing import Any, Callable

import structlog

from .socket import ClientSocket
from .types import Session

RemovalListener = Callable[[Session], None]


def generate_session_id() -> str:
    """UUID v4 形式のセッションIDを生成する。"""
    return str(uuid.uuid4())


class SessionRegistry:
    """Live client connections keyed by session id.

    Entries are removed when their socket closes. A removed session id is
    never handed out again.
    """

    def __init__(
        self,
        on_removed: RemovalListener | None = None,
        logger: Any | None = None,
    ) -> None:
        self._sessions: dict[str, Session] = {}
        self._on_removed = on_removed
        self._logger = logger or structlog.get_logger(__name__)

    def register(self, socket: ClientSocket, user_id: int, token: str) -> str:
        """Store a new session for ``socket`` and return its id."""
        session_id = generate_session_id()
        while session_id in self._sessions:
            session_id = generate_session_id()
        self._sessions[session_id] = Session(
            id=session_id,
            user_id=user_id,
            token=token,
            socket=socket,
        )
        socket.on_close(lambda: self._handle_close(session_id))
        self._logger.info(
            "WebSocket connection registered", session_id=session_id, user_id=user_id
        )
        return session_id

    def _handle_close(self, session_id: str) -> None:
        self._logger.info("WebSocket connection closed", session_id=session_id)
        self.unregister(session_id)

    def has(self, session_id: str) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def unregister(self, session_id: str) -> Session | None:
        """Remove a session. Unknown ids are ignored."""
        session = self._sessions.pop(session_id, None)
        if session is not None and self._on_removed is not None:
            self._on_removed(session)
        return session

    def sessions_for_user(self, user_id: int) -> list[Session]:
        return [s for s in self._sessions.values() if s.user_id == user_id]

    def __len__(self) -> int:
        return len(self._sessions)

    def stats(self) -> dict[str, int]:
        return {"connection_count": len(self._sessions)}
