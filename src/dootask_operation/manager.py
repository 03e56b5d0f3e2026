"""Connection manager: session registry plus request/response correlation."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

import structlog

from .exceptions import OperationError, OperationErrorCodes
from .pending import PendingRequest, PendingRequestTable, generate_request_id
from .registry import SessionRegistry
from .socket import ClientSocket
from .types import Session, request_frame

DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0


class ConnectionManager:
    """Sends requests to connected clients and waits for their responses.

    Everything runs on one event loop, so the session and pending tables are
    only touched between awaits and need no lock.
    """

    def __init__(
        self,
        request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        *,
        reject_pending_on_disconnect: bool = True,
        logger: Any | None = None,
    ) -> None:
        if request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be positive")
        self._logger = logger or structlog.get_logger(__name__)
        self._request_timeout = request_timeout_seconds
        self._reject_pending_on_disconnect = reject_pending_on_disconnect
        self._pending = PendingRequestTable()
        self._registry = SessionRegistry(
            on_removed=self._handle_session_removed, logger=self._logger
        )

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    @property
    def request_timeout_seconds(self) -> float:
        return self._request_timeout

    def register(self, socket: ClientSocket, user_id: int, token: str) -> str:
        return self._registry.register(socket, user_id, token)

    def has(self, session_id: str) -> bool:
        return self._registry.has(session_id)

    def get(self, session_id: str) -> Session | None:
        return self._registry.get(session_id)

    def unregister(self, session_id: str) -> None:
        self._registry.unregister(session_id)

    async def send_request(self, session_id: str, action: str, payload: Any) -> Any:
        """Send ``action`` to the client of ``session_id`` and return its data.

        Raises:
            OperationError: NOT_CONNECTED / DISCONNECTED before anything is
                sent, SEND_FAILED if the write fails, TIMEOUT if the client
                does not answer in time, REMOTE_FAILURE if it answers with
                ``success: false``.
        """
        session = self._registry.get(session_id)
        if session is None:
            raise OperationError(
                code=OperationErrorCodes.NOT_CONNECTED,
                message="Client not connected",
            )
        if not session.socket.writable:
            raise OperationError(
                code=OperationErrorCodes.DISCONNECTED,
                message="WebSocket connection is closed",
            )

        loop = asyncio.get_running_loop()
        request_id = generate_request_id()
        while request_id in self._pending:
            request_id = generate_request_id()

        pending = PendingRequest(
            id=request_id,
            session_id=session_id,
            action=action,
            future=loop.create_future(),
        )
        pending.timer = loop.call_later(self._request_timeout, self._expire, request_id)
        pending.future.add_done_callback(lambda f: self._discard_cancelled(request_id, f))
        self._pending.add(pending)

        try:
            await session.socket.send_frame(request_frame(request_id, action, payload))
        except asyncio.CancelledError:
            self._settle_cancelled(request_id)
            raise
        except Exception as e:
            self._settle_error(
                request_id,
                OperationError(
                    code=OperationErrorCodes.SEND_FAILED,
                    message=f"Failed to send message: {e}",
                    cause=e,
                ),
            )
        else:
            self._logger.debug(
                "Request sent to client",
                session_id=session_id,
                request_id=request_id,
                action=action,
            )

        return await pending.future

    def handle_response(self, frame: Mapping[str, Any]) -> None:
        """Settle the pending request that ``frame`` answers.

        Responses for unknown, finished or timed-out requests are logged and
        dropped.
        """
        request_id = frame.get("id")
        pending = self._pending.take(request_id) if isinstance(request_id, str) else None
        if pending is None:
            self._logger.warning("Received response for unknown request", request_id=request_id)
            return

        success = bool(frame.get("success"))
        if success:
            pending.resolve(frame.get("data"))
        else:
            pending.reject(
                OperationError(
                    code=OperationErrorCodes.REMOTE_FAILURE,
                    message=str(frame.get("error") or "Operation failed"),
                )
            )
        self._logger.debug("Response handled", request_id=request_id, success=success)

    def _expire(self, request_id: str) -> None:
        pending = self._pending.take(request_id)
        if pending is None:
            return
        pending.timer = None
        self._logger.warning(
            "Request timed out",
            session_id=pending.session_id,
            request_id=request_id,
            action=pending.action,
        )
        pending.reject(
            OperationError(code=OperationErrorCodes.TIMEOUT, message="Request timed out")
        )

    def _settle_error(self, request_id: str, error: OperationError) -> None:
        pending = self._pending.take(request_id)
        if pending is not None:
            pending.reject(error)

    def _settle_cancelled(self, request_id: str) -> None:
        pending = self._pending.take(request_id)
        if pending is not None:
            pending.disarm()
            pending.future.cancel()
            self._logger.debug("Request cancelled while sending", request_id=request_id)

    def _discard_cancelled(self, request_id: str, future: asyncio.Future[Any]) -> None:
        if not future.cancelled():
            return
        pending = self._pending.take(request_id)
        if pending is not None:
            pending.disarm()
            self._logger.debug("Pending request cancelled by caller", request_id=request_id)

    def _handle_session_removed(self, session: Session) -> None:
        if not self._reject_pending_on_disconnect:
            return
        for pending in self._pending.take_for_session(session.id):
            pending.reject(
                OperationError(
                    code=OperationErrorCodes.DISCONNECTED,
                    message="WebSocket connection closed before the client responded",
                )
            )

    def close(self) -> None:
        """Fail every pending request. Sessions are left registered."""
        for pending in self._pending.take_all():
            pending.reject(
                OperationError(
                    code=OperationErrorCodes.DISCONNECTED,
                    message="Connection manager closed",
                )
            )

    def stats(self) -> dict[str, int]:
        return {
            **self._registry.stats(),
            "pending_request_count": len(self._pending),
        }
