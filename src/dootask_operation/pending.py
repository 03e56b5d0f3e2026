"""Pending request table."""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def generate_request_id() -> str:
    """UUID v4 形式のリクエストIDを生成する。"""
    return str(uuid.uuid4())


@dataclass
class PendingRequest:
    """A request frame sent to a client and not yet answered."""

    id: str
    session_id: str
    action: str
    future: asyncio.Future[Any]
    timer: asyncio.TimerHandle | None = None
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def resolve(self, result: Any) -> bool:
        """Disarm the timer and complete the future with ``result``.

        Returns False when the future was already done.
        """
        self.disarm()
        if self.future.done():
            return False
        self.future.set_result(result)
        return True

    def reject(self, error: BaseException) -> bool:
        """Disarm the timer and fail the future with ``error``."""
        self.disarm()
        if self.future.done():
            return False
        self.future.set_exception(error)
        return True

    def disarm(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


class PendingRequestTable:
    """Pending requests keyed by request id.

    :meth:`take` is the only way out of the table, so whichever of response,
    timeout or teardown reaches an entry first owns it.
    """

    def __init__(self) -> None:
        self._requests: dict[str, PendingRequest] = {}

    def add(self, request: PendingRequest) -> None:
        if request.id in self._requests:
            raise KeyError(f"Duplicate request id: {request.id}")
        self._requests[request.id] = request

    def take(self, request_id: str) -> PendingRequest | None:
        return self._requests.pop(request_id, None)

    def take_for_session(self, session_id: str) -> list[PendingRequest]:
        taken = [r for r in self._requests.values() if r.session_id == session_id]
        for request in taken:
            del self._requests[request.id]
        return taken

    def take_all(self) -> list[PendingRequest]:
        taken = list(self._requests.values())
        self._requests.clear()
        return taken

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._requests

    def __len__(self) -> int:
        return len(self._requests)
