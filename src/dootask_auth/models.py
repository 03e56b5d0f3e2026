"""Identity models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Identity:
    """A user whose token was accepted by the identity service."""

    user_id: int
    nickname: str = ""
    email: str = ""

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Identity:
        return Identity(
            user_id=int(data["userid"]),
            nickname=str(data.get("nickname") or ""),
            email=str(data.get("email") or ""),
        )
