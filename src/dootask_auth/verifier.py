"""トークン検証"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx
import structlog

from .exceptions import AuthError, AuthErrorCodes
from .models import Identity

logger = structlog.get_logger(__name__)

USER_INFO_PATH = "/api/users/info"


class IdentityVerifier(ABC):
    """トークンからユーザーを特定する抽象基底クラス。"""

    @abstractmethod
    async def verify(self, token: str) -> Identity | None:
        """トークンを検証する。認証できない場合は None を返す。"""
        ...

    async def verify_or_raise(self, token: str) -> Identity:
        """トークンを検証し、失敗時は AuthError を送出する。"""
        identity = await self.verify(token)
        if identity is None:
            raise AuthError(
                code=AuthErrorCodes.UNAUTHORIZED,
                message="Token verification failed",
            )
        return identity


class HttpIdentityVerifier(IdentityVerifier):
    """DooTask のユーザー情報 API でトークンを検証する。

    The service answers ``{"ret": 1, "data": {"userid": ...}}`` for a valid
    token. Every other outcome, transport errors included, is treated as a
    rejection.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds

    def _make_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
        )

    async def _fetch_user(self, token: str) -> dict[str, Any]:
        try:
            async with self._make_client() as client:
                resp = await client.get(
                    USER_INFO_PATH,
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as e:
            raise AuthError(
                code=AuthErrorCodes.HTTP_ERROR,
                message=f"User info request failed: {e}",
                cause=e,
            ) from e
        if resp.status_code >= 400:
            raise AuthError(
                code=AuthErrorCodes.HTTP_ERROR,
                message=f"User info request failed: HTTP {resp.status_code}",
            )
        try:
            body = resp.json()
        except ValueError as e:
            raise AuthError(
                code=AuthErrorCodes.HTTP_ERROR,
                message="User info response is not JSON",
                cause=e,
            ) from e
        if not isinstance(body, dict):
            raise AuthError(
                code=AuthErrorCodes.UNAUTHORIZED,
                message="Unexpected user info response",
            )
        return body

    async def verify(self, token: str) -> Identity | None:
        if not token:
            return None
        try:
            body = await self._fetch_user(token)
        except AuthError as e:
            logger.error("Token verification failed", code=e.code, error=str(e))
            return None

        data = body.get("data")
        if body.get("ret") != 1 or not isinstance(data, dict) or not data.get("userid"):
            logger.warning("Token rejected by identity service", ret=body.get("ret"))
            return None
        try:
            return Identity.from_dict(data)
        except (TypeError, ValueError) as e:
            logger.error("Token verification failed", error=f"invalid userid: {e}")
            return None


class StaticIdentityVerifier(IdentityVerifier):
    """固定トークン表で検証する IdentityVerifier（開発・テスト用）。"""

    def __init__(self, identities: dict[str, Identity] | None = None) -> None:
        self._identities: dict[str, Identity] = dict(identities or {})

    def add(self, token: str, identity: Identity) -> None:
        self._identities[token] = identity

    async def verify(self, token: str) -> Identity | None:
        return self._identities.get(token)
