"""auth ライブラリの例外型定義"""

from __future__ import annotations


class AuthError(Exception):
    """Raised when a token cannot be turned into an identity.

    :class:`IdentityVerifier.verify` never lets it escape; only
    ``verify_or_raise`` surfaces it to callers.
    """

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class AuthErrorCodes:
    """AuthError のエラーコード定数。"""

    UNAUTHORIZED: str = "UNAUTHORIZED"
    HTTP_ERROR: str = "HTTP_ERROR"
