"""operation ライブラリの例外型定義"""

from __future__ import annotations


class OperationError(Exception):
    """operation ライブラリのエラー基底クラス。"""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class OperationErrorCodes:
    """OperationError のエラーコード定数。"""

    NOT_CONNECTED: str = "NOT_CONNECTED"
    DISCONNECTED: str = "DISCONNECTED"
    SEND_FAILED: str = "SEND_FAILED"
    TIMEOUT: str = "TIMEOUT"
    REMOTE_FAILURE: str = "REMOTE_FAILURE"
