"""設定型定義（pydantic BaseModel）"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class AppSection(BaseModel):
    """アプリケーション基本設定。"""

    name: str = "dootask-operation-bridge"
    version: str = "0.1.0"
    environment: str = "development"


class ServerSection(BaseModel):
    """WebSocket サーバー設定。"""

    host: str = "0.0.0.0"
    port: int = Field(default=7000, ge=1, le=65535)
    path: str = "/ws"

    @field_validator("path")
    @classmethod
    def _leading_slash(cls, value: str) -> str:
        return value if value.startswith("/") else f"/{value}"


class DootaskSection(BaseModel):
    """DooTask API 接続設定。"""

    base_url: str = "http://nginx"
    request_timeout_ms: int = Field(default=30000, gt=0)
    verify_timeout_ms: int = Field(default=10000, gt=0)

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @property
    def request_timeout_seconds(self) -> float:
        return self.request_timeout_ms / 1000

    @property
    def verify_timeout_seconds(self) -> float:
        return self.verify_timeout_ms / 1000


class SessionSection(BaseModel):
    """セッション設定。

    ttl_seconds is only reported to clients as ``expires_at``; nothing on the
    server expires a session.
    """

    ttl_seconds: int = Field(default=3600, gt=0)
    reject_pending_on_disconnect: bool = True


class LogSection(BaseModel):
    """ログ設定。"""

    level: str = "INFO"
    format: Literal["json", "text"] = "json"


class ObservabilitySection(BaseModel):
    """可観測性設定。"""

    log: LogSection = Field(default_factory=LogSection)


class AppConfig(BaseModel):
    """アプリケーション設定全体。"""

    app: AppSection = Field(default_factory=AppSection)
    server: ServerSection = Field(default_factory=ServerSection)
    dootask: DootaskSection = Field(default_factory=DootaskSection)
    session: SessionSection = Field(default_factory=SessionSection)
    observability: ObservabilitySection = Field(default_factory=ObservabilitySection)
