"""設定ファイル読み込み"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError, ConfigErrorCodes
from .merger import deep_merge
from .models import AppConfig

_LOG_LEVELS = {
    "debug": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "warning": "WARNING",
    "error": "ERROR",
}


def _read_yaml(path: Path) -> dict[str, Any]:
    """YAML ファイルを読み込む。"""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(
            code=ConfigErrorCodes.READ_FILE,
            message=f"Failed to read config file: {path}",
            cause=e,
        ) from e
    try:
        data: dict[str, Any] = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(
            code=ConfigErrorCodes.PARSE_YAML,
            message=f"Failed to parse YAML: {path}",
            cause=e,
        ) from e
    return data


def _validate(data: dict[str, Any], code: str = ConfigErrorCodes.VALIDATION) -> AppConfig:
    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            code=code,
            message=f"Config validation failed: {e}",
            cause=e,
        ) from e


def _positive_int(value: str | None) -> int | None:
    if not value:
        return None
    try:
        number = int(value.strip(), 10)
    except ValueError:
        return None
    return number if number > 0 else None


def load(base_path: Path, env_path: Path | None = None) -> AppConfig:
    """設定ファイルを読み込んで AppConfig を返す。

    base_path: ベース設定ファイルパス（必須）
    env_path: 環境別設定ファイルパス（オプション）。存在する場合はベースにマージ。
    """
    data = _read_yaml(base_path)
    if env_path is not None and env_path.exists():
        env_data = _read_yaml(env_path)
        data = deep_merge(data, env_data)
    return _validate(data)


def apply_env(config: AppConfig, environ: Mapping[str, str] | None = None) -> AppConfig:
    """環境変数で設定を上書きした新しい AppConfig を返す。

    API_BASE_URL, MCP_PORT, LOG_LEVEL and REQUEST_TIMEOUT (milliseconds) are
    honoured. Empty, unparsable or non-positive values leave the setting as it
    was; a value the models reject (a port above 65535) raises
    ConfigError(ENV_OVERRIDE_ERROR).
    """
    env = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}

    base_url = (env.get("API_BASE_URL") or "").strip()
    if base_url:
        overrides.setdefault("dootask", {})["base_url"] = base_url

    timeout = _positive_int(env.get("REQUEST_TIMEOUT"))
    if timeout is not None:
        overrides.setdefault("dootask", {})["request_timeout_ms"] = timeout

    port = _positive_int(env.get("MCP_PORT"))
    if port is not None:
        overrides.setdefault("server", {})["port"] = port

    level = _LOG_LEVELS.get((env.get("LOG_LEVEL") or "").strip().lower())
    if level is not None:
        overrides["observability"] = {"log": {"level": level}}

    if not overrides:
        return config
    return _validate(
        deep_merge(config.model_dump(), overrides), ConfigErrorCodes.ENV_OVERRIDE
    )


def load_from_env(environ: Mapping[str, str] | None = None) -> AppConfig:
    """デフォルト設定に環境変数を適用した AppConfig を返す。"""
    return apply_env(AppConfig(), environ)
