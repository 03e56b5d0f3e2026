"""設定ローダーのユニットテスト"""

from pathlib import Path

import pytest
from dootask_config import AppConfig, ConfigError, ConfigErrorCodes, apply_env, load, load_from_env


def test_load_minimal_config(tmp_path: Path) -> None:
    """最小設定ファイルの読み込み。"""
    config_file = tmp_path / "config.yaml"
    config_file.write_text("app:\n  name: bridge\n")
    config = load(config_file)
    assert config.app.name == "bridge"
    assert config.server.port == 7000
    assert config.dootask.request_timeout_ms == 30000


def test_load_empty_file_uses_defaults(tmp_path: Path) -> None:
    config_file = tmp_path / "empty.yaml"
    config_file.write_text("")
    config = load(config_file)
    assert config == AppConfig()


def test_load_with_env_override(tmp_path: Path) -> None:
    """環境別設定のマージ確認。"""
    base_file = tmp_path / "base.yaml"
    base_file.write_text("server:\n  port: 7000\n  path: /ws\n")
    env_file = tmp_path / "prod.yaml"
    env_file.write_text("server:\n  port: 9090\n")
    config = load(base_file, env_file)
    assert config.server.port == 9090
    assert config.server.path == "/ws"


def test_load_env_not_exists(tmp_path: Path) -> None:
    """env_path が存在しない場合は base のみ使用。"""
    base_file = tmp_path / "base.yaml"
    base_file.write_text("dootask:\n  base_url: http://dootask.local/\n")
    config = load(base_file, tmp_path / "nonexistent.yaml")
    assert config.dootask.base_url == "http://dootask.local"


def test_load_file_not_found(tmp_path: Path) -> None:
    """存在しないファイルで ConfigError(READ_FILE_ERROR) が発生すること。"""
    with pytest.raises(ConfigError) as exc_info:
        load(tmp_path / "missing.yaml")
    assert exc_info.value.code == ConfigErrorCodes.READ_FILE


def test_load_invalid_yaml(tmp_path: Path) -> None:
    """不正 YAML で ConfigError(PARSE_YAML_ERROR) が発生すること。"""
    bad_file = tmp_path / "bad.yaml"
    bad_file.write_text("app: {invalid: yaml: content:\n")
    with pytest.raises(ConfigError) as exc_info:
        load(bad_file)
    assert exc_info.value.code == ConfigErrorCodes.PARSE_YAML


def test_load_validation_error(tmp_path: Path) -> None:
    """バリデーション失敗で ConfigError(VALIDATION_ERROR) が発生すること。"""
    bad_config = tmp_path / "bad_config.yaml"
    bad_config.write_text("dootask:\n  request_timeout_ms: 0\n")
    with pytest.raises(ConfigError) as exc_info:
        load(bad_config)
    assert exc_info.value.code == ConfigErrorCodes.VALIDATION
    assert str(exc_info.value).startswith("VALIDATION_ERROR: ")


def test_apply_env_overrides() -> None:
    config = apply_env(
        AppConfig(),
        {
            "API_BASE_URL": "  https://dootask.example.com//  ",
            "MCP_PORT": "7100",
            "LOG_LEVEL": "WARN",
            "REQUEST_TIMEOUT": "5000",
        },
    )
    assert config.dootask.base_url == "https://dootask.example.com"
    assert config.server.port == 7100
    assert config.observability.log.level == "WARNING"
    assert config.dootask.request_timeout_ms == 5000
    assert config.dootask.request_timeout_seconds == 5.0


@pytest.mark.parametrize(
    "environ",
    [
        {"MCP_PORT": "abc"},
        {"MCP_PORT": "-1"},
        {"REQUEST_TIMEOUT": "0"},
        {"LOG_LEVEL": "verbose"},
        {"API_BASE_URL": "   "},
    ],
)
def test_apply_env_ignores_invalid_values(environ: dict[str, str]) -> None:
    """不正な環境変数は無視されデフォルト値のままであること。"""
    assert apply_env(AppConfig(), environ) == AppConfig()


def test_load_from_env_defaults() -> None:
    config = load_from_env({})
    assert config.dootask.base_url == "http://nginx"
    assert config.session.ttl_seconds == 3600
    assert config.session.reject_pending_on_disconnect is True


def test_server_path_gets_leading_slash() -> None:
    config = AppConfig.model_validate({"server": {"path": "operation"}})
    assert config.server.path == "/operation"


def test_apply_env_out_of_range_port() -> None:
    """範囲外ポートで ConfigError(ENV_OVERRIDE_ERROR) が発生すること。"""
    with pytest.raises(ConfigError) as exc_info:
        apply_env(AppConfig(), {"MCP_PORT": "70000"})
    assert exc_info.value.code == ConfigErrorCodes.ENV_OVERRIDE
