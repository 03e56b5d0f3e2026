"""Shared test configuration."""

from collections.abc import Iterator

import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """テストごとに structlog の設定を初期状態へ戻す。"""
    yield
    structlog.reset_defaults()
