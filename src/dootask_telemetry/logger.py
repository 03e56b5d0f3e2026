"""structlog ベースのロガー設定"""

from __future__ import annotations

import logging
import sys

import structlog

_LEVEL_ALIASES = {"WARN": "WARNING"}


def new_logger(
    level: str = "INFO",
    format: str = "json",
    name: str | None = None,
) -> structlog.stdlib.BoundLogger:
    """設定済みの structlog ロガーを返す。

    Args:
        level: ログレベル ("DEBUG", "INFO", "WARN"/"WARNING", "ERROR", "CRITICAL")
        format: 出力形式 ("json" or "text")
        name: ロガー名。省略時はルートロガー。

    Returns:
        設定済みの structlog.stdlib.BoundLogger
    """
    level_name = _LEVEL_ALIASES.get(level.upper(), level.upper())
    log_level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    processors: list[structlog.types.Processor]
    if format == "json":
        processors = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        processors = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.stdlib.get_logger(name)
