"""Server entrypoint."""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from pathlib import Path

from dootask_auth import HttpIdentityVerifier
from dootask_config import AppConfig, ConfigError, apply_env, load, load_from_env
from dootask_telemetry import new_logger

from .gateway import ConnectionGateway
from .manager import ConnectionManager


def build_gateway(config: AppConfig) -> ConnectionGateway:
    verifier = HttpIdentityVerifier(
        config.dootask.base_url,
        timeout_seconds=config.dootask.verify_timeout_seconds,
    )
    manager = ConnectionManager(
        config.dootask.request_timeout_seconds,
        reject_pending_on_disconnect=config.session.reject_pending_on_disconnect,
    )
    return ConnectionGateway(
        manager,
        verifier,
        path=config.server.path,
        session_ttl_seconds=config.session.ttl_seconds,
    )


def load_config(config_path: Path | None, env_config_path: Path | None) -> AppConfig:
    if config_path is None:
        return load_from_env()
    return apply_env(load(config_path, env_config_path))


async def run(config: AppConfig) -> None:
    logger = new_logger(
        level=config.observability.log.level,
        format=config.observability.log.format,
        name="dootask_operation",
    )
    logger.info(
        "Starting DooTask operation bridge",
        app=config.app.name,
        version=config.app.version,
        environment=config.app.environment,
        base_url=config.dootask.base_url,
        port=config.server.port,
        timeout_ms=config.dootask.request_timeout_ms,
    )
    gateway = build_gateway(config)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # add_signal_handler is unavailable on Windows event loops.
            pass

    async with gateway.serve(config.server.host, config.server.port):
        await stop.wait()
        logger.info("Received shutdown signal")
    logger.info("Servers stopped gracefully")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="dootask-operation",
        description="WebSocket bridge between MCP tools and DooTask browser clients",
    )
    parser.add_argument("--config", type=Path, default=None, help="Base YAML config file")
    parser.add_argument(
        "--env-config", type=Path, default=None, help="Environment YAML merged over --config"
    )
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config, args.env_config)
    except ConfigError as e:
        print(f"Failed to load configuration: {e}", file=sys.stderr)
        return 1

    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        pass
    return 0
