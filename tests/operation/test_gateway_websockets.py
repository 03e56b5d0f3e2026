"""End-to-end tests over a real websockets server on localhost."""

import asyncio
import json
from collections.abc import AsyncIterator

import httpx
import pytest
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, InvalidStatus

from dootask_auth import Identity, StaticIdentityVerifier
from dootask_operation import (
    CLOSE_AUTH_FAILED,
    CLOSE_MISSING_TOKEN,
    ConnectionGateway,
    ConnectionManager,
    OperationError,
    OperationErrorCodes,
)


@pytest.fixture
async def gateway_url() -> AsyncIterator[tuple[ConnectionGateway, str]]:
    verifier = StaticIdentityVerifier({"good": Identity(user_id=42)})
    gateway = ConnectionGateway(ConnectionManager(request_timeout_seconds=2), verifier)
    async with gateway.serve("127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        yield gateway, f"ws://127.0.0.1:{port}"


async def recv_json(ws: ClientConnection) -> dict:
    return json.loads(await asyncio.wait_for(ws.recv(), timeout=2))


async def test_round_trip(gateway_url: tuple[ConnectionGateway, str]) -> None:
    gateway, url = gateway_url
    async with connect(f"{url}/ws?token=good") as ws:
        welcome = await recv_json(ws)
        assert welcome["type"] == "connected"
        session_id = welcome["session_id"]
        assert gateway.manager.has(session_id)

        task = asyncio.create_task(
            gateway.manager.send_request(session_id, "execute_action", {"name": "open_task_1"})
        )
        request = await recv_json(ws)
        assert request["type"] == "request"
        assert request["payload"] == {"name": "open_task_1"}

        await ws.send(json.dumps({"type": "ping"}))
        assert await recv_json(ws) == {"type": "pong"}

        await ws.send("garbage")
        await ws.send(
            json.dumps({"id": request["id"], "type": "response", "success": True, "data": {"opened": 1}})
        )
        assert await asyncio.wait_for(task, timeout=2) == {"opened": 1}


async def test_close_removes_session_and_rejects_pending(
    gateway_url: tuple[ConnectionGateway, str],
) -> None:
    gateway, url = gateway_url
    async with connect(f"{url}/ws?token=good") as ws:
        session_id = (await recv_json(ws))["session_id"]
        task = asyncio.create_task(gateway.manager.send_request(session_id, "slow", {}))
        await recv_json(ws)

    with pytest.raises(OperationError) as exc_info:
        await asyncio.wait_for(task, timeout=2)
    assert exc_info.value.code == OperationErrorCodes.DISCONNECTED
    assert not gateway.manager.has(session_id)


@pytest.mark.parametrize(
    ("query", "code", "reason"),
    [
        ("", CLOSE_MISSING_TOKEN, "missing token"),
        ("?token=bad", CLOSE_AUTH_FAILED, "authentication failed"),
    ],
)
async def test_rejected_connections(
    gateway_url: tuple[ConnectionGateway, str], query: str, code: int, reason: str
) -> None:
    gateway, url = gateway_url
    async with connect(f"{url}/ws{query}") as ws:
        with pytest.raises(ConnectionClosed) as exc_info:
            await asyncio.wait_for(ws.recv(), timeout=2)
    assert exc_info.value.rcvd is not None
    assert exc_info.value.rcvd.code == code
    assert exc_info.value.rcvd.reason == reason
    assert gateway.stats()["connection_count"] == 0


async def test_other_paths_are_not_upgraded(gateway_url: tuple[ConnectionGateway, str]) -> None:
    _, url = gateway_url
    with pytest.raises(InvalidStatus) as exc_info:
        async with connect(f"{url}/other?token=good"):
            pass
    assert exc_info.value.response.status_code == 404


async def test_health_endpoint(gateway_url: tuple[ConnectionGateway, str]) -> None:
    _, url = gateway_url
    async with httpx.AsyncClient() as client:
        resp = await client.get(url.replace("ws://", "http://") + "/healthz")
    assert resp.status_code == 200
    assert resp.text == "ok\n"
