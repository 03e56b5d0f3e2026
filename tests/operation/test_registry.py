"""SessionRegistry unit tests."""

from dootask_operation import InMemoryClientSocket, SessionRegistry, Session


def test_register_and_lookup() -> None:
    registry = SessionRegistry()
    socket = InMemoryClientSocket()

    session_id = registry.register(socket, 42, "token-42")

    assert registry.has(session_id)
    session = registry.get(session_id)
    assert session is not None
    assert session.user_id == 42
    assert session.token == "token-42"
    assert session.socket is socket
    assert session.created_at.tzinfo is not None
    assert registry.stats() == {"connection_count": 1}


def test_register_sends_nothing() -> None:
    registry = SessionRegistry()
    socket = InMemoryClientSocket()
    registry.register(socket, 1, "t")
    assert socket.get_sent_frames() == []


def test_session_ids_are_unique() -> None:
    registry = SessionRegistry()
    ids = {registry.register(InMemoryClientSocket(), 1, "t") for _ in range(200)}
    assert len(ids) == 200
    assert len(registry) == 200


def test_unknown_session_is_a_lookup_miss() -> None:
    registry = SessionRegistry()
    assert not registry.has("missing")
    assert registry.get("missing") is None


async def test_socket_close_unregisters() -> None:
    registry = SessionRegistry()
    socket = InMemoryClientSocket()
    session_id = registry.register(socket, 1, "t")

    await socket.close()

    assert not registry.has(session_id)
    assert registry.stats() == {"connection_count": 0}


def test_unregister_is_idempotent() -> None:
    removed: list[Session] = []
    registry = SessionRegistry(on_removed=removed.append)
    first = registry.register(InMemoryClientSocket(), 1, "a")
    second = registry.register(InMemoryClientSocket(), 2, "b")

    assert registry.unregister(first) is not None
    assert registry.unregister(first) is None
    registry.unregister("never-registered")

    assert [s.id for s in removed] == [first]
    assert registry.has(second)


def test_close_observer_fires_once() -> None:
    removed: list[Session] = []
    registry = SessionRegistry(on_removed=removed.append)
    socket = InMemoryClientSocket()
    registry.register(socket, 1, "t")

    # error then close on the same socket
    socket.mark_closed()
    socket.mark_closed()

    assert len(removed) == 1


def test_removed_id_is_not_reused() -> None:
    registry = SessionRegistry()
    socket = InMemoryClientSocket()
    old_id = registry.register(socket, 1, "t")
    socket.mark_closed()

    new_id = registry.register(InMemoryClientSocket(), 1, "t")

    assert new_id != old_id
    assert not registry.has(old_id)


def test_sessions_for_user() -> None:
    registry = SessionRegistry()
    a = registry.register(InMemoryClientSocket(), 7, "t1")
    b = registry.register(InMemoryClientSocket(), 7, "t2")
    registry.register(InMemoryClientSocket(), 8, "t3")

    assert {s.id for s in registry.sessions_for_user(7)} == {a, b}
    assert registry.sessions_for_user(9) == []
