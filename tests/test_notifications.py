import asyncio

import pytest
from starlette.websockets import WebSocketDisconnect

from taskflow.core.security import create_access_token
from taskflow.services.notifications import ConnectionManager, TASK_CREATED, TASK_DELETED


class FakeSocket:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("connection closed")
        self.sent.append(message)


def test_broadcast_scoped_to_admins_and_audience():
    manager = ConnectionManager()
    admin, alice, bob = FakeSocket(), FakeSocket(), FakeSocket()
    manager.connect(admin, 1, is_admin=True)
    manager.connect(alice, 2, is_admin=False)
    manager.connect(bob, 3, is_admin=False)

    sent = asyncio.run(manager.broadcast(TASK_CREATED, 10, audience=[2]))

    assert sent == 2
    assert admin.sent == [{"event": "taskCreated", "task_id": 10}]
    assert alice.sent == [{"event": "taskCreated", "task_id": 10}]
    assert bob.sent == []


def test_dead_connections_are_dropped():
    manager = ConnectionManager()
    manager.connect(FakeSocket(fail=True), 1, is_admin=True)
    alive = FakeSocket()
    manager.connect(alive, 1, is_admin=True)

    assert asyncio.run(manager.broadcast(TASK_DELETED, 4)) == 1
    assert len(manager.subscribers) == 1
    assert alive.sent == [{"event": "taskDeleted", "task_id": 4}]


def test_unknown_event_rejected():
    with pytest.raises(ValueError):
        asyncio.run(ConnectionManager().broadcast("taskArchived", 1))


def test_websocket_requires_token(client):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect("/ws"):
            pass
    assert exc.value.code == 4401

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws?token=garbage"):
            pass


def test_websocket_accepts_valid_token(client, make_user):
    alice = make_user("alice@example.com")
    token = create_access_token(alice.id, alice.role)
    with client.websocket_connect(f"/ws?token={token}") as ws:
        ws.send_text("ping")
