import json
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from fastapi.websockets import WebSocketState

from quizcast.app import create_app
from quizcast.config import Settings
from quizcast.connections import ConnectionRegistry
from quizcast.quiz_logic import handle_raw_message
from quizcast.state import RoomStore


# ---------------------------------------------------------------------------
# Mock WebSocket
# ---------------------------------------------------------------------------

class MockWebSocket:
    """Lightweight stand-in for fastapi.WebSocket that records sent frames."""

    def __init__(self, fail: bool = False):
        self.sent_messages: List[dict] = []
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.fail = fail

    async def send_text(self, data: str):
        if self.fail:
            raise RuntimeError("socket went away")
        self.sent_messages.append(json.loads(data))

    def close(self):
        self.client_state = WebSocketState.DISCONNECTED
        self.application_state = WebSocketState.DISCONNECTED

    def last(self, msg_type: str) -> Optional[dict]:
        """Return the last sent message of a given type."""
        for msg in reversed(self.sent_messages):
            if msg.get("type") == msg_type:
                return msg
        return None

    def all(self, msg_type: str) -> List[dict]:
        return [m for m in self.sent_messages if m.get("type") == msg_type]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def store():
    return RoomStore()


@pytest.fixture()
def registry():
    return ConnectionRegistry()


@pytest.fixture()
def connect(registry):
    """Open a mock connection: ``conn, ws = connect()``."""

    def _connect(fail: bool = False, ws=None):
        ws = ws if ws is not None else MockWebSocket(fail=fail)
        return registry.connect(ws), ws

    return _connect


@pytest.fixture()
def settings():
    return Settings(log_level="DEBUG")


@pytest.fixture()
def app(settings):
    return create_app(settings, store=RoomStore(audience=settings.broadcast_audience))


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def dispatch(store, registry):
    """Feed one message through the router and flush every outbox."""

    async def _dispatch(conn, subscribes=False, **payload):
        msg = await handle_raw_message(store, conn, json.dumps(payload), counts_request_subscribes=subscribes)
        await registry.drain()
        return msg

    return _dispatch
