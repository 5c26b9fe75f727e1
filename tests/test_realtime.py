import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

import pytest
from starlette.websockets import WebSocketDisconnect

from chatdesk.realtime import EVENT_API_DATA, ConnectionManager, manager


def _socket():
    websocket = Mock()
    websocket.accept = AsyncMock()
    websocket.send_json = AsyncMock()
    return websocket


class TestConnectionManager:
    def test_broadcast_reaches_every_client(self):
        cm = ConnectionManager()
        first, second = _socket(), _socket()
        asyncio.run(cm.connect(first))
        asyncio.run(cm.connect(second))

        delivered = asyncio.run(cm.broadcast(EVENT_API_DATA, {"id": "1", "text": "hi"}))

        assert delivered == 2
        first.send_json.assert_awaited_once_with({"event": "apiData", "data": {"id": "1", "text": "hi"}})

    def test_failed_client_is_dropped(self):
        cm = ConnectionManager()
        healthy, broken = _socket(), _socket()
        broken.send_json.side_effect = RuntimeError("closed")
        asyncio.run(cm.connect(healthy))
        asyncio.run(cm.connect(broken))

        delivered = asyncio.run(cm.broadcast(EVENT_API_DATA, {}))

        assert delivered == 1
        assert cm.active_connections == {healthy}

    def test_payload_is_json_encoded(self):
        cm = ConnectionManager()
        websocket = _socket()
        asyncio.run(cm.connect(websocket))

        asyncio.run(cm.broadcast(EVENT_API_DATA, {"timestamp": datetime(2024, 1, 1, tzinfo=timezone.utc)}))

        sent = websocket.send_json.await_args[0][0]
        assert sent["data"]["timestamp"] == "2024-01-01T00:00:00+00:00"

    def test_disconnect_unknown_client_is_noop(self):
        cm = ConnectionManager()
        cm.disconnect(_socket())
        assert cm.active_connections == set()


class TestWebSocketEndpoint:
    def test_message_event_is_relayed(self, client):
        with client.websocket_connect("/ws") as websocket:
            websocket.send_json({"event": "message", "data": {"text": "typing"}})
            received = websocket.receive_json()

        assert received == {"event": "message", "data": {"text": "typing"}}
        assert manager.active_connections == set()

    def test_invalid_frame_closes_and_forgets_client(self, client):
        with client.websocket_connect("/ws") as websocket:
            websocket.send_text("not json")
            with pytest.raises(WebSocketDisconnect):
                websocket.receive_json()

        assert manager.active_connections == set()
