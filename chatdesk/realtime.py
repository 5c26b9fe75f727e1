"""WebSocket fan-out to connected dashboard clients."""

from typing import Any, Set

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

from chatdesk.logging_config import get_logger

logger = get_logger("realtime")

EVENT_API_DATA = "apiData"
EVENT_MESSAGE = "message"


class ConnectionManager:
    def __init__(self):
        self.active_connections: Set[WebSocket] = set()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.active_connections.add(websocket)
        logger.info("WS connected", extra={"context": {"connections": len(self.active_connections)}})

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self.active_connections:
            self.active_connections.discard(websocket)
            logger.info("WS disconnected", extra={"context": {"connections": len(self.active_connections)}})

    async def broadcast(self, event: str, data: Any) -> int:
        """Send an event to every client. Returns the number of clients reached."""
        message = {"event": event, "data": jsonable_encoder(data)}
        delivered = 0
        disconnected = set()
        for websocket in self.active_connections.copy():
            try:
                await websocket.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"WS send failed, dropping client: {e}")
                disconnected.add(websocket)

        for websocket in disconnected:
            self.disconnect(websocket)

        logger.debug(f"Event {event} delivered to {delivered} clients")
        return delivered


manager = ConnectionManager()
