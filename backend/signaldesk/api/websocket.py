"""WebSocket endpoint for real-time updates."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

import orjson
from fastapi import WebSocket, WebSocketDisconnect
from pydantic import BaseModel

logger = logging.getLogger(__name__)


def _orjson_dumps(obj: Any) -> str:
    """Serialize object to JSON string using orjson."""
    return orjson.dumps(obj, default=str).decode("utf-8")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class WebSocketMessage(BaseModel):
    """WebSocket message format."""

    type: str  # "signal", "notification", "status"
    data: dict[str, Any]
    timestamp: datetime

    def to_json(self) -> str:
        """Serialize to JSON string using orjson."""
        return _orjson_dumps(self.model_dump())


class ConnectionManager:
    """Manage WebSocket connections and broadcasts."""

    def __init__(self, send_timeout: float = 2.0):
        self._connections: list[WebSocket] = []
        self.send_timeout = send_timeout
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> None:
        """Accept a new WebSocket connection."""
        await websocket.accept()
        async with self._lock:
            self._connections.append(websocket)
        logger.info(f"WebSocket connected. Total connections: {len(self._connections)}")

    async def disconnect(self, websocket: WebSocket) -> None:
        """Remove a disconnected WebSocket."""
        async with self._lock:
            if websocket in self._connections:
                self._connections.remove(websocket)
        logger.info(f"WebSocket disconnected. Total connections: {len(self._connections)}")

    async def broadcast(self, message: WebSocketMessage) -> None:
        """Broadcast message to all connected clients."""
        if not self._connections:
            return

        message_text = message.to_json()
        disconnected = []

        async with self._lock:
            for websocket in self._connections:
                try:
                    await asyncio.wait_for(
                        websocket.send_text(message_text), timeout=self.send_timeout
                    )
                except asyncio.TimeoutError:
                    logger.warning("Dropping slow WebSocket client")
                    disconnected.append(websocket)
                except Exception as e:
                    logger.warning(f"Failed to send message: {e}")
                    disconnected.append(websocket)

            for ws in disconnected:
                self._connections.remove(ws)

    async def send_signal(self, signal_data: dict, notification: dict | None = None) -> None:
        """Broadcast a new signal, with its display notification if any."""
        data = {"signal": signal_data}
        if notification is not None:
            data["notification"] = notification
        await self.broadcast(WebSocketMessage(type="signal", data=data, timestamp=_now()))

    async def send_status(self, status_data: dict) -> None:
        """Broadcast scheduler status update."""
        await self.broadcast(
            WebSocketMessage(type="status", data=status_data, timestamp=_now())
        )

    @property
    def connection_count(self) -> int:
        """Get number of active connections."""
        return len(self._connections)


# Global connection manager
manager = ConnectionManager()


async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for real-time updates.

    Messages sent to clients:
    - signal: New trading signal plus its notification payload
    - status: Scheduler status update

    Message format:
    {
        "type": "signal",
        "data": {...},
        "timestamp": "2024-01-01T00:00:00+00:00"
    }
    """
    await manager.connect(websocket)

    try:
        await websocket.send_text(_orjson_dumps({
            "type": "connected",
            "data": {"message": "Connected to signal desk"},
            "timestamp": _now().isoformat(),
        }))

        while True:
            try:
                data = await asyncio.wait_for(websocket.receive_text(), timeout=60.0)
                try:
                    message = orjson.loads(data)
                    await handle_client_message(websocket, message)
                except orjson.JSONDecodeError:
                    await websocket.send_text(_orjson_dumps({
                        "type": "error",
                        "data": {"message": "Invalid JSON"},
                        "timestamp": _now().isoformat(),
                    }))

            except asyncio.TimeoutError:
                # Keep the connection alive
                await websocket.send_text(_orjson_dumps({
                    "type": "ping",
                    "data": {},
                    "timestamp": _now().isoformat(),
                }))

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        await manager.disconnect(websocket)


async def handle_client_message(websocket: WebSocket, message: dict) -> None:
    """Handle incoming message from client."""
    msg_type = message.get("type", "") if isinstance(message, dict) else ""

    if msg_type == "ping":
        reply = {"type": "pong", "data": {}}
    else:
        reply = {"type": "error", "data": {"message": f"Unknown message type: {msg_type}"}}

    reply["timestamp"] = _now().isoformat()
    await websocket.send_text(_orjson_dumps(reply))
