from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from typing import Optional
import json
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


class ScanEventHub:
    """
    Fans scanner events out to WebSocket clients.

    The events of the latest scan are kept so a client that connects while a
    scan is running, or after it finished, sees the whole scan. A client may
    follow a single interface; discoveries on other interfaces are not sent
    to it.
    """

    def __init__(self):
        self.clients: dict[WebSocket, Optional[str]] = {}
        self.history: list[tuple[str, dict]] = []

    @staticmethod
    def wants(interface: Optional[str], event_type: str, data: dict) -> bool:
        if interface is None or event_type != "device_discovered":
            return True
        return data.get("interface") in (None, interface)

    def record(self, event_type: str, data: dict):
        if event_type == "scan_started":
            self.history.clear()
        self.history.append((event_type, data))

    async def connect(self, websocket: WebSocket, interface: Optional[str] = None):
        await websocket.accept()
        await self._send(websocket, "connected", {"interface": interface})
        for event_type, data in list(self.history):
            if self.wants(interface, event_type, data):
                await self._send(websocket, event_type, data)
        self.clients[websocket] = interface

    def disconnect(self, websocket: WebSocket):
        self.clients.pop(websocket, None)

    async def publish(self, event_type: str, data: dict):
        """Record a scanner event and send it to every interested client."""
        self.record(event_type, data)
        for websocket, interface in list(self.clients.items()):
            if not self.wants(interface, event_type, data):
                continue
            try:
                await self._send(websocket, event_type, data)
            except Exception as e:
                logger.debug(f"Dropping WebSocket client: {e}")
                self.disconnect(websocket)

    @staticmethod
    async def _send(websocket: WebSocket, event_type: str, data: dict):
        await websocket.send_text(json.dumps({"type": event_type, "data": data}, default=str))


hub = ScanEventHub()


async def scanner_callback(event_type: str, data: dict):
    await hub.publish(event_type, data)


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, interface: Optional[str] = None):
    """Stream scan events, optionally only those of one interface."""
    await hub.connect(websocket, interface)
    try:
        while True:
            # clients don't talk, this only notices the disconnect
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        hub.disconnect(websocket)
