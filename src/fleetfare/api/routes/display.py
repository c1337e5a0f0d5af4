"""Passenger display websocket."""

from __future__ import annotations

import asyncio
import logging
from typing import Set

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from fastapi.websockets import WebSocketState

from ...services.broadcast import open_channel
from ...services.display import PassengerDisplay, describe
from ..dependencies import get_hub

router = APIRouter(prefix="/display", tags=["display"])

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks connected passenger displays."""

    def __init__(self):
        self.active_connections: Set[WebSocket] = set()

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.add(websocket)

    def disconnect(self, websocket: WebSocket):
        self.active_connections.discard(websocket)

    async def send_message(self, websocket: WebSocket, message: dict):
        if websocket.application_state == WebSocketState.CONNECTED:
            await websocket.send_json(message)


manager = ConnectionManager()


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        return


@router.websocket("/ws")
async def passenger_display(websocket: WebSocket):
    """Stream the display state: once on connect, then after every fare event."""
    await manager.connect(websocket)

    loop = asyncio.get_running_loop()
    updates: asyncio.Queue[dict] = asyncio.Queue()
    # Publishers may run on another thread; hand states over to this connection's loop.
    display = PassengerDisplay(
        on_change=lambda state: loop.call_soon_threadsafe(updates.put_nowait, describe(state))
    )
    channel = open_channel(get_hub(websocket.app))
    display.attach(channel)
    closed = asyncio.create_task(_wait_for_disconnect(websocket))

    try:
        await manager.send_message(websocket, {"type": "state", "data": display.view()})
        while True:
            next_update = asyncio.create_task(updates.get())
            done, _ = await asyncio.wait({next_update, closed}, return_when=asyncio.FIRST_COMPLETED)
            if closed in done:
                next_update.cancel()
                break
            await manager.send_message(websocket, {"type": "state", "data": next_update.result()})
    except WebSocketDisconnect:
        pass
    finally:
        closed.cancel()
        display.detach()
        channel.close()
        manager.disconnect(websocket)
        logger.debug("Passenger display disconnected")
