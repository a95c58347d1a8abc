"""WebSocket endpoint for real-time bus updates."""

import asyncio
import logging

import orjson
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.api import deps

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/buses")
async def buses_ws(websocket: WebSocket) -> None:
    """Stream real-time bus position updates."""
    await websocket.accept()

    engine = deps.engine
    if engine is None or engine.broadcaster is None:
        await websocket.close(code=1011, reason="Service not ready")
        return
    broadcaster = engine.broadcaster

    # Send current snapshot first
    state_data = await broadcaster.get_current_state()
    if state_data:
        snapshot = orjson.loads(state_data)
        snapshot["type"] = "snapshot"
        await websocket.send_bytes(orjson.dumps(snapshot))

    # Subscribe to updates
    queue = broadcaster.subscribe()
    try:
        while True:
            data = await queue.get()
            await websocket.send_bytes(data)
    except (WebSocketDisconnect, asyncio.CancelledError):
        pass
    except Exception:
        logger.exception("WebSocket error")
    finally:
        broadcaster.unsubscribe(queue)
