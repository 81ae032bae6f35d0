from __future__ import annotations

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..connections import ConnectionRegistry
from ..logging_config import get_logger
from ..quiz_logic import handle_disconnect, handle_raw_message
from ..state import RoomStore

logger = get_logger(__name__)

router = APIRouter(prefix="", tags=["ws"])


@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await ws.accept()
    store: RoomStore = ws.app.state.room_store
    registry: ConnectionRegistry = ws.app.state.connections
    subscribes: bool = ws.app.state.settings.counts_request_subscribes

    conn = registry.connect(ws)
    try:
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            if raw is None:
                continue
            await handle_raw_message(store, conn, raw, counts_request_subscribes=subscribes)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WebSocket error on connection %s", conn.voter_id)
    finally:
        handle_disconnect(registry, conn)
