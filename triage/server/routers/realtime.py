from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from triage.engine.orchestrator import EngineSnapshot
from triage.server.models import SnapshotModel
from triage.server.state import get_ws_engine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["realtime"])


@router.websocket("/stream")
async def ws_stream_endpoint(websocket: WebSocket):
    """
    Push an EngineSnapshot on every engine change.

    The current snapshot is sent right after the handshake. Snapshots carry
    the full state, so a slow client only ever receives the latest one.
    Incoming frames are read and discarded; the read loop is what notices
    the client going away.
    """
    engine = get_ws_engine(websocket)
    await websocket.accept()
    logger.info(f"[WebSocket] Stream client connected from {websocket.client}")

    pending: asyncio.Queue = asyncio.Queue(maxsize=1)

    def on_snapshot(snapshot: EngineSnapshot) -> None:
        if pending.full():
            pending.get_nowait()
        pending.put_nowait(snapshot)

    async def push_snapshots():
        try:
            await websocket.send_json(SnapshotModel.from_snapshot(engine.snapshot("connect")).model_dump(mode="json"))
            while True:
                snapshot = await pending.get()
                await websocket.send_json(SnapshotModel.from_snapshot(snapshot).model_dump(mode="json"))
        except Exception as e:
            logger.debug(f"[WebSocket] Stream send stopped: {e}")

    handle = engine.subscribe(on_snapshot)
    sender_task = asyncio.create_task(push_snapshots())
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("[WebSocket] Stream client disconnected")
    except Exception as e:
        logger.error(f"[WebSocket] Stream error: {e}")
    finally:
        sender_task.cancel()
        handle.unsubscribe()
