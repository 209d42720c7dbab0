"""System/utility endpoints
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from infra.services.events import get_event_hub
from app.settings import (
	APP_VERSION,
	DEFAULT_PAGE_SIZE,
	ENABLE_WS_EVENTS,
	EVENT_QUEUE_SIZE,
	MAX_PAGE_SIZE,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check():
    return {"status": "healthy", "service": "Contest Judge Backend", "version": APP_VERSION}

@router.get("/api/config")
async def get_config():
	return {
		"default_page_size": DEFAULT_PAGE_SIZE,
		"max_page_size": MAX_PAGE_SIZE,
		"enable_ws_events": ENABLE_WS_EVENTS,
		"event_queue_size": EVENT_QUEUE_SIZE,
	}


@router.websocket("/ws/events")
async def websocket_events(websocket: WebSocket):
    # Kênh chỉ gửi: mỗi event là một JSON object có trường "type".
    if not ENABLE_WS_EVENTS:
        await websocket.accept()
        await websocket.send_json({"type": "error", "message": "Event stream is disabled on this environment."})
        await websocket.close()
        return

    # Subscribe before accepting so nothing published after the handshake is missed.
    hub = get_event_hub()
    queue = hub.subscribe()
    try:
        await websocket.accept()
    except Exception:
        hub.unsubscribe(queue)
        raise

    async def forward_events():
        while True:
            payload = await queue.get()
            await websocket.send_json(payload)

    async def wait_for_disconnect():
        # Client messages are ignored; reading only detects the close.
        while True:
            await websocket.receive_text()

    sender = asyncio.create_task(forward_events())
    receiver = asyncio.create_task(wait_for_disconnect())
    try:
        done, _ = await asyncio.wait([sender, receiver], return_when=asyncio.FIRST_COMPLETED)
        for t in done:
            exc = t.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning(f"Event stream closed with error: {exc}")
    finally:
        # Also reached when the endpoint itself is cancelled, e.g. on shutdown.
        sender.cancel()
        receiver.cancel()
        hub.unsubscribe(queue)


__all__ = ["router"]
