"""Live-update channel: one WebSocket per subscriber."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from services.broadcaster import Broadcaster, Subscription

logger = logging.getLogger(__name__)

router = APIRouter()


async def _forward(websocket: WebSocket, subscription: Subscription) -> None:
    while True:
        message = await subscription.next_message()
        try:
            await websocket.send_json(message)
        except (WebSocketDisconnect, RuntimeError) as exc:
            # Events still queued for a closed socket are dropped.
            logger.debug(
                "Dropping delivery to closed socket",
                extra={"subscriber_id": subscription.id, "reason": str(exc)},
            )
            return


@router.websocket("/ws")
async def live_updates(websocket: WebSocket) -> None:
    broadcaster: Broadcaster = websocket.app.state.broadcaster
    # Registered before accept so a connected client never misses an event.
    subscription = broadcaster.subscribe()
    sender: asyncio.Task[None] | None = None
    try:
        await websocket.accept()
        sender = asyncio.create_task(_forward(websocket, subscription))
        while True:
            # Inbound frames are ignored; only the disconnect matters.
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        broadcaster.unsubscribe(subscription)
        if sender is not None:
            sender.cancel()
            with suppress(asyncio.CancelledError):
                await sender
