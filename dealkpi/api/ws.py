"""
WebSocket endpoint for live KPI updates.

Clients send ``{"type": "subscribe_deal", "dealId": "..."}`` and receive a
``subscribed`` acknowledgement, followed by ``kpi_update`` messages whenever
the deal changes.
"""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from dealkpi.services.notifications import get_broadcaster

logger = logging.getLogger(__name__)

router = APIRouter()

SUBSCRIBE_DEAL = "subscribe_deal"


@router.websocket("/ws")
async def kpi_updates(websocket: WebSocket):
    broadcaster = get_broadcaster()
    await websocket.accept()

    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError as e:
                logger.warning(f"Ignoring malformed WebSocket message: {str(e)}")
                await websocket.send_json({"type": "error", "detail": "Invalid JSON"})
                continue

            if not isinstance(message, dict):
                message = {}
            deal_id = message.get("dealId")
            if not isinstance(deal_id, str):
                deal_id = None
            if message.get("type") != SUBSCRIBE_DEAL or not deal_id:
                logger.warning(f"Unsupported WebSocket message: {message}")
                await websocket.send_json(
                    {"type": "error", "detail": "Unsupported message"}
                )
                continue

            broadcaster.subscribe(deal_id, websocket)
            await websocket.send_json({"type": "subscribed", "dealId": deal_id})
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.unsubscribe(websocket)
