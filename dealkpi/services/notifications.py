"""
KPI push notifications over WebSocket.

Clients subscribe to a deal and receive a ``kpi_update`` message after every
mutation that could change the deal's financials. Delivery is best effort:
no acknowledgement, no replay, and a socket that fails a send is dropped.
"""

import logging
from dataclasses import asdict
from typing import Dict, Optional, Set

from fastapi import WebSocket

from dealkpi.calculations.types import DealKPIs

logger = logging.getLogger(__name__)

KPI_UPDATE = "kpi_update"


def build_kpi_message(deal_id: str, kpis: DealKPIs) -> dict:
    """Build the push payload for a deal's KPIs."""
    return {"type": KPI_UPDATE, "dealId": deal_id, "kpis": asdict(kpis)}


class KPIBroadcaster:
    """Tracks WebSocket subscribers per deal and pushes KPI updates."""

    def __init__(self):
        self._subscribers: Dict[str, Set[WebSocket]] = {}

    def subscribe(self, deal_id: str, websocket: WebSocket) -> None:
        self._subscribers.setdefault(deal_id, set()).add(websocket)
        logger.info(f"Client subscribed to deal {deal_id}")

    def unsubscribe(self, websocket: WebSocket) -> None:
        """Remove a socket from every deal it is subscribed to."""
        for deal_id in list(self._subscribers):
            connections = self._subscribers[deal_id]
            connections.discard(websocket)
            if not connections:
                del self._subscribers[deal_id]

    def has_subscribers(self, deal_id: str) -> bool:
        return bool(self._subscribers.get(deal_id))

    def subscriber_count(self, deal_id: str) -> int:
        return len(self._subscribers.get(deal_id, ()))

    async def broadcast(self, deal_id: str, kpis: DealKPIs) -> int:
        """
        Send KPIs to every subscriber of a deal.

        Returns:
            Number of sockets the message was handed to
        """
        connections = list(self._subscribers.get(deal_id, ()))
        if not connections:
            return 0

        message = build_kpi_message(deal_id, kpis)
        delivered = 0

        for websocket in connections:
            try:
                await websocket.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping subscriber of deal {deal_id}: {str(e)}")
                self.unsubscribe(websocket)

        return delivered


# Singleton instance
_broadcaster: Optional[KPIBroadcaster] = None


def get_broadcaster() -> KPIBroadcaster:
    """Get the KPI broadcaster singleton."""
    global _broadcaster
    if _broadcaster is None:
        _broadcaster = KPIBroadcaster()
    return _broadcaster
