"""
API routes for the deal KPI engine.
"""

from fastapi import APIRouter

from dealkpi.api import properties, deals, calculations, ws

router = APIRouter()

# Include sub-routers
router.include_router(properties.router, prefix="/properties", tags=["properties"])
router.include_router(deals.router, prefix="/deals", tags=["deals"])
router.include_router(calculations.router, prefix="/calculate", tags=["calculations"])

# WebSocket route is mounted on the app root at /ws
ws_router = ws.router
