"""
Application services module.
"""

from dealkpi.services.legacy_adapter import LegacyDataError, property_financials_from_legacy
from dealkpi.services.notifications import KPIBroadcaster, get_broadcaster
from dealkpi.services.snapshots import load_deal, property_to_financials

__all__ = [
    "LegacyDataError",
    "property_financials_from_legacy",
    "KPIBroadcaster",
    "get_broadcaster",
    "load_deal",
    "property_to_financials",
]
