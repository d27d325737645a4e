"""
Database configuration and models.
"""

from dealkpi.db.database import engine, SessionLocal, get_db
from dealkpi.db.models import Base

__all__ = ["engine", "SessionLocal", "get_db", "Base"]
