"""
api.deps
========

FastAPI dependency providers.

`get_portfolio` returns a **DBPortfolioManager** so every request talks
to the persistent SQLite store.  Tests swap it for the in‑memory
PortfolioManager through ``app.dependency_overrides``.
"""

from functools import lru_cache

from amendflow.db import create_all
from amendflow.portfolio_db import DBPortfolioManager
from amendflow.settings import settings


@lru_cache
def get_portfolio() -> DBPortfolioManager:
    """Singleton DB‑backed portfolio manager (persists across requests)."""
    create_all()
    return DBPortfolioManager()


@lru_cache
def get_settings():
    """Return application settings."""
    return settings
