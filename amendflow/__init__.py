"""
amendflow
=========

Contract amendment workflow and expiration-date engine for municipal
contract administration.

Import structure
----------------
`import amendflow` is intentionally cheap: nothing is imported by
default.  The persistence layer (*sqlmodel*) is only loaded when you
explicitly access :pymod:`amendflow.db` or :pymod:`amendflow.portfolio_db`.

Sub‑modules
~~~~~~~~~~~
- :pymod:`amendflow.dates`          – ``add_duration`` / ``days_until`` calendar helpers
- :pymod:`amendflow.models`         – ``Contract``, ``Amendment`` and checklist dataclasses + enums
- :pymod:`amendflow.lifecycle`      – checklist state machine (`compute_status`, legal decisions, reset)
- :pymod:`amendflow.folding`        – effective end date from executed term amendments
- :pymod:`amendflow.status`         – contract status, renewal window, joined contract views
- :pymod:`amendflow.notifications`  – exact-day expiration alert rules
- :pymod:`amendflow.portfolio`      – ``PortfolioManager`` in‑memory record store
- :pymod:`amendflow.portfolio_db`   – SQLite‑backed ``DBPortfolioManager``

Quick start
-----------
>>> from datetime import date
>>> from amendflow.models import Contract
>>> from amendflow.lifecycle import open_amendment, update_checklist
>>> from amendflow.folding import effective_end_date
>>> c = Contract("80/2018", date(2024, 1, 1), id=1)
>>> a = open_amendment(1, "term", 1, "month")
>>> effective_end_date(c, [update_checklist(a, {"step8": True})])
datetime.date(2024, 2, 1)

"""

__all__ = [
    "dates",
    "models",
    "lifecycle",
    "folding",
    "status",
    "notifications",
    "portfolio",
    "portfolio_db",
]

__version__ = "0.1.0"
