"""
amendflow.portfolio_db
======================

SQLite‑backed implementation of the PortfolioManager public surface.

This adapter wraps the CRUD helpers in :pymod:`amendflow.db` so that any
code expecting the in‑memory PortfolioManager can switch to a
persistent store without changing its API calls.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterator, List, Optional

from sqlmodel import Session

from amendflow import db
from amendflow.db import SessionLocal
from amendflow.models import Amendment, Contract, ContractStatus, ManualStatus, NotificationSettings
from amendflow.portfolio import StaleAmendmentError, default_notification_settings
from amendflow.settings import settings
from amendflow.status import ContractView, build_contract_view

logger = logging.getLogger(__name__)


class DBPortfolioManager:
    """
    Drop‑in replacement backed by SQLite.

    Methods mirror the in‑memory PortfolioManager:
    * add_contract / get_contract / delete_contract / set_manual_status
    * add_amendment / get_amendment / amendments_for / save_amendment
    * notification_settings / save_notification_settings
    * views / view / find_by_status
    * iteration / len()
    """

    def __init__(self, session: Session | None = None) -> None:
        self._session: Session = session or SessionLocal()

    # ------------------------------------------------------------ contracts
    def add_contract(self, contract: Contract) -> Contract:
        return db.upsert_contract(self._session, contract)

    def get_contract(self, contract_id: int) -> Contract:
        contract = db.get_contract(self._session, contract_id)
        if contract is None:
            raise KeyError(contract_id)
        return contract

    def delete_contract(self, contract_id: int) -> None:
        removed = db.delete_contract(self._session, contract_id)
        logger.info(f"Deleted contract {contract_id} and {removed} amendments")

    def set_manual_status(self, contract_id: int, status: ManualStatus | str) -> Contract:
        contract = self.get_contract(contract_id)
        contract.manual_status = ManualStatus.parse(status)
        return db.upsert_contract(self._session, contract)

    # ----------------------------------------------------------- amendments
    def add_amendment(self, amendment: Amendment) -> Amendment:
        return db.insert_amendment(self._session, amendment)

    def get_amendment(self, amendment_id: int) -> Amendment:
        amendment = db.get_amendment(self._session, amendment_id)
        if amendment is None:
            raise KeyError(amendment_id)
        return amendment

    def amendments_for(self, contract_id: int) -> List[Amendment]:
        return db.amendments_for(self._session, contract_id)

    def all_amendments(self) -> List[Amendment]:
        return db.amendments_for(self._session)

    def save_amendment(self, amendment: Amendment) -> Amendment:
        stored = db.stored_version(self._session, amendment.id)
        if stored != amendment.version:
            raise StaleAmendmentError(amendment.id, amendment.version, stored)
        db.update_amendment(self._session, amendment)
        logger.info(f"Saved amendment {amendment.id} at version {amendment.version} ({amendment.status.value})")
        return amendment

    def delete_amendment(self, amendment_id: int) -> None:
        row = self._session.get(db.AmendmentDB, amendment_id)
        if row is None:
            raise KeyError(amendment_id)
        self._session.delete(row)
        self._session.commit()

    # ------------------------------------------------ notification settings
    def notification_settings(self) -> NotificationSettings:
        return db.load_notification_settings(self._session) or default_notification_settings()

    def save_notification_settings(self, value: NotificationSettings) -> NotificationSettings:
        db.store_notification_settings(self._session, value)
        return value

    # -------------------------------------------------------- derived views
    def views(self, today: Optional[date] = None) -> List[ContractView]:
        amendments = self.all_amendments()
        return [
            build_contract_view(
                c, amendments, today=today,
                warning_days=settings.contract_warning_days,
                lenient=settings.lenient_dates,
            )
            for c in self
        ]

    def view(self, contract_id: int, today: Optional[date] = None) -> ContractView:
        return build_contract_view(
            self.get_contract(contract_id), self.amendments_for(contract_id), today=today,
            warning_days=settings.contract_warning_days,
            lenient=settings.lenient_dates,
        )

    def find_by_status(self, status: ContractStatus, today: Optional[date] = None) -> List[Contract]:
        return [v.contract for v in self.views(today) if v.status is status]

    # ------------------------------------------------------ dunder helpers
    def __iter__(self) -> Iterator[Contract]:
        yield from db.all_contracts(self._session)

    def __len__(self) -> int:
        return len(db.all_contracts(self._session))

    # ----------------------------------------------------- context manager
    def __enter__(self) -> "DBPortfolioManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._session.close()
