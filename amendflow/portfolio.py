"""
amendflow.portfolio
===================

An in‑memory record store for contracts and their amendments.

This module is intentionally simple, with no database, so that the
contract rules can be unit‑tested without one.  :class:`DBPortfolioManager`
in :pymod:`amendflow.portfolio_db` exposes the same surface over SQLite.

Records are copied on the way in and on the way out, so a caller holding
an :class:`~amendflow.models.Amendment` cannot change the stored one
except through :meth:`PortfolioManager.save_amendment`, which enforces
optimistic versioning.
"""

from __future__ import annotations

import copy
import itertools
import logging
from datetime import date, datetime
from typing import Dict, Iterator, List, Optional

from .lifecycle import recompute
from .models import Amendment, Contract, ContractStatus, ManualStatus, NotificationSettings
from .settings import settings
from .status import ContractView, build_contract_view

logger = logging.getLogger(__name__)


class StaleAmendmentError(RuntimeError):
    """The amendment was changed by someone else since it was loaded."""

    def __init__(self, amendment_id: int, expected: int, stored: int) -> None:
        super().__init__(
            f"amendment {amendment_id} is at version {stored}, update was based on {expected}"
        )
        self.amendment_id = amendment_id
        self.expected = expected
        self.stored = stored


def default_notification_settings() -> NotificationSettings:
    """Notification settings from the environment, used until some are saved."""
    return NotificationSettings(
        thresholds=list(settings.notification_thresholds),
        additional_emails=list(settings.additional_emails),
    )


class PortfolioManager:
    """
    Dictionary‑backed registry of contracts and amendments.

    Example
    -------
    >>> from datetime import date
    >>> from amendflow.models import Contract
    >>> pm = PortfolioManager()
    >>> c = pm.add_contract(Contract("80/2018", date(2025, 6, 30)))
    >>> c.id
    1
    """

    def __init__(self) -> None:
        self._contracts: Dict[int, Contract] = {}
        self._amendments: Dict[int, Amendment] = {}
        self._notification_settings: Optional[NotificationSettings] = None
        self._contract_ids = itertools.count(1)
        self._amendment_ids = itertools.count(1)

    # ------------------------------------------------------------------
    # Contracts
    # ------------------------------------------------------------------
    def add_contract(self, contract: Contract) -> Contract:
        """Insert or overwrite a contract; assigns an id to new ones."""
        if contract.id is None:
            contract.id = next(self._contract_ids)
        self._contracts[contract.id] = copy.deepcopy(contract)
        return contract

    def get_contract(self, contract_id: int) -> Contract:
        """Retrieve by id (raise KeyError if not present)."""
        return copy.deepcopy(self._contracts[contract_id])

    def delete_contract(self, contract_id: int) -> None:
        """Remove a contract together with all of its amendments."""
        del self._contracts[contract_id]
        doomed = [a.id for a in self._amendments.values() if a.contract_id == contract_id]
        for amendment_id in doomed:
            del self._amendments[amendment_id]
        logger.info(f"Deleted contract {contract_id} and {len(doomed)} amendments")

    def set_manual_status(self, contract_id: int, status: ManualStatus | str) -> Contract:
        """Set or clear the executed/rescinded override."""
        self._contracts[contract_id].manual_status = ManualStatus.parse(status)
        return self.get_contract(contract_id)

    # ------------------------------------------------------------------
    # Amendments
    # ------------------------------------------------------------------
    def add_amendment(self, amendment: Amendment) -> Amendment:
        """Store a new amendment of an existing contract (KeyError otherwise)."""
        if amendment.contract_id not in self._contracts:
            raise KeyError(amendment.contract_id)
        amendment.id = next(self._amendment_ids)
        amendment.created_at = amendment.created_at or datetime.now()
        amendment.version = 1
        recompute(amendment)
        self._amendments[amendment.id] = copy.deepcopy(amendment)
        return amendment

    def get_amendment(self, amendment_id: int) -> Amendment:
        return copy.deepcopy(self._amendments[amendment_id])

    def amendments_for(self, contract_id: int) -> List[Amendment]:
        """Amendments of one contract, oldest first."""
        return [copy.deepcopy(a) for a in self._amendments.values() if a.contract_id == contract_id]

    def all_amendments(self) -> List[Amendment]:
        return [copy.deepcopy(a) for a in self._amendments.values()]

    def save_amendment(self, amendment: Amendment) -> Amendment:
        """
        Persist changes to a stored amendment.

        ``amendment.version`` must still match the stored version, else
        :class:`StaleAmendmentError` is raised and nothing is written.  On
        success the status is recomputed and the version bumped.
        """
        stored = self._amendments[amendment.id]
        if stored.version != amendment.version:
            raise StaleAmendmentError(amendment.id, amendment.version, stored.version)
        recompute(amendment)
        amendment.version += 1
        self._amendments[amendment.id] = copy.deepcopy(amendment)
        logger.info(f"Saved amendment {amendment.id} at version {amendment.version} ({amendment.status.value})")
        return amendment

    def delete_amendment(self, amendment_id: int) -> None:
        del self._amendments[amendment_id]

    # ------------------------------------------------------------------
    # Notification settings
    # ------------------------------------------------------------------
    def notification_settings(self) -> NotificationSettings:
        if self._notification_settings is None:
            return default_notification_settings()
        return copy.deepcopy(self._notification_settings)

    def save_notification_settings(self, value: NotificationSettings) -> NotificationSettings:
        self._notification_settings = copy.deepcopy(value)
        return value

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------
    def views(self, today: Optional[date] = None) -> List[ContractView]:
        """Every contract joined with its derived dates and status."""
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
        """Return all contracts whose derived status is *status*."""
        return [v.contract for v in self.views(today) if v.status is status]

    # ------------------------------------------------------------------
    # Dunder helpers for convenience
    # ------------------------------------------------------------------
    def __iter__(self) -> Iterator[Contract]:
        return iter([copy.deepcopy(c) for c in self._contracts.values()])

    def __len__(self) -> int:
        return len(self._contracts)
