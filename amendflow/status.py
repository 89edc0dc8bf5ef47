"""
amendflow.status
================

Contract-level status derived from the effective expiration date.

Status is a view, never a column: :func:`derive_contract_status` always
returns the day count and the status together, and
:func:`build_contract_view` joins everything a list or dashboard row
needs (effective date, status, in-flight amendment badge, renewal window)
from the raw contract and amendment records.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from .dates import DateLike, days_until, months_between
from .folding import active_amendment, active_amendment_label, effective_end_date, preview_end_date
from .models import ActiveAmendmentLabel, Amendment, Contract, ContractStatus, ManualStatus

# days remaining at or below which an active contract turns into a warning
WARNING_WINDOW_DAYS = 30

# renewal ceilings in months
EMERGENCY_LIMIT_MONTHS = 12
STANDARD_LIMIT_MONTHS = 60
EXTENDED_LIMIT_MONTHS = 120


@dataclass(frozen=True)
class ContractSnapshot:
    """Days remaining and status, always computed as a pair."""
    days_remaining: Optional[int]
    status: ContractStatus


def derive_contract_status(
    contract: Contract,
    end_date: Optional[DateLike],
    today: Optional[date] = None,
    warning_days: int = WARNING_WINDOW_DAYS,
    lenient: bool = True,
) -> ContractSnapshot:
    """
    Status of *contract* given its effective *end_date*.

    A manual executed/rescinded override always wins and skips the date
    arithmetic (``days_remaining`` is then ``None``).  Otherwise a negative
    day count is ``expired``, up to *warning_days* is ``warning`` and
    anything further out is ``active``.
    """
    if contract.manual_status is ManualStatus.EXECUTED:
        return ContractSnapshot(None, ContractStatus.EXECUTED)
    if contract.manual_status is ManualStatus.RESCINDED:
        return ContractSnapshot(None, ContractStatus.RESCINDED)

    remaining = days_until(end_date, today=today, lenient=lenient)
    if remaining < 0:
        status = ContractStatus.EXPIRED
    elif remaining <= warning_days:
        status = ContractStatus.WARNING
    else:
        status = ContractStatus.ACTIVE
    return ContractSnapshot(remaining, status)


@dataclass(frozen=True)
class RenewalInfo:
    """How much of the legal renewal ceiling a contract has used."""
    months_used: int
    limit: int

    @property
    def months_left(self) -> int:
        return self.limit - self.months_used

    @property
    def exhausted(self) -> bool:
        return self.months_left <= 0


def renewal_info(
    start_date: Optional[DateLike],
    end_date: Optional[DateLike],
    is_emergency: bool = False,
) -> RenewalInfo:
    """
    Months used between *start_date* and *end_date* against the ceiling.

    Emergency contracts cap at 12 months.  Others cap at 60, and once 60
    months are used the extended 120-month ceiling applies.
    """
    used = months_between(start_date, end_date)
    if is_emergency:
        limit = EMERGENCY_LIMIT_MONTHS
    elif used < STANDARD_LIMIT_MONTHS:
        limit = STANDARD_LIMIT_MONTHS
    else:
        limit = EXTENDED_LIMIT_MONTHS
    return RenewalInfo(months_used=used, limit=limit)


@dataclass(frozen=True)
class ContractView:
    """A contract joined with everything derived from its amendments."""
    contract: Contract
    effective_end_date: Optional[DateLike]
    preview_end_date: Optional[DateLike]
    days_remaining: Optional[int]
    status: ContractStatus
    active_amendment: Optional[ActiveAmendmentLabel]
    renewal: RenewalInfo


def build_contract_view(
    contract: Contract,
    amendments: Iterable[Amendment],
    today: Optional[date] = None,
    warning_days: int = WARNING_WINDOW_DAYS,
    lenient: bool = True,
) -> ContractView:
    """Derive the full read-side projection of one contract."""
    amendments = list(amendments)
    effective = effective_end_date(contract, amendments, lenient=lenient)
    preview = preview_end_date(contract, amendments, lenient=lenient)
    snapshot = derive_contract_status(
        contract, effective, today=today, warning_days=warning_days, lenient=lenient
    )
    return ContractView(
        contract=contract,
        effective_end_date=effective,
        preview_end_date=preview,
        days_remaining=snapshot.days_remaining,
        status=snapshot.status,
        active_amendment=active_amendment_label(active_amendment(contract, amendments)),
        renewal=renewal_info(contract.start_date, preview, contract.is_emergency),
    )


def build_contract_views(
    contracts: Iterable[Contract],
    amendments: Iterable[Amendment],
    today: Optional[date] = None,
    warning_days: int = WARNING_WINDOW_DAYS,
    lenient: bool = True,
) -> List[ContractView]:
    """:func:`build_contract_view` over a flat list of contracts and amendments."""
    amendments = list(amendments)
    return [
        build_contract_view(c, amendments, today=today, warning_days=warning_days, lenient=lenient)
        for c in contracts
    ]
