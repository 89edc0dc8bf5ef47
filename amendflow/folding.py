"""
amendflow.folding
=================

Folds executed term amendments into a contract's expiration date.

Only term amendments move dates.  A term amendment counts once it is
*executed*: the witnesses signed (step 8), or the record still uses the
legacy step-5 shape with the supplier copy marked as received.

Amendments are applied in a fixed order: ascending entry date (missing
dates last), then creation time, then the order they were given in.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, List, Optional

from .dates import DateLike, add_duration, parse_date
from .models import ActiveAmendmentLabel, Amendment, Contract, HistoryTag, LegalDecision


def is_executed(amendment: Amendment) -> bool:
    """True when *amendment* counts towards the effective end date."""
    checklist = amendment.checklist
    return checklist.step8 or checklist.legacy_step5_received


def fold_order(amendments: Iterable[Amendment]) -> List[Amendment]:
    """Sort amendments into the order their durations are applied."""
    def key(amendment: Amendment):
        entry = parse_date(amendment.entry_date)
        return (
            entry is None,
            entry or date.min,
            amendment.created_at or datetime.max,
        )

    return sorted(amendments, key=key)


def _term_amendments(contract: Contract, amendments: Iterable[Amendment]) -> List[Amendment]:
    return [
        a for a in amendments
        if a.contract_id == contract.id and a.is_term
    ]


def fold(base: Optional[DateLike], amendments: Iterable[Amendment], lenient: bool = True) -> Optional[DateLike]:
    """Thread *base* through each amendment's duration, in fold order."""
    current = base
    for amendment in fold_order(amendments):
        current = add_duration(current, amendment.duration, amendment.duration_unit, lenient=lenient)
    return current


def effective_end_date(
    contract: Contract,
    amendments: Iterable[Amendment],
    lenient: bool = True,
) -> Optional[DateLike]:
    """
    Contract expiration after all executed term amendments.

    *amendments* may hold records of other contracts; they are ignored.
    With nothing to fold, the contract's own ``end_date`` comes back
    unchanged.
    """
    executed = [a for a in _term_amendments(contract, amendments) if is_executed(a)]
    return fold(contract.end_date, executed, lenient=lenient)


def preview_end_date(
    contract: Contract,
    amendments: Iterable[Amendment],
    lenient: bool = True,
) -> Optional[DateLike]:
    """Expiration the contract would reach if every term amendment went through."""
    return fold(contract.end_date, _term_amendments(contract, amendments), lenient=lenient)


# ---------------------------------------------------------------------
# In-flight amendment badge
# ---------------------------------------------------------------------
def active_amendment(contract: Contract, amendments: Iterable[Amendment]) -> Optional[Amendment]:
    """First term amendment of *contract* whose witnesses have not signed yet."""
    for amendment in amendments:
        if amendment.contract_id == contract.id and amendment.is_term and not amendment.checklist.step8:
            return amendment
    return None


_RULING_LABELS = {
    LegalDecision.APPROVED: ActiveAmendmentLabel.LEGAL_APPROVED,
    LegalDecision.REJECTED: ActiveAmendmentLabel.LEGAL_REJECTED,
    LegalDecision.APPROVED_WITH_RESERVATION: ActiveAmendmentLabel.LEGAL_RESERVATION,
}


def active_amendment_label(amendment: Optional[Amendment]) -> Optional[ActiveAmendmentLabel]:
    """
    Short badge for an in-flight amendment, ``None`` when there is none.

    This is a coarse projection of the checklist for list views; the
    authoritative label is :func:`amendflow.lifecycle.compute_status`.
    """
    if amendment is None:
        return None
    checklist = amendment.checklist
    if checklist.step4 is not None:
        return _RULING_LABELS[checklist.step4]
    if checklist.step3:
        last = amendment.history[-1] if amendment.history else None
        if last is not None and last.decision is HistoryTag.COMMENT:
            return ActiveAmendmentLabel.LEGAL_COMMENT
        return ActiveAmendmentLabel.IN_LEGAL_REVIEW
    return ActiveAmendmentLabel.IN_DRAFTING
