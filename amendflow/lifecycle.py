"""
amendflow.lifecycle
===================

State machine for the amendment approval checklist.

The status of an amendment is a pure function of its checklist
(:pyfunc:`compute_status`).  Every helper in this module that changes a
checklist finishes through :pyfunc:`recompute`, so the cached
``Amendment.status`` can never drift from the steps that produced it.

Steps may be toggled in any order; the first-match rule table below is
what imposes the effective ordering.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, List, Mapping, Optional, Tuple

from .dates import DateLike
from .models import (
    Amendment,
    AmendmentChecklist,
    AmendmentStatus,
    AmendmentType,
    DurationUnit,
    FILING_KEYS,
    FilingChecklist,
    HistoryTag,
    LegalDecision,
    LegalReviewEntry,
)

logger = logging.getLogger(__name__)


class ChecklistTransitionError(ValueError):
    """A checklist update or workflow action that would break an invariant."""


# ---------------------------------------------------------------------
# Status rules: evaluated top-down, first match wins
# ---------------------------------------------------------------------
RULES: List[Tuple[Callable[[AmendmentChecklist], bool], AmendmentStatus]] = [
    (lambda c: c.step8,                                          AmendmentStatus.CONCLUDED),
    (lambda c: c.step7.complete,                                 AmendmentStatus.PUBLICATION),
    (lambda c: c.step6,                                          AmendmentStatus.EXECUTIVE_SIGNATURE),
    (lambda c: c.step5,                                          AmendmentStatus.SENT_FOR_SUPPLIER_SIGNATURE),
    (lambda c: c.step4 is LegalDecision.APPROVED,                AmendmentStatus.READY_FOR_SIGNATURE),
    (lambda c: c.step4 is LegalDecision.APPROVED_WITH_RESERVATION, AmendmentStatus.ADJUSTMENTS_NEEDED),
    (lambda c: c.step4 is LegalDecision.REJECTED,                AmendmentStatus.LEGAL_REJECTED),
    (lambda c: c.step3,                                          AmendmentStatus.LEGAL_REVIEW),
]


def compute_status(checklist: AmendmentChecklist) -> AmendmentStatus:
    """
    Derive the status label of a checklist.

    Examples
    --------
    >>> compute_status(AmendmentChecklist(step8=True))
    <AmendmentStatus.CONCLUDED: 'concluded'>
    >>> compute_status(AmendmentChecklist(step1=True))
    <AmendmentStatus.DRAFTING: 'drafting'>
    """
    for matches, status in RULES:
        if matches(checklist):
            return status
    return AmendmentStatus.DRAFTING


def recompute(amendment: Amendment) -> AmendmentStatus:
    """Refresh ``amendment.status`` from its checklist and return it."""
    amendment.status = compute_status(amendment.checklist)
    return amendment.status


# ---------------------------------------------------------------------
# Checklist updates
# ---------------------------------------------------------------------
_BOOLEAN_STEPS = {"step1", "step2", "step3", "step5", "step6", "step8"}


def _check_flag(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ChecklistTransitionError(f"{name} must be a boolean, got {value!r}")
    return value


def apply_checklist_update(
    checklist: AmendmentChecklist,
    updates: Mapping[str, Any],
) -> Tuple[AmendmentChecklist, AmendmentStatus]:
    """
    Merge a partial update into *checklist* and return the new checklist
    together with its status.

    ``updates`` maps step names to new values; ``step7`` takes a partial
    mapping of its four filing flags.  The input checklist is left
    untouched.  The whole update is validated before anything is applied,
    so a rejected update has no effect.
    """
    changes: dict = {}
    filings: dict = {}

    for key, value in updates.items():
        if key in _BOOLEAN_STEPS:
            changes[key] = _check_flag(key, value)
        elif key == "step4":
            try:
                changes[key] = LegalDecision.parse(value) if value is not None else None
            except ValueError as exc:
                raise ChecklistTransitionError(str(exc)) from None
        elif key == "step7":
            if not isinstance(value, Mapping):
                raise ChecklistTransitionError("step7 expects a mapping of filing flags")
            for sub_key, flag in value.items():
                if sub_key not in FILING_KEYS:
                    raise ChecklistTransitionError(f"unknown step7 filing {sub_key!r}")
                filings[FILING_KEYS[sub_key]] = _check_flag(f"step7.{sub_key}", flag)
        else:
            raise ChecklistTransitionError(f"unknown checklist step {key!r}")

    step7: FilingChecklist = replace(checklist.step7, **filings)
    updated = replace(checklist, step7=step7, **changes)
    return updated, compute_status(updated)


def update_checklist(amendment: Amendment, updates: Mapping[str, Any]) -> Amendment:
    """Apply *updates* to ``amendment.checklist`` in place and recompute."""
    amendment.checklist, _ = apply_checklist_update(amendment.checklist, updates)
    recompute(amendment)
    return amendment


# ---------------------------------------------------------------------
# Workflow actions
# ---------------------------------------------------------------------
def open_amendment(
    contract_id: int,
    type: AmendmentType | str,
    duration: float = 0,
    duration_unit: DurationUnit | str | None = None,
    entry_date: Optional[DateLike] = None,
    event_name: str = "",
) -> Amendment:
    """Start a new amendment with step 1 (process opened) already ticked."""
    amendment = Amendment(
        contract_id=contract_id,
        type=AmendmentType.parse(type),
        duration=duration,
        duration_unit=DurationUnit.parse(duration_unit) if duration_unit else None,
        entry_date=entry_date,
        event_name=event_name.upper().strip(),
        checklist=AmendmentChecklist(step1=True),
    )
    recompute(amendment)
    return amendment


def _log_entry(amendment: Amendment, tag: HistoryTag, notes: str,
               author: Optional[str], now: Optional[datetime]) -> LegalReviewEntry:
    entry = LegalReviewEntry(date=now or datetime.now(), notes=notes, decision=tag, author=author)
    amendment.history.append(entry)
    return entry


def record_legal_decision(
    amendment: Amendment,
    decision: LegalDecision | str,
    note: Optional[str] = None,
    author: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Amendment:
    """
    Record a legal ruling on *amendment* (mutated in place).

    Appends a history entry carrying the ruling and the working note,
    sets step 4 to the ruling, clears step 3 (the amendment leaves the
    review queue), clears the working note and recomputes the status.
    *note* defaults to the amendment's current working note.
    """
    try:
        ruling = LegalDecision.parse(decision)
    except ValueError as exc:
        raise ChecklistTransitionError(str(exc)) from None

    notes = amendment.legal_notes if note is None else note
    _log_entry(amendment, HistoryTag.parse(ruling.value), notes, author, now)

    amendment.checklist = replace(amendment.checklist, step3=False, step4=ruling)
    amendment.legal_decision = ruling
    amendment.legal_notes = ""
    recompute(amendment)
    logger.info(f"Amendment {amendment.id}: legal ruling {ruling.value} by {author or 'unknown'}")
    return amendment


def record_comment(
    amendment: Amendment,
    note: Optional[str] = None,
    author: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Amendment:
    """
    Append a ``comment`` history entry without touching the checklist.

    *note* defaults to the working note, which is cleared afterwards.
    An empty comment raises :class:`ValueError`.
    """
    notes = amendment.legal_notes if note is None else note
    if not notes or not notes.strip():
        raise ValueError("cannot post an empty comment")
    _log_entry(amendment, HistoryTag.COMMENT, notes, author, now)
    amendment.legal_notes = ""
    return amendment


def reset_rejected_amendment(
    amendment: Amendment,
    author: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Amendment:
    """
    Send a rejected amendment back for another legal review.

    Only valid while step 4 is ``rejected``; otherwise
    :class:`ChecklistTransitionError` is raised and nothing changes.
    The current working note is archived in the history under the
    rejection tag, step 4 returns to ``None`` and the working note is
    cleared.  Step 3 is ticked again so the amendment lands back in
    ``LEGAL_REVIEW``.
    """
    current = amendment.checklist.step4
    if current is not LegalDecision.REJECTED:
        label = current.value if current else "none"
        raise ChecklistTransitionError(f"reset needs a rejected ruling, step4 is {label}")

    tag = HistoryTag.parse((amendment.legal_decision or LegalDecision.REJECTED).value)
    _log_entry(amendment, tag, amendment.legal_notes, author, now)

    amendment.checklist = replace(amendment.checklist, step3=True, step4=None)
    amendment.legal_decision = None
    amendment.legal_notes = ""
    recompute(amendment)
    logger.info(f"Amendment {amendment.id}: rejected ruling reset for resubmission")
    return amendment
