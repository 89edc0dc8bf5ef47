"""
tests/test_lifecycle.py
=======================

Unit tests for the amendment checklist state machine in amendflow.lifecycle
"""

import itertools
from datetime import datetime

import pytest

from amendflow.lifecycle import (
    ChecklistTransitionError,
    apply_checklist_update,
    compute_status,
    open_amendment,
    record_comment,
    record_legal_decision,
    reset_rejected_amendment,
    update_checklist,
)
from amendflow.models import (
    AmendmentChecklist,
    AmendmentStatus,
    AmendmentType,
    DurationUnit,
    FilingChecklist,
    HistoryTag,
    LegalDecision,
)

NOON = datetime(2024, 5, 2, 12, 0)

ALL_FILED = FilingChecklist(ledger=True, attachments=True, registry=True, purchase_order=True)


def _amendment(**steps):
    amendment = open_amendment(1, "term", 3, "month")
    return update_checklist(amendment, steps) if steps else amendment


# ---------------------------------------------------------------------------
# compute_status
# ---------------------------------------------------------------------------
def test_new_amendment_is_drafting():
    amendment = open_amendment(7, "prazo", 12, "mes", event_name=" renewal ")
    assert amendment.type is AmendmentType.TERM
    assert amendment.duration_unit is DurationUnit.MONTH
    assert amendment.event_name == "RENEWAL"
    assert amendment.checklist.step1 is True
    assert amendment.status is AmendmentStatus.DRAFTING


@pytest.mark.parametrize(
    "checklist, expected",
    [
        (AmendmentChecklist(step3=True), AmendmentStatus.LEGAL_REVIEW),
        (AmendmentChecklist(step3=True, step4=LegalDecision.APPROVED), AmendmentStatus.READY_FOR_SIGNATURE),
        (AmendmentChecklist(step4=LegalDecision.APPROVED_WITH_RESERVATION), AmendmentStatus.ADJUSTMENTS_NEEDED),
        (AmendmentChecklist(step4=LegalDecision.REJECTED), AmendmentStatus.LEGAL_REJECTED),
        (AmendmentChecklist(step4=LegalDecision.REJECTED, step5=True), AmendmentStatus.SENT_FOR_SUPPLIER_SIGNATURE),
        (AmendmentChecklist(step5=True, step6=True), AmendmentStatus.EXECUTIVE_SIGNATURE),
        (AmendmentChecklist(step6=True, step7=ALL_FILED), AmendmentStatus.PUBLICATION),
        (AmendmentChecklist(step8=True), AmendmentStatus.CONCLUDED),
    ],
)
def test_first_matching_rule_wins(checklist, expected):
    assert compute_status(checklist) is expected


def test_partial_filings_do_not_publish():
    checklist = AmendmentChecklist(step6=True, step7=FilingChecklist(ledger=True, attachments=True, registry=True))
    assert compute_status(checklist) is AmendmentStatus.EXECUTIVE_SIGNATURE


def _expected(c):
    if c.step8:
        return AmendmentStatus.CONCLUDED
    if c.step7.complete:
        return AmendmentStatus.PUBLICATION
    if c.step6:
        return AmendmentStatus.EXECUTIVE_SIGNATURE
    if c.step5:
        return AmendmentStatus.SENT_FOR_SUPPLIER_SIGNATURE
    if c.step4 is not None:
        return {
            LegalDecision.APPROVED: AmendmentStatus.READY_FOR_SIGNATURE,
            LegalDecision.APPROVED_WITH_RESERVATION: AmendmentStatus.ADJUSTMENTS_NEEDED,
            LegalDecision.REJECTED: AmendmentStatus.LEGAL_REJECTED,
        }[c.step4]
    if c.step3:
        return AmendmentStatus.LEGAL_REVIEW
    return AmendmentStatus.DRAFTING


def test_every_checklist_has_exactly_one_status():
    """Walk all 2*2*2*4*2*2*16*2 checklists."""
    bools = (False, True)
    rulings = (None,) + tuple(LegalDecision)
    seen = 0
    for s1, s2, s3, s4, s5, s6, filed, s8 in itertools.product(
        bools, bools, bools, rulings, bools, bools, itertools.product(bools, repeat=4), bools
    ):
        checklist = AmendmentChecklist(
            step1=s1, step2=s2, step3=s3, step4=s4, step5=s5, step6=s6,
            step7=FilingChecklist(*filed), step8=s8,
        )
        assert compute_status(checklist) is _expected(checklist)
        seen += 1
    assert seen == 2 * 2 * 2 * 4 * 2 * 2 * 16 * 2


# ---------------------------------------------------------------------------
# apply_checklist_update
# ---------------------------------------------------------------------------
def test_update_is_pure():
    before = AmendmentChecklist(step1=True)
    after, status = apply_checklist_update(before, {"step2": True, "step3": True})
    assert before == AmendmentChecklist(step1=True)
    assert after.step2 and after.step3
    assert status is AmendmentStatus.LEGAL_REVIEW


def test_partial_step7_update_keeps_other_filings():
    before = AmendmentChecklist(step7=FilingChecklist(ledger=True, attachments=True, registry=True))
    after, status = apply_checklist_update(before, {"step7": {"purchaseOrder": True}})
    assert after.step7 == ALL_FILED
    assert status is AmendmentStatus.PUBLICATION


def test_step4_accepts_strings_and_clearing():
    after, status = apply_checklist_update(AmendmentChecklist(), {"step4": "rejected"})
    assert after.step4 is LegalDecision.REJECTED
    assert status is AmendmentStatus.LEGAL_REJECTED
    cleared, _ = apply_checklist_update(after, {"step4": None})
    assert cleared.step4 is None


@pytest.mark.parametrize(
    "updates",
    [
        {"step9": True},
        {"step2": "yes"},
        {"step4": "maybe"},
        {"step7": True},
        {"step7": {"stamp": True}},
        {"step2": True, "step8": 1},
    ],
)
def test_invalid_update_is_rejected_without_effect(updates):
    amendment = _amendment(step2=False)
    snapshot = amendment.checklist
    with pytest.raises(ChecklistTransitionError):
        update_checklist(amendment, updates)
    assert amendment.checklist == snapshot
    assert amendment.status is AmendmentStatus.DRAFTING


# ---------------------------------------------------------------------------
# legal review actions
# ---------------------------------------------------------------------------
def test_legal_decision_side_effects():
    amendment = _amendment(step2=True, step3=True)
    amendment.legal_notes = "clause 4 needs a new budget line"

    record_legal_decision(amendment, "approved_with_reservation", author="Ana", now=NOON)

    assert amendment.checklist.step3 is False
    assert amendment.checklist.step4 is LegalDecision.APPROVED_WITH_RESERVATION
    assert amendment.legal_decision is LegalDecision.APPROVED_WITH_RESERVATION
    assert amendment.legal_notes == ""
    assert amendment.status is AmendmentStatus.ADJUSTMENTS_NEEDED
    entry = amendment.history[-1]
    assert entry.decision is HistoryTag.APPROVED_WITH_RESERVATION
    assert entry.notes == "clause 4 needs a new budget line"
    assert entry.author == "Ana"
    assert entry.date == NOON


def test_legal_decision_rejects_unknown_ruling():
    amendment = _amendment(step3=True)
    with pytest.raises(ChecklistTransitionError):
        record_legal_decision(amendment, "comment")
    assert amendment.history == []


def test_comment_leaves_checklist_alone():
    amendment = _amendment(step3=True)
    record_comment(amendment, note="waiting on the budget office", now=NOON)
    assert amendment.history[-1].decision is HistoryTag.COMMENT
    assert amendment.status is AmendmentStatus.LEGAL_REVIEW


def test_empty_comment_raises():
    amendment = _amendment(step3=True)
    with pytest.raises(ValueError):
        record_comment(amendment, note="   ")


def test_reset_requires_rejection():
    amendment = _amendment(step3=True)
    record_legal_decision(amendment, LegalDecision.APPROVED, note="fine", now=NOON)
    snapshot = amendment.checklist
    with pytest.raises(ChecklistTransitionError):
        reset_rejected_amendment(amendment)
    assert amendment.checklist == snapshot
    assert len(amendment.history) == 1


def test_reset_after_rejection_returns_to_review():
    amendment = _amendment(step2=True, step3=True)
    record_legal_decision(amendment, LegalDecision.REJECTED, note="missing price survey", now=NOON)
    assert amendment.status is AmendmentStatus.LEGAL_REJECTED

    amendment.legal_notes = "price survey attached"
    reset_rejected_amendment(amendment, author="Rui", now=NOON)

    assert amendment.checklist.step4 is None
    assert amendment.checklist.step3 is True
    assert amendment.legal_decision is None
    assert amendment.legal_notes == ""
    assert amendment.status is AmendmentStatus.LEGAL_REVIEW
    assert [e.decision for e in amendment.history] == [HistoryTag.REJECTED, HistoryTag.REJECTED]
    assert amendment.history[-1].notes == "price survey attached"
