"""
amendflow.models
================

Dataclasses and enums for contracts, their amendments and the eight-step
amendment checklist.  These objects carry **no** persistence or web
dependencies; the record store and the HTTP layer convert to and from
them at their own boundaries.

Raw records coming out of storage may use the legacy vocabulary
(``prazo``/``valor``, ``dia``/``mes``/``ano``) and the legacy checklist
shape where step 5 is ``{"sent": ..., "received": ...}`` instead of a
plain boolean.  :func:`normalize_checklist` and the ``parse`` class
methods fold those variants into one canonical shape at load time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, List, Mapping, Optional

from .dates import DateLike

logger = logging.getLogger(__name__)

# days before expiration on which an alert fires
DEFAULT_THRESHOLDS = (180, 150, 120, 90, 60, 30, 7)


class _Tag(str, Enum):
    """String-valued enum with a lenient ``parse`` for stored values."""

    @classmethod
    def _aliases(cls) -> dict:
        return {}

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        if value is None:
            raise ValueError(f"missing {cls.__name__}")
        key = str(value).strip().lower()
        key = cls._aliases().get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"unknown {cls.__name__}: {value!r}") from None

    def __str__(self) -> str:
        return self.value


def parse_stored(tag_cls, value, default, lenient: bool):
    """``tag_cls.parse`` for stored values; unknown ones become *default* when lenient."""
    try:
        return tag_cls.parse(value)
    except ValueError:
        if not lenient:
            raise
        logger.warning(f"Ignoring unknown {tag_cls.__name__} {value!r} in stored record")
        return default


class AmendmentType(_Tag):
    """A term amendment moves dates, a value amendment only moves money."""
    TERM = "term"
    VALUE = "value"

    @classmethod
    def _aliases(cls) -> dict:
        return {"prazo": "term", "valor": "value"}


class DurationUnit(_Tag):
    DAY = "day"
    MONTH = "month"
    YEAR = "year"

    @classmethod
    def _aliases(cls) -> dict:
        return {
            "dia": "day", "days": "day",
            "mes": "month", "months": "month",
            "ano": "year", "years": "year",
        }


class LegalDecision(_Tag):
    """Outcome of the legal review (checklist step 4)."""
    APPROVED = "approved"
    REJECTED = "rejected"
    APPROVED_WITH_RESERVATION = "approved_with_reservation"


class HistoryTag(_Tag):
    """Tag of a legal-review history entry: a ruling or a plain comment."""
    APPROVED = "approved"
    REJECTED = "rejected"
    APPROVED_WITH_RESERVATION = "approved_with_reservation"
    COMMENT = "comment"


class AmendmentStatus(_Tag):
    """Status label derived from the checklist, in workflow order."""
    DRAFTING = "drafting"
    LEGAL_REVIEW = "legal_review"
    LEGAL_REJECTED = "legal_rejected"
    ADJUSTMENTS_NEEDED = "adjustments_needed"
    READY_FOR_SIGNATURE = "ready_for_signature"
    SENT_FOR_SUPPLIER_SIGNATURE = "sent_for_supplier_signature"
    EXECUTIVE_SIGNATURE = "executive_signature"
    PUBLICATION = "publication"
    CONCLUDED = "concluded"


class ActiveAmendmentLabel(_Tag):
    """Short badge for the term amendment still in flight on a contract."""
    LEGAL_APPROVED = "legal_approved"
    LEGAL_REJECTED = "legal_rejected"
    LEGAL_RESERVATION = "legal_reservation"
    LEGAL_COMMENT = "legal_comment"
    IN_LEGAL_REVIEW = "in_legal_review"
    IN_DRAFTING = "in_drafting"


class ManualStatus(_Tag):
    NONE = "none"
    EXECUTED = "executed"
    RESCINDED = "rescinded"

    @classmethod
    def _aliases(cls) -> dict:
        return {"automatic": "none", "": "none"}


class ContractStatus(_Tag):
    ACTIVE = "active"
    WARNING = "warning"
    EXPIRED = "expired"
    EXECUTED = "executed"
    RESCINDED = "rescinded"


class DocumentKind(_Tag):
    """Contracts and price-registration minutes expire the same way."""
    CONTRACT = "contract"
    MINUTE = "minute"


# ---------------------------------------------------------------------
# Checklist
# ---------------------------------------------------------------------
@dataclass
class FilingChecklist:
    """Step 7: the four administrative filings, all required."""
    ledger: bool = False
    attachments: bool = False
    registry: bool = False
    purchase_order: bool = False

    @property
    def complete(self) -> bool:
        return self.ledger and self.attachments and self.registry and self.purchase_order


@dataclass
class AmendmentChecklist:
    """
    The eight ordered approval steps of an amendment.

    Parameters
    ----------
    step1 : bool
        Process opened.
    step2 : bool
        Draft prepared.
    step3 : bool
        Currently awaiting legal review.
    step4 : LegalDecision | None
        Legal ruling; ``None`` until one is received.
    step5 : bool
        Supplier signature obtained.
    step6 : bool
        Mayor signature obtained.
    step7 : FilingChecklist
        Administrative filings.
    step8 : bool
        Witness signatures obtained; the amendment is executed.
    legacy_step5_received : bool
        Set only when the stored record used the old ``{"received": ...}``
        shape for step 5 with ``received`` true.  Such records are treated
        as executed when folding dates.
    """
    step1: bool = False
    step2: bool = False
    step3: bool = False
    step4: Optional[LegalDecision] = None
    step5: bool = False
    step6: bool = False
    step7: FilingChecklist = field(default_factory=FilingChecklist)
    step8: bool = False
    legacy_step5_received: bool = False

    def to_record(self) -> dict:
        """Canonical JSON-friendly shape used by the record store."""
        return {
            "step1": self.step1,
            "step2": self.step2,
            "step3": self.step3,
            "step4": self.step4.value if self.step4 else None,
            "step5": self.step5,
            "step6": self.step6,
            "step7": {
                "ledger": self.step7.ledger,
                "attachments": self.step7.attachments,
                "registry": self.step7.registry,
                "purchase_order": self.step7.purchase_order,
            },
            "step8": self.step8,
            "legacy_step5_received": self.legacy_step5_received,
        }


# stored step-7 keys -> FilingChecklist attributes
FILING_KEYS = {
    "ledger": "ledger",
    "grp": "ledger",
    "attachments": "attachments",
    "registry": "registry",
    "licitacon": "registry",
    "purchase_order": "purchase_order",
    "purchaseOrder": "purchase_order",
}


def normalize_checklist(
    raw: Mapping[str, Any] | AmendmentChecklist | None,
    lenient: bool = True,
) -> AmendmentChecklist:
    """
    Build an :class:`AmendmentChecklist` from a stored record.

    Handles both step-5 shapes (plain boolean, or ``{"sent", "received"}``)
    and both spellings of the step-7 filing keys.  Missing keys take their
    defaults.  An unknown step-4 value is dropped (``None``, logged) under
    the lenient policy and raises :class:`ValueError` otherwise.
    """
    if isinstance(raw, AmendmentChecklist):
        return raw
    raw = raw or {}

    step5 = raw.get("step5", False)
    legacy_received = bool(raw.get("legacy_step5_received", False))
    if isinstance(step5, Mapping):
        received = bool(step5.get("received", False))
        legacy_received = legacy_received or received
        # sent to the supplier is enough for the step-5 status
        step5 = bool(step5.get("sent", False)) or received

    filings = FilingChecklist()
    for key, value in (raw.get("step7") or {}).items():
        if key in FILING_KEYS:
            setattr(filings, FILING_KEYS[key], bool(value))

    step4 = raw.get("step4")
    return AmendmentChecklist(
        step1=bool(raw.get("step1", False)),
        step2=bool(raw.get("step2", False)),
        step3=bool(raw.get("step3", False)),
        step4=parse_stored(LegalDecision, step4, None, lenient) if step4 else None,
        step5=bool(step5),
        step6=bool(raw.get("step6", False)),
        step7=filings,
        step8=bool(raw.get("step8", False)),
        legacy_step5_received=legacy_received,
    )


# ---------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------
@dataclass
class LegalReviewEntry:
    """One line of an amendment's append-only legal-review log."""
    date: datetime
    notes: str
    decision: HistoryTag
    author: Optional[str] = None

    def to_record(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "notes": self.notes,
            "decision": self.decision.value,
            "author": self.author,
        }

    @classmethod
    def from_record(cls, raw: Mapping[str, Any], lenient: bool = True) -> "LegalReviewEntry":
        stamp = raw.get("date")
        if not isinstance(stamp, datetime):
            try:
                stamp = datetime.fromisoformat(str(stamp))
            except ValueError:
                stamp = datetime.min
        return cls(
            date=stamp,
            notes=raw.get("notes") or "",
            decision=parse_stored(HistoryTag, raw.get("decision") or HistoryTag.COMMENT, HistoryTag.COMMENT, lenient),
            author=raw.get("author") or raw.get("analyst"),
        )


@dataclass
class Contract:
    """
    A contract (or price-registration minute) with an expiration date.

    ``end_date`` is the originally contracted expiration; the effective
    one is derived by folding in executed term amendments and is never
    stored here.
    """
    code: str
    end_date: Optional[DateLike]
    id: Optional[int] = None
    number: Optional[int] = None
    year: Optional[int] = None
    kind: DocumentKind = DocumentKind.CONTRACT
    department: str = ""
    object: str = ""
    supplier: str = ""
    start_date: Optional[DateLike] = None
    is_emergency: bool = False
    manual_status: ManualStatus = ManualStatus.NONE
    notes: Optional[str] = None

    @property
    def identifier(self) -> str:
        """Display code, falling back to ``number/year``."""
        if self.code:
            return self.code
        return f"{self.number}/{self.year}"

    @property
    def is_closed(self) -> bool:
        """True when a manual executed/rescinded override is set."""
        return self.manual_status in (ManualStatus.EXECUTED, ManualStatus.RESCINDED)


@dataclass
class Amendment:
    """
    A term or value amendment of one contract.

    ``status`` is a cache of :func:`amendflow.lifecycle.compute_status`
    over ``checklist``; every mutating operation in
    :pymod:`amendflow.lifecycle` refreshes it.  ``version`` is bumped by
    the record store on each successful save.
    """
    contract_id: int
    type: AmendmentType
    duration: float = 0
    duration_unit: Optional[DurationUnit] = None
    id: Optional[int] = None
    event_name: str = ""
    entry_date: Optional[DateLike] = None
    checklist: AmendmentChecklist = field(default_factory=AmendmentChecklist)
    status: AmendmentStatus = AmendmentStatus.DRAFTING
    legal_notes: str = ""
    legal_decision: Optional[LegalDecision] = None
    history: List[LegalReviewEntry] = field(default_factory=list)
    created_at: Optional[datetime] = None
    version: int = 0

    @property
    def is_term(self) -> bool:
        return self.type is AmendmentType.TERM


@dataclass
class NotificationSettings:
    """Day-count milestones for expiration alerts plus extra recipients."""
    thresholds: List[int] = field(default_factory=lambda: list(DEFAULT_THRESHOLDS))
    additional_emails: List[str] = field(default_factory=list)
