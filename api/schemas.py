"""
api.schemas
===========

Request / response models for the HTTP layer, plus the converters from
:pymod:`amendflow` dataclasses.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from amendflow.dates import parse_date
from amendflow.models import Amendment, Contract, DocumentKind, ManualStatus, NotificationSettings
from amendflow.notifications import PendingNotification
from amendflow.status import ContractView


# ---------- contracts ----------
class ContractIn(BaseModel):
    code: str
    end_date: Optional[date] = None
    number: Optional[int] = None
    year: Optional[int] = None
    kind: str = DocumentKind.CONTRACT.value
    department: str = ""
    object: str = ""
    supplier: str = ""
    start_date: Optional[date] = None
    is_emergency: bool = False
    manual_status: str = ManualStatus.NONE.value
    notes: Optional[str] = None

    def to_contract(self, contract_id: Optional[int] = None) -> Contract:
        return Contract(
            id=contract_id,
            code=self.code.upper().strip(),
            end_date=self.end_date,
            number=self.number,
            year=self.year,
            kind=DocumentKind.parse(self.kind),
            department=self.department.upper().strip(),
            object=self.object.upper().strip(),
            supplier=self.supplier.upper().strip(),
            start_date=self.start_date,
            is_emergency=self.is_emergency,
            manual_status=ManualStatus.parse(self.manual_status),
            notes=self.notes,
        )


class ContractOut(BaseModel):
    id: int
    identifier: str
    kind: str
    department: str
    object: str
    supplier: str
    manual_status: str
    base_end_date: Optional[date]
    effective_end_date: Optional[date]
    preview_end_date: Optional[date]
    days_remaining: Optional[int]
    status: str
    active_amendment: Optional[str]
    renewal_months_used: int
    renewal_limit: int
    renewal_months_left: int

    @classmethod
    def from_view(cls, view: ContractView) -> "ContractOut":
        c = view.contract
        return cls(
            id=c.id,
            identifier=c.identifier,
            kind=c.kind.value,
            department=c.department,
            object=c.object,
            supplier=c.supplier,
            manual_status=c.manual_status.value,
            base_end_date=parse_date(c.end_date),
            effective_end_date=parse_date(view.effective_end_date),
            preview_end_date=parse_date(view.preview_end_date),
            days_remaining=view.days_remaining,
            status=view.status.value,
            active_amendment=view.active_amendment.value if view.active_amendment else None,
            renewal_months_used=view.renewal.months_used,
            renewal_limit=view.renewal.limit,
            renewal_months_left=view.renewal.months_left,
        )


class ManualStatusIn(BaseModel):
    manual_status: str = Field(..., description="none, executed or rescinded")


# ---------- amendments ----------
class AmendmentIn(BaseModel):
    type: str = Field(..., description="term or value")
    duration: float = 0
    duration_unit: Optional[str] = Field(None, description="day, month or year")
    entry_date: Optional[date] = None
    event_name: str = ""


class AmendmentOut(BaseModel):
    id: int
    contract_id: int
    type: str
    duration: float
    duration_unit: Optional[str]
    event_name: str
    entry_date: Optional[date]
    status: str
    checklist: Dict[str, Any]
    legal_notes: str
    legal_decision: Optional[str]
    history: List[Dict[str, Any]]
    created_at: Optional[datetime]
    version: int

    @classmethod
    def from_amendment(cls, a: Amendment) -> "AmendmentOut":
        return cls(
            id=a.id,
            contract_id=a.contract_id,
            type=a.type.value,
            duration=a.duration,
            duration_unit=a.duration_unit.value if a.duration_unit else None,
            event_name=a.event_name,
            entry_date=parse_date(a.entry_date),
            status=a.status.value,
            checklist=a.checklist.to_record(),
            legal_notes=a.legal_notes,
            legal_decision=a.legal_decision.value if a.legal_decision else None,
            history=[entry.to_record() for entry in a.history],
            created_at=a.created_at,
            version=a.version,
        )


class Versioned(BaseModel):
    """Every amendment write carries the version the client last saw."""
    version: int


class ChecklistPatch(Versioned):
    updates: Dict[str, Any]
    legal_notes: Optional[str] = None


class DecisionIn(Versioned):
    decision: str = Field(..., description="approved, rejected or approved_with_reservation")
    note: Optional[str] = None
    author: Optional[str] = None


class CommentIn(Versioned):
    note: str
    author: Optional[str] = None


class ResetIn(Versioned):
    author: Optional[str] = None


# ---------- notifications ----------
class NotificationSettingsIO(BaseModel):
    thresholds: List[int]
    additional_emails: List[str] = []

    @classmethod
    def from_settings(cls, value: NotificationSettings) -> "NotificationSettingsIO":
        return cls(thresholds=list(value.thresholds), additional_emails=list(value.additional_emails))

    def to_settings(self) -> NotificationSettings:
        return NotificationSettings(
            thresholds=sorted({t for t in self.thresholds if t > 0}, reverse=True),
            additional_emails=[e.lower().strip() for e in self.additional_emails if e.strip()],
        )


class PendingOut(BaseModel):
    identifier: str
    kind: str
    object: str
    department: str
    days_remaining: int
    reason: str

    @classmethod
    def from_pending(cls, p: PendingNotification) -> "PendingOut":
        return cls(
            identifier=p.identifier,
            kind=p.kind.value,
            object=p.object,
            department=p.department,
            days_remaining=p.days_remaining,
            reason=p.reason,
        )
