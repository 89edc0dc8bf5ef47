"""
amendflow.db
============

SQLite persistence layer for contracts and amendments.

This module exposes:

* ``engine`` – a global SQLModel engine pointing at the configured DB file
* ``SessionLocal`` – a session factory used via ``with SessionLocal() as s:``
* ``create_all()`` – helper to create tables at first run
* CRUD helpers that convert between ORM rows and :pymod:`amendflow.models`

The ``status`` column of an amendment is a cache of its checklist; it is
recomputed on every write and again on every read.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import Column, DateTime, JSON
from sqlalchemy.engine import Engine
from sqlmodel import Field, Session, SQLModel, create_engine, select

from amendflow.dates import parse_date
from amendflow.lifecycle import recompute
from amendflow.models import (
    Amendment,
    AmendmentType,
    Contract,
    DocumentKind,
    DurationUnit,
    LegalDecision,
    LegalReviewEntry,
    ManualStatus,
    NotificationSettings,
    normalize_checklist,
    parse_stored,
)
from amendflow.settings import DB_ECHO, DB_URL, settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Engine (SQLite file lives in project root unless AMENDFLOW_DB_FILE is set)
# ---------------------------------------------------------------------------
engine = create_engine(DB_URL, echo=DB_ECHO)


# ---------------------------------------------------------------------------
# Session factory
# ---------------------------------------------------------------------------
def SessionLocal(bind: Optional[Engine] = None) -> Session:  # noqa: N802 (factory camel‑case for consistency with FastAPI docs)
    """Return a new Session bound to *bind* or the global engine."""
    return Session(bind or engine)


# ---------------------------------------------------------------------------
# ORM models that mirror amendflow.models
# ---------------------------------------------------------------------------
class ContractDB(SQLModel, table=True):
    """SQLite‑backed representation of a :class:`amendflow.models.Contract`."""

    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(index=True)
    number: Optional[int] = None
    year: Optional[int] = None
    kind: str = DocumentKind.CONTRACT.value
    department: str = ""
    object: str = ""
    supplier: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_emergency: bool = False
    manual_status: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_contract(cls, contract: Contract) -> "ContractDB":
        """Create a DB row from an in‑memory contract."""
        manual = contract.manual_status
        return cls(
            id=contract.id,
            code=contract.code,
            number=contract.number,
            year=contract.year,
            kind=contract.kind.value,
            department=contract.department,
            object=contract.object,
            supplier=contract.supplier,
            start_date=parse_date(contract.start_date),
            end_date=parse_date(contract.end_date),
            is_emergency=contract.is_emergency,
            manual_status=None if manual is ManualStatus.NONE else manual.value,
            notes=contract.notes,
        )

    def to_contract(self) -> Contract:
        """Convert the DB row back into a plain Contract."""
        return Contract(
            id=self.id,
            code=self.code,
            end_date=self.end_date,
            number=self.number,
            year=self.year,
            kind=DocumentKind.parse(self.kind),
            department=self.department or "",
            object=self.object or "",
            supplier=self.supplier or "",
            start_date=self.start_date,
            is_emergency=bool(self.is_emergency),
            manual_status=ManualStatus.parse(self.manual_status or "none"),
            notes=self.notes,
        )


class AmendmentDB(SQLModel, table=True):
    """SQLite‑backed representation of a :class:`amendflow.models.Amendment`."""

    id: Optional[int] = Field(default=None, primary_key=True)
    contract_id: int = Field(foreign_key="contractdb.id", index=True)
    type: str
    duration: float = 0
    duration_unit: Optional[str] = None
    event_name: str = ""
    entry_date: Optional[date] = None
    checklist: dict = Field(default_factory=dict, sa_column=Column(JSON))
    status: str = ""
    legal_notes: str = ""
    legal_decision: Optional[str] = None
    history: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    # naive local timestamps, stored as such
    created_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=False)))
    version: int = 1

    def apply(self, amendment: Amendment) -> None:
        """Copy every mutable field of *amendment* onto this row."""
        recompute(amendment)
        self.type = amendment.type.value
        self.duration = amendment.duration
        self.duration_unit = amendment.duration_unit.value if amendment.duration_unit else None
        self.event_name = amendment.event_name
        self.entry_date = parse_date(amendment.entry_date)
        self.checklist = amendment.checklist.to_record()
        self.status = amendment.status.value
        self.legal_notes = amendment.legal_notes
        self.legal_decision = amendment.legal_decision.value if amendment.legal_decision else None
        self.history = [entry.to_record() for entry in amendment.history]
        self.version = amendment.version

    def to_amendment(self) -> Amendment:
        """
        Convert the DB row back into an Amendment with a fresh status.

        Unknown ruling values in old rows are dropped and logged unless
        ``settings.lenient_dates`` is off.
        """
        lenient = settings.lenient_dates
        amendment = Amendment(
            id=self.id,
            contract_id=self.contract_id,
            type=AmendmentType.parse(self.type),
            duration=self.duration or 0,
            duration_unit=parse_stored(DurationUnit, self.duration_unit, None, lenient) if self.duration_unit else None,
            event_name=self.event_name or "",
            entry_date=self.entry_date,
            checklist=normalize_checklist(self.checklist, lenient=lenient),
            legal_notes=self.legal_notes or "",
            legal_decision=parse_stored(LegalDecision, self.legal_decision, None, lenient) if self.legal_decision else None,
            history=[LegalReviewEntry.from_record(raw, lenient=lenient) for raw in (self.history or [])],
            created_at=self.created_at,
            version=self.version,
        )
        recompute(amendment)
        return amendment


class NotificationSettingsDB(SQLModel, table=True):
    """Single-row table (id 1) holding the alert thresholds and extra recipients."""

    id: int = Field(default=1, primary_key=True)
    thresholds: List[int] = Field(default_factory=list, sa_column=Column(JSON))
    additional_emails: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    updated_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=False)))


# ---------------------------------------------------------------------------
# Convenience CRUD helpers
# ---------------------------------------------------------------------------
def upsert_contract(s: Session, contract: Contract) -> Contract:
    """Insert or update a contract row; fills in ``contract.id`` for new rows."""
    row = ContractDB.from_contract(contract)
    if row.id is None:
        s.add(row)
    else:
        row = s.merge(row)
    s.commit()
    s.refresh(row)
    contract.id = row.id
    return contract


def get_contract(s: Session, contract_id: int) -> Contract | None:
    """Return a contract by id or *None* if missing."""
    row = s.get(ContractDB, contract_id)
    return row.to_contract() if row else None


def all_contracts(s: Session) -> list[Contract]:
    """Return every contract in the database."""
    rows = s.exec(select(ContractDB).order_by(ContractDB.id)).all()
    return [row.to_contract() for row in rows]


def delete_contract(s: Session, contract_id: int) -> int:
    """Delete a contract and its amendments; returns the amendment count removed."""
    row = s.get(ContractDB, contract_id)
    if row is None:
        raise KeyError(contract_id)
    children = s.exec(select(AmendmentDB).where(AmendmentDB.contract_id == contract_id)).all()
    for child in children:
        s.delete(child)
    s.delete(row)
    s.commit()
    return len(children)


def insert_amendment(s: Session, amendment: Amendment) -> Amendment:
    """Insert a new amendment row; fills in id, creation time and version."""
    if s.get(ContractDB, amendment.contract_id) is None:
        raise KeyError(amendment.contract_id)
    amendment.created_at = amendment.created_at or datetime.now()
    amendment.version = 1
    row = AmendmentDB(contract_id=amendment.contract_id, type=amendment.type.value,
                      created_at=amendment.created_at)
    row.apply(amendment)
    s.add(row)
    s.commit()
    s.refresh(row)
    amendment.id = row.id
    return amendment


def get_amendment(s: Session, amendment_id: int) -> Amendment | None:
    row = s.get(AmendmentDB, amendment_id)
    return row.to_amendment() if row else None


def amendments_for(s: Session, contract_id: Optional[int] = None) -> list[Amendment]:
    """Amendments of one contract, or of all contracts when *contract_id* is None."""
    query = select(AmendmentDB).order_by(AmendmentDB.id)
    if contract_id is not None:
        query = query.where(AmendmentDB.contract_id == contract_id)
    return [row.to_amendment() for row in s.exec(query).all()]


def update_amendment(s: Session, amendment: Amendment) -> Amendment:
    """
    Write *amendment* back if its version still matches the stored row.

    Returns the amendment with its bumped version.  Raises ``KeyError``
    for an unknown id; version conflicts are raised by the caller-facing
    :class:`~amendflow.portfolio_db.DBPortfolioManager`.
    """
    row = s.get(AmendmentDB, amendment.id)
    if row is None:
        raise KeyError(amendment.id)
    amendment.version += 1
    row.apply(amendment)
    s.add(row)
    s.commit()
    return amendment


def stored_version(s: Session, amendment_id: int) -> int:
    row = s.get(AmendmentDB, amendment_id)
    if row is None:
        raise KeyError(amendment_id)
    return row.version


def load_notification_settings(s: Session) -> NotificationSettings | None:
    row = s.get(NotificationSettingsDB, 1)
    if row is None:
        return None
    return NotificationSettings(thresholds=list(row.thresholds), additional_emails=list(row.additional_emails))


def store_notification_settings(s: Session, value: NotificationSettings) -> None:
    row = NotificationSettingsDB(
        id=1,
        thresholds=list(value.thresholds),
        additional_emails=list(value.additional_emails),
        updated_at=datetime.now(),
    )
    s.merge(row)
    s.commit()


# ---------------------------------------------------------------------------
# Utility: create tables
# ---------------------------------------------------------------------------
def create_all(bind: Optional[Engine] = None) -> None:
    """Create all tables for imported SQLModel subclasses."""
    SQLModel.metadata.create_all(bind or engine)
