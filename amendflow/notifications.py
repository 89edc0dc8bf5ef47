"""
amendflow.notifications
=======================

Expiration alert rules.

An alert fires on the exact days listed as thresholds (180, 150, ... 7
days before expiration by default), never on the days in between.  The
rules here are stateless; the daily job that calls them owns the "once
per document per day" bookkeeping and the actual delivery.
"""

from __future__ import annotations

import logging
import unicodedata
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from .dates import parse_date
from .models import Amendment, Contract, DocumentKind, NotificationSettings
from .status import build_contract_view

logger = logging.getLogger(__name__)

# roles that never receive department alerts
ADMIN_ROLES = {"admin", "super_admin"}


def should_notify(days_remaining: Optional[int], thresholds: Iterable[int]) -> bool:
    """True when *days_remaining* is exactly one of the *thresholds*."""
    if days_remaining is None:
        return False
    return days_remaining in set(thresholds)


@dataclass(frozen=True)
class PendingNotification:
    identifier: str
    kind: DocumentKind
    object: str
    department: str
    days_remaining: int

    @property
    def reason(self) -> str:
        return f"{self.days_remaining}-day expiration alert"


def pending_notifications(
    documents: Iterable[Contract],
    amendments: Iterable[Amendment],
    settings: Optional[NotificationSettings] = None,
    today: Optional[date] = None,
    lenient: bool = True,
) -> List[PendingNotification]:
    """
    Documents whose alert fires *today*, soonest expiration first.

    Days remaining are measured to the effective end date, so executed
    term amendments push alerts out.  Documents with a manual
    executed/rescinded status are skipped entirely, and so are documents
    without a usable end date.
    """
    settings = settings or NotificationSettings()
    amendments = list(amendments)
    pending: List[PendingNotification] = []
    analysed = 0

    for doc in documents:
        if doc.is_closed or parse_date(doc.end_date) is None:
            continue
        analysed += 1
        view = build_contract_view(doc, amendments, today=today, lenient=lenient)
        if should_notify(view.days_remaining, settings.thresholds):
            pending.append(PendingNotification(
                identifier=doc.identifier,
                kind=doc.kind,
                object=doc.object,
                department=doc.department,
                days_remaining=view.days_remaining,
            ))

    logger.info(f"Expiration check: {analysed} documents analysed, {len(pending)} alerts due")
    return sorted(pending, key=lambda p: p.days_remaining)


# ---------------------------------------------------------------------
# Recipients
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class UserProfile:
    email: str
    department: str
    role: str = "user"


def normalize_text(text: Optional[str]) -> str:
    """Upper-case *text* with accents stripped, for department matching."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.upper().strip()


def resolve_recipients(
    department: str,
    profiles: Iterable[UserProfile],
    additional_emails: Iterable[str] = (),
) -> List[str]:
    """
    Addresses that should receive an alert for a *department* document.

    Non-admin users of the department plus the configured extra
    addresses; lower-cased, de-duplicated, first occurrence kept.
    """
    target = normalize_text(department)
    emails = [
        p.email for p in profiles
        if normalize_text(p.department) == target and p.role not in ADMIN_ROLES
    ]
    emails.extend(additional_emails)

    seen: dict = {}
    for email in emails:
        cleaned = (email or "").lower().strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)
