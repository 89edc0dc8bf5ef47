"""
tests/test_notifications.py
===========================

Unit tests for the exact-day expiration alerts and recipient resolution
in amendflow.notifications
"""

from datetime import date, timedelta

import pytest

from amendflow.lifecycle import open_amendment, update_checklist
from amendflow.models import Contract, DocumentKind, ManualStatus, NotificationSettings
from amendflow.notifications import UserProfile, pending_notifications, resolve_recipients, should_notify

TODAY = date(2024, 6, 1)


@pytest.mark.parametrize("days, expected", [(29, False), (30, True), (7, True), (6, False), (None, False)])
def test_exact_threshold_match(days, expected):
    assert should_notify(days, {30, 7}) is expected


def _due_in(code, days, contract_id, **kwargs):
    return Contract(code, TODAY + timedelta(days=days), id=contract_id, **kwargs)


def test_pending_sorted_soonest_first():
    docs = [
        _due_in("1/2024", 30, 1, department="HEALTH"),
        _due_in("2/2024", 7, 2, department="EDUCATION"),
        _due_in("3/2024", 8, 3),
    ]
    alerts = pending_notifications(docs, [], NotificationSettings(thresholds=[30, 7]), today=TODAY)
    assert [(a.identifier, a.days_remaining) for a in alerts] == [("2/2024", 7), ("1/2024", 30)]
    assert alerts[0].department == "EDUCATION"
    assert alerts[0].reason == "7-day expiration alert"


def test_closed_documents_are_skipped():
    docs = [
        _due_in("1/2024", 30, 1, manual_status=ManualStatus.EXECUTED),
        _due_in("2/2024", 30, 2, manual_status=ManualStatus.RESCINDED),
    ]
    assert pending_notifications(docs, [], NotificationSettings(thresholds=[30]), today=TODAY) == []


def test_minutes_use_number_and_year():
    minute = _due_in("", 180, 1, number=4, year=2023, kind=DocumentKind.MINUTE)
    alerts = pending_notifications([minute], [], today=TODAY)
    assert alerts[0].identifier == "4/2023"
    assert alerts[0].kind is DocumentKind.MINUTE


def test_executed_amendment_moves_the_alert():
    doc = _due_in("1/2024", 7, 1)
    extension = update_checklist(open_amendment(1, "term", 23, "day"), {"step8": True})
    alerts = pending_notifications([doc], [extension], NotificationSettings(thresholds=[30, 7]), today=TODAY)
    assert [a.days_remaining for a in alerts] == [30]


def test_recipients_exclude_admins_and_dedupe():
    profiles = [
        UserProfile("Maria@City.gov ", "Saúde"),
        UserProfile("boss@city.gov", "SAUDE", role="admin"),
        UserProfile("root@city.gov", "saude", role="super_admin"),
        UserProfile("joao@city.gov", "EDUCAÇÃO"),
    ]
    recipients = resolve_recipients("SAUDE", profiles, ["audit@city.gov", "maria@city.gov", ""])
    assert recipients == ["maria@city.gov", "audit@city.gov"]


def test_documents_without_end_date_never_alert():
    docs = [Contract("1/2024", None, id=1), Contract("2/2024", "31/02/2024", id=2), _due_in("3/2024", 0, 3)]
    alerts = pending_notifications(docs, [], NotificationSettings(thresholds=[0]), today=TODAY)
    assert [a.identifier for a in alerts] == ["3/2024"]
