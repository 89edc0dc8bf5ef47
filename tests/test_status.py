"""
tests/test_status.py
====================

Unit tests for the derived contract status and renewal window in
amendflow.status
"""

from datetime import date

import pytest

from amendflow.lifecycle import open_amendment, update_checklist
from amendflow.models import ActiveAmendmentLabel, Contract, ContractStatus, ManualStatus
from amendflow.status import build_contract_view, build_contract_views, derive_contract_status, renewal_info

TODAY = date(2024, 6, 1)


@pytest.mark.parametrize(
    "end_date, days, status",
    [
        (date(2024, 7, 2), 31, ContractStatus.ACTIVE),
        (date(2024, 7, 1), 30, ContractStatus.WARNING),
        (date(2024, 6, 1), 0, ContractStatus.WARNING),
        (date(2024, 5, 31), -1, ContractStatus.EXPIRED),
    ],
)
def test_status_boundaries(end_date, days, status):
    snapshot = derive_contract_status(Contract("1/2024", end_date), end_date, today=TODAY)
    assert snapshot.days_remaining == days
    assert snapshot.status is status


def test_custom_warning_window():
    end = date(2024, 7, 1)
    snapshot = derive_contract_status(Contract("1/2024", end), end, today=TODAY, warning_days=15)
    assert snapshot.status is ContractStatus.ACTIVE


@pytest.mark.parametrize("manual, status", [
    (ManualStatus.EXECUTED, ContractStatus.EXECUTED),
    (ManualStatus.RESCINDED, ContractStatus.RESCINDED),
])
def test_manual_override_wins(manual, status):
    expired = date(2020, 1, 1)
    snapshot = derive_contract_status(Contract("1/2020", expired, manual_status=manual), expired, today=TODAY)
    assert snapshot.status is status
    assert snapshot.days_remaining is None


def test_missing_end_date_counts_as_today():
    snapshot = derive_contract_status(Contract("1/2024", None), None, today=TODAY)
    assert snapshot.days_remaining == 0
    assert snapshot.status is ContractStatus.WARNING


# ---------------------------------------------------------------------------
# renewal window
# ---------------------------------------------------------------------------
def test_renewal_limits():
    assert renewal_info(date(2020, 1, 1), date(2021, 1, 1)).limit == 60
    assert renewal_info(date(2020, 1, 1), date(2020, 7, 1), is_emergency=True).limit == 12
    extended = renewal_info(date(2015, 1, 1), date(2020, 1, 1))
    assert extended.months_used == 60
    assert extended.limit == 120
    assert extended.months_left == 60


def test_renewal_exhausted():
    info = renewal_info(date(2023, 1, 1), date(2024, 1, 1), is_emergency=True)
    assert info.months_used == 12
    assert info.exhausted


# ---------------------------------------------------------------------------
# contract views
# ---------------------------------------------------------------------------
def test_view_uses_effective_end_date():
    contract = Contract("80/2018", date(2024, 6, 20), id=1, start_date=date(2023, 6, 20))
    executed = update_checklist(open_amendment(1, "term", 2, "month"), {"step8": True})
    pending = open_amendment(1, "term", 1, "year")

    view = build_contract_view(contract, [executed, pending], today=TODAY)

    assert view.effective_end_date == date(2024, 8, 20)
    assert view.preview_end_date == date(2025, 8, 20)
    assert view.days_remaining == 80
    assert view.status is ContractStatus.ACTIVE
    assert view.active_amendment is ActiveAmendmentLabel.IN_DRAFTING
    assert view.renewal.months_used == 26


def test_views_over_many_contracts():
    contracts = [Contract("1/2024", date(2024, 6, 10), id=1), Contract("2/2024", date(2024, 5, 1), id=2)]
    executed = update_checklist(open_amendment(2, "term", 1, "year"), {"step8": True})
    statuses = [v.status for v in build_contract_views(contracts, [executed], today=TODAY)]
    assert statuses == [ContractStatus.WARNING, ContractStatus.ACTIVE]
