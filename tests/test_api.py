"""
Tests for the HTTP endpoints.

These tests use FastAPI TestClient against the real app, with the
persistent portfolio swapped for a fresh in‑memory PortfolioManager.
"""

import pytest
from fastapi.testclient import TestClient

from amendflow.portfolio import PortfolioManager
from api.deps import get_portfolio
from api.main import app

TODAY = "2024-06-01"


@pytest.fixture
def client():
    pm = PortfolioManager()
    app.dependency_overrides[get_portfolio] = lambda: pm
    yield TestClient(app)
    app.dependency_overrides.clear()


def _contract(client, code="80/2018", end_date="2024-06-20", **extra):
    resp = client.post("/contracts", json={"code": code, "end_date": end_date, **extra})
    assert resp.status_code == 201
    return resp.json()


def _amendment(client, contract_id, **extra):
    body = {"type": "term", "duration": 1, "duration_unit": "month", **extra}
    resp = client.post(f"/contracts/{contract_id}/amendments", json=body)
    assert resp.status_code == 201
    return resp.json()


# ---------------------------------------------------------------------------
# health / status
# ---------------------------------------------------------------------------
def test_root(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_status_counts_include_zeroes(client):
    _contract(client, "1/2024", "2024-06-20")
    _contract(client, "2/2023", "2024-01-01")
    counts = client.get("/status", params={"today": TODAY}).json()
    assert counts == {"active": 0, "warning": 1, "expired": 1, "executed": 0, "rescinded": 0}


# ---------------------------------------------------------------------------
# contracts
# ---------------------------------------------------------------------------
def test_create_and_read_contract(client):
    created = _contract(client, "80/2018", department="saúde", supplier="acme ltda")
    assert created["identifier"] == "80/2018"
    assert created["department"] == "SAÚDE"

    resp = client.get(f"/contracts/{created['id']}", params={"today": TODAY})
    body = resp.json()
    assert body["days_remaining"] == 19
    assert body["status"] == "warning"
    assert body["effective_end_date"] == "2024-06-20"


def test_unknown_contract_is_404(client):
    assert client.get("/contracts/99").status_code == 404
    assert client.delete("/contracts/99").status_code == 404


def test_invalid_kind_is_422(client):
    resp = client.post("/contracts", json={"code": "1/2024", "kind": "lease"})
    assert resp.status_code == 422


def test_list_filters_by_status(client):
    _contract(client, "1/2024", "2024-06-20")
    _contract(client, "2/2024", "2025-06-20")
    resp = client.get("/contracts", params={"status": "active", "today": TODAY})
    assert [c["identifier"] for c in resp.json()] == ["2/2024"]


def test_manual_status_override(client):
    created = _contract(client, "1/2020", "2020-01-01")
    resp = client.put(f"/contracts/{created['id']}/manual-status", json={"manual_status": "executed"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "executed"
    assert resp.json()["days_remaining"] is None


def test_delete_contract_removes_amendments(client):
    created = _contract(client)
    _amendment(client, created["id"])
    assert client.delete(f"/contracts/{created['id']}").status_code == 204
    assert client.get(f"/contracts/{created['id']}/amendments").json() == []


# ---------------------------------------------------------------------------
# amendment workflow
# ---------------------------------------------------------------------------
def test_amendment_for_missing_contract_is_404(client):
    resp = client.post("/contracts/5/amendments", json={"type": "term"})
    assert resp.status_code == 404


def test_checklist_patch_and_version_conflict(client):
    contract = _contract(client)
    amendment = _amendment(client, contract["id"])
    assert amendment["status"] == "drafting"
    assert amendment["version"] == 1

    url = f"/amendments/{amendment['id']}/checklist"
    resp = client.patch(url, json={"version": 1, "updates": {"step2": True, "step3": True}})
    assert resp.status_code == 200
    assert resp.json()["status"] == "legal_review"
    assert resp.json()["version"] == 2

    stale = client.patch(url, json={"version": 1, "updates": {"step8": True}})
    assert stale.status_code == 409
    assert client.get(f"/amendments/{amendment['id']}").json()["checklist"]["step8"] is False


def test_invalid_checklist_update_is_422(client):
    contract = _contract(client)
    amendment = _amendment(client, contract["id"])
    resp = client.patch(
        f"/amendments/{amendment['id']}/checklist",
        json={"version": 1, "updates": {"step9": True}},
    )
    assert resp.status_code == 422


def test_reject_then_reset(client):
    contract = _contract(client)
    amendment = _amendment(client, contract["id"])
    base = f"/amendments/{amendment['id']}"

    client.patch(f"{base}/checklist", json={"version": 1, "updates": {"step3": True}})
    resp = client.post(f"{base}/decision", json={"version": 2, "decision": "rejected", "note": "no survey"})
    assert resp.json()["status"] == "legal_rejected"
    assert resp.json()["history"][0]["decision"] == "rejected"

    resp = client.post(f"{base}/reset", json={"version": 3, "author": "Rui"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "legal_review"
    assert resp.json()["checklist"]["step4"] is None

    again = client.post(f"{base}/reset", json={"version": 4})
    assert again.status_code == 422


def test_empty_comment_is_422(client):
    contract = _contract(client)
    amendment = _amendment(client, contract["id"])
    resp = client.post(f"/amendments/{amendment['id']}/comment", json={"version": 1, "note": " "})
    assert resp.status_code == 422


def test_executed_amendment_extends_contract(client):
    contract = _contract(client, end_date="2024-01-31")
    amendment = _amendment(client, contract["id"])
    client.patch(
        f"/amendments/{amendment['id']}/checklist",
        json={"version": 1, "updates": {"step8": True}},
    )
    body = client.get(f"/contracts/{contract['id']}", params={"today": TODAY}).json()
    assert body["effective_end_date"] == "2024-02-29"
    assert body["base_end_date"] == "2024-01-31"


# ---------------------------------------------------------------------------
# notifications
# ---------------------------------------------------------------------------
def test_pending_notifications(client):
    _contract(client, "1/2024", "2024-07-01", department="HEALTH")
    _contract(client, "2/2024", "2024-06-08")
    _contract(client, "3/2024", "2024-06-09")
    resp = client.get("/notifications/pending", params={"today": TODAY})
    assert [(p["identifier"], p["days_remaining"]) for p in resp.json()] == [("2/2024", 7), ("1/2024", 30)]


def test_notification_settings_round_trip(client):
    resp = client.put(
        "/settings/notifications",
        json={"thresholds": [7, 30, 0, 30], "additional_emails": [" Audit@City.gov ", ""]},
    )
    assert resp.json() == {"thresholds": [30, 7], "additional_emails": ["audit@city.gov"]}
    assert client.get("/settings/notifications").json()["thresholds"] == [30, 7]
