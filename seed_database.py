#!/usr/bin/env python
"""
Seed database with sample contracts and amendments for testing.

End dates are set relative to today so the dashboard shows every
derived status (active, warning, expired, executed) right away.
"""

import json
from datetime import date, timedelta

from amendflow.dates import parse_date
from amendflow.lifecycle import open_amendment, record_comment, record_legal_decision, update_checklist
from amendflow.models import Contract, DocumentKind, LegalDecision, ManualStatus
from amendflow.portfolio_db import DBPortfolioManager

TODAY = date.today()

# Sample contracts spread across the derived statuses
SAMPLE_CONTRACTS = [
    Contract(
        code="80/2018",
        end_date=TODAY + timedelta(days=20),
        start_date=date(2018, 5, 2),
        department="SAUDE",
        object="HOSPITAL CLEANING SERVICES",
        supplier="LIMPA BEM LTDA",
    ),
    Contract(
        code="12/2022",
        end_date=TODAY + timedelta(days=400),
        start_date=date(2022, 3, 1),
        department="EDUCACAO",
        object="SCHOOL MEALS",
        supplier="NUTRI ALIMENTOS SA",
    ),
    Contract(
        code="5/2021",
        end_date=TODAY - timedelta(days=15),
        start_date=date(2021, 2, 10),
        department="OBRAS",
        object="ROAD RESURFACING",
        supplier="PAVIMENTA LTDA",
    ),
    Contract(
        code="3/2024",
        end_date=TODAY + timedelta(days=90),
        start_date=TODAY - timedelta(days=90),
        department="SAUDE",
        object="EMERGENCY MEDICAL SUPPLIES",
        supplier="MEDSUL LTDA",
        is_emergency=True,
    ),
    Contract(
        code="44/2019",
        end_date=TODAY - timedelta(days=200),
        department="ADMINISTRACAO",
        object="PRINTER LEASE",
        supplier="IMPRIME TUDO LTDA",
        manual_status=ManualStatus.EXECUTED,
    ),
    Contract(
        code="",
        number=7,
        year=2023,
        kind=DocumentKind.MINUTE,
        end_date=TODAY + timedelta(days=30),
        department="ADMINISTRACAO",
        object="OFFICE SUPPLIES PRICE REGISTRATION",
        supplier="PAPELARIA CENTRAL",
    ),
]

# Add additional contracts from sample_contracts.json if available
try:
    with open('sample_contracts.json', 'r') as f:
        sample_data = json.load(f)

    for raw in sample_data:
        SAMPLE_CONTRACTS.append(Contract(
            code=raw.get('code', ''),
            end_date=parse_date(raw.get('end_date')),
            start_date=parse_date(raw.get('start_date')),
            number=raw.get('number'),
            year=raw.get('year'),
            kind=DocumentKind.parse(raw.get('kind', 'contract')),
            department=raw.get('department', '').upper(),
            object=raw.get('object', '').upper(),
            supplier=raw.get('supplier', '').upper(),
            is_emergency=bool(raw.get('is_emergency', False)),
            manual_status=ManualStatus.parse(raw.get('manual_status', 'none')),
            notes=raw.get('notes'),
        ))
except (FileNotFoundError, json.JSONDecodeError):
    # Continue with default sample contracts
    pass


def seed_amendments(pm, contracts):
    """Attach a few amendments at different workflow stages."""
    cleaning, meals, roads = contracts[0], contracts[1], contracts[2]

    # executed twelve-month extension: pushes the expired road contract forward
    extension = pm.add_amendment(open_amendment(roads.id, "term", 12, "month", entry_date=TODAY - timedelta(days=60)))
    update_checklist(extension, {
        "step2": True, "step5": True, "step6": True,
        "step7": {"ledger": True, "attachments": True, "registry": True, "purchase_order": True},
        "step8": True,
    })
    pm.save_amendment(extension)

    # renewal waiting on legal, with a comment from the analyst
    renewal = pm.add_amendment(open_amendment(cleaning.id, "term", 12, "month", event_name="annual renewal"))
    update_checklist(renewal, {"step2": True, "step3": True})
    record_comment(renewal, note="Please attach the updated price survey.", author="legal analyst")
    pm.save_amendment(renewal)

    # value amendment rejected by legal
    readjust = pm.add_amendment(open_amendment(meals.id, "value", event_name="price readjustment"))
    update_checklist(readjust, {"step2": True, "step3": True})
    record_legal_decision(readjust, LegalDecision.REJECTED, note="Index not foreseen in the contract.",
                          author="legal analyst")
    pm.save_amendment(readjust)

    return 3


def seed_database():
    """Add sample contracts and amendments to the database."""
    pm = DBPortfolioManager()

    # Add all sample contracts
    for contract in SAMPLE_CONTRACTS:
        pm.add_contract(contract)
        print(f"Added: {contract.identifier} ({contract.department})")

    added = seed_amendments(pm, SAMPLE_CONTRACTS)

    print(f"\nAdded {len(SAMPLE_CONTRACTS)} contracts and {added} amendments to the database!")


if __name__ == "__main__":
    # Initialize DB if needed
    from amendflow.db import create_all
    print("Ensuring database tables exist...")
    create_all()

    # Seed the database
    print("Seeding database with sample contracts...")
    seed_database()

    print("\nDone! You can now run the API server with:")
    print("uvicorn api.main:app --reload --port 8001")
