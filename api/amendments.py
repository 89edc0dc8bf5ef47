"""
api.amendments
==============

Amendment workflow endpoints: open an amendment, tick checklist steps,
record legal rulings and comments, and send a rejected amendment back
for review.

Every write carries the ``version`` the client last read; a write based
on an outdated version is refused with 409 instead of silently
overwriting someone else's change.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from amendflow.lifecycle import (
    ChecklistTransitionError,
    open_amendment,
    record_comment,
    record_legal_decision,
    reset_rejected_amendment,
    update_checklist,
)
from amendflow.models import Amendment
from amendflow.portfolio import PortfolioManager, StaleAmendmentError
from .deps import get_portfolio
from .schemas import AmendmentIn, AmendmentOut, ChecklistPatch, CommentIn, DecisionIn, ResetIn

router = APIRouter(tags=["amendments"])


def _load(pm: PortfolioManager, amendment_id: int, version: int) -> Amendment:
    try:
        amendment = pm.get_amendment(amendment_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Amendment not found")
    # the store compares this against its own copy on save
    amendment.version = version
    return amendment


def _save(pm: PortfolioManager, amendment: Amendment) -> AmendmentOut:
    try:
        return AmendmentOut.from_amendment(pm.save_amendment(amendment))
    except StaleAmendmentError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/contracts/{contract_id}/amendments", status_code=201, response_model=AmendmentOut)
def create_amendment(contract_id: int, body: AmendmentIn, pm: PortfolioManager = Depends(get_portfolio)):
    try:
        amendment = open_amendment(
            contract_id,
            body.type,
            duration=body.duration,
            duration_unit=body.duration_unit,
            entry_date=body.entry_date,
            event_name=body.event_name,
        )
        amendment = pm.add_amendment(amendment)
    except KeyError:
        raise HTTPException(status_code=404, detail="Contract not found")
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return AmendmentOut.from_amendment(amendment)


@router.get("/contracts/{contract_id}/amendments", response_model=List[AmendmentOut])
def list_amendments(contract_id: int, pm: PortfolioManager = Depends(get_portfolio)):
    return [AmendmentOut.from_amendment(a) for a in pm.amendments_for(contract_id)]


@router.get("/amendments/{amendment_id}", response_model=AmendmentOut)
def get_amendment(amendment_id: int, pm: PortfolioManager = Depends(get_portfolio)):
    try:
        return AmendmentOut.from_amendment(pm.get_amendment(amendment_id))
    except KeyError:
        raise HTTPException(status_code=404, detail="Amendment not found")


@router.patch("/amendments/{amendment_id}/checklist", response_model=AmendmentOut)
def patch_checklist(amendment_id: int, body: ChecklistPatch, pm: PortfolioManager = Depends(get_portfolio)):
    amendment = _load(pm, amendment_id, body.version)
    try:
        update_checklist(amendment, body.updates)
    except ChecklistTransitionError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if body.legal_notes is not None:
        amendment.legal_notes = body.legal_notes
    return _save(pm, amendment)


@router.post("/amendments/{amendment_id}/decision", response_model=AmendmentOut)
def legal_decision(amendment_id: int, body: DecisionIn, pm: PortfolioManager = Depends(get_portfolio)):
    amendment = _load(pm, amendment_id, body.version)
    try:
        record_legal_decision(amendment, body.decision, note=body.note, author=body.author)
    except ChecklistTransitionError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _save(pm, amendment)


@router.post("/amendments/{amendment_id}/comment", response_model=AmendmentOut)
def legal_comment(amendment_id: int, body: CommentIn, pm: PortfolioManager = Depends(get_portfolio)):
    amendment = _load(pm, amendment_id, body.version)
    try:
        record_comment(amendment, note=body.note, author=body.author)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _save(pm, amendment)


@router.post("/amendments/{amendment_id}/reset", response_model=AmendmentOut)
def reset_amendment(amendment_id: int, body: ResetIn, pm: PortfolioManager = Depends(get_portfolio)):
    amendment = _load(pm, amendment_id, body.version)
    try:
        reset_rejected_amendment(amendment, author=body.author)
    except ChecklistTransitionError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _save(pm, amendment)


@router.delete("/amendments/{amendment_id}", status_code=204)
def delete_amendment(amendment_id: int, pm: PortfolioManager = Depends(get_portfolio)):
    try:
        pm.delete_amendment(amendment_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Amendment not found")
