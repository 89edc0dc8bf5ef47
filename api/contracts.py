"""
api.contracts
=============

Contract endpoints.  Every read returns the derived view (effective end
date, days remaining, status, in-flight amendment badge), never a stored
status.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from amendflow.dates import DateParseError
from amendflow.models import ContractStatus
from amendflow.portfolio import PortfolioManager
from .deps import get_portfolio
from .schemas import ContractIn, ContractOut, ManualStatusIn

router = APIRouter(tags=["contracts"])


def _view(pm: PortfolioManager, contract_id: int, today: Optional[date]) -> ContractOut:
    try:
        return ContractOut.from_view(pm.view(contract_id, today))
    except KeyError:
        raise HTTPException(status_code=404, detail="Contract not found")
    except DateParseError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/contracts", status_code=201, response_model=ContractOut)
def create_contract(body: ContractIn, pm: PortfolioManager = Depends(get_portfolio)):
    try:
        contract = pm.add_contract(body.to_contract())
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _view(pm, contract.id, None)


@router.get("/contracts", response_model=List[ContractOut])
def list_contracts(
    status: Optional[ContractStatus] = Query(None, description="Only contracts at this derived status"),
    today: Optional[date] = Query(None, description="Evaluate as of this date instead of today"),
    pm: PortfolioManager = Depends(get_portfolio),
):
    try:
        views = pm.views(today)
    except DateParseError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if status is not None:
        views = [v for v in views if v.status is status]
    return [ContractOut.from_view(v) for v in views]


@router.get("/contracts/{contract_id}", response_model=ContractOut)
def get_contract(
    contract_id: int,
    today: Optional[date] = Query(None),
    pm: PortfolioManager = Depends(get_portfolio),
):
    return _view(pm, contract_id, today)


@router.put("/contracts/{contract_id}", response_model=ContractOut)
def update_contract(contract_id: int, body: ContractIn, pm: PortfolioManager = Depends(get_portfolio)):
    try:
        pm.get_contract(contract_id)
        pm.add_contract(body.to_contract(contract_id))
    except KeyError:
        raise HTTPException(status_code=404, detail="Contract not found")
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _view(pm, contract_id, None)


@router.put("/contracts/{contract_id}/manual-status", response_model=ContractOut)
def set_manual_status(contract_id: int, body: ManualStatusIn, pm: PortfolioManager = Depends(get_portfolio)):
    try:
        pm.set_manual_status(contract_id, body.manual_status)
    except KeyError:
        raise HTTPException(status_code=404, detail="Contract not found")
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _view(pm, contract_id, None)


@router.delete("/contracts/{contract_id}", status_code=204)
def delete_contract(contract_id: int, pm: PortfolioManager = Depends(get_portfolio)):
    try:
        pm.delete_contract(contract_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Contract not found")
