"""
api.notifications
=================

Expiration alerts due today and the alert settings they are driven by.
Delivery (e-mail, in-app inbox) is handled by whoever polls these
endpoints.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from amendflow.notifications import pending_notifications
from amendflow.portfolio import PortfolioManager
from amendflow.settings import Settings
from .deps import get_portfolio, get_settings
from .schemas import NotificationSettingsIO, PendingOut

router = APIRouter(tags=["notifications"])


@router.get("/notifications/pending", response_model=List[PendingOut])
def pending(
    today: Optional[date] = Query(None, description="Evaluate as of this date instead of today"),
    pm: PortfolioManager = Depends(get_portfolio),
    settings: Settings = Depends(get_settings),
):
    """Documents whose expiration alert fires today, soonest first."""
    alerts = pending_notifications(
        pm, pm.all_amendments(), pm.notification_settings(),
        today=today, lenient=settings.lenient_dates,
    )
    return [PendingOut.from_pending(p) for p in alerts]


@router.get("/settings/notifications", response_model=NotificationSettingsIO)
def read_settings(pm: PortfolioManager = Depends(get_portfolio)):
    return NotificationSettingsIO.from_settings(pm.notification_settings())


@router.put("/settings/notifications", response_model=NotificationSettingsIO)
def write_settings(body: NotificationSettingsIO, pm: PortfolioManager = Depends(get_portfolio)):
    saved = pm.save_notification_settings(body.to_settings())
    return NotificationSettingsIO.from_settings(saved)
