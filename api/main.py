from datetime import date
from typing import Optional

from fastapi import FastAPI, Depends, Query
from fastapi.middleware.cors import CORSMiddleware

from amendflow.models import ContractStatus
from amendflow.portfolio import PortfolioManager
from .deps import get_portfolio

app = FastAPI(
    title="amendflow API",
    version="0.1.0",
    description="HTTP layer over the contract portfolio: derived contract status and the amendment approval workflow.",
)

# --- CORS ----------------------------------------------------------
# Dev-only origins; tighten for production.
origins = [
    "http://localhost:5173",    # Vite dev server default port
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)

# --- Include Routers ----------------------------------------------------------
from .contracts import router as contracts_router
from .amendments import router as amendments_router
from .notifications import router as notifications_router

app.include_router(contracts_router)
app.include_router(amendments_router)
app.include_router(notifications_router)


# ---------- health-check ----------
@app.get("/")
def root():
    return {"status": "ok", "msg": "amendflow API is alive"}


# ---------- GET /status ----------
@app.get("/status")
def status_snapshot(
    today: Optional[date] = Query(None),
    pm: PortfolioManager = Depends(get_portfolio),
):
    counts: dict[str, int] = {}
    for view in pm.views(today):
        counts[view.status.value] = counts.get(view.status.value, 0) + 1
    # ensure zeroes appear
    for s in ContractStatus:
        counts.setdefault(s.value, 0)
    return counts


if __name__ == "__main__":
    import uvicorn

    from amendflow.settings import API_DEBUG, API_HOST, API_PORT

    uvicorn.run("api.main:app", host=API_HOST, port=API_PORT, reload=API_DEBUG)
