from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from parkwise import coordinator
from parkwise.auth import Principal, allow_admin
from parkwise.db import get_db
from parkwise.overview import get_overview
from parkwise.schemas import OverviewOut, ReconcileOut

router = APIRouter()
health_router = APIRouter()


@router.get("/overview", response_model=OverviewOut)
def overview(
    db: Session = Depends(get_db),
    principal: Principal = Depends(allow_admin),
):
    return get_overview(db)


@router.post("/lots/{lot_id}/reconcile", response_model=ReconcileOut)
def reconcile_lot(
    lot_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(allow_admin),
):
    """Recompute a lot's available slots from its Confirmed bookings."""
    lot, previous, correction = coordinator.reconcile_lot(db, lot_id)
    return {"lot": lot, "previous_available": previous, "correction": correction}


@health_router.get("/health")
def health(db: Session = Depends(get_db)):
    db.execute(text("SELECT 1"))
    return {"status": "ok", "database": "connected"}
