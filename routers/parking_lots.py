from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from parkwise import lot_directory
from parkwise.auth import Principal, allow_admin
from parkwise.config import settings
from parkwise.db import get_db
from parkwise.schemas import AdminLotCreate, LotOut, LotPatch, LotQrOut, LotSearchResult, MessageOut

router = APIRouter()


@router.get("", response_model=List[LotSearchResult])
def list_lots(
    search: Optional[str] = Query(default=None),
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lng: Optional[float] = Query(default=None, ge=-180, le=180),
    radius: float = Query(default=settings.DEFAULT_SEARCH_RADIUS_KM, gt=0),
    db: Session = Depends(get_db),
):
    """
    List parking lots, optionally filtered by a case-insensitive name/location
    search. When both ``lat`` and ``lng`` are given only lots within
    ``radius`` km are returned, nearest first, each with its ``distanceKm``.
    """
    near = None
    if lat is not None and lng is not None:
        near = lot_directory.NearQuery(latitude=lat, longitude=lng, radius_km=radius)

    results = []
    for lot, distance in lot_directory.search_lots(db, search=search, near=near):
        item = LotSearchResult.model_validate(lot)
        if distance is not None:
            item.distance_km = round(distance, 3)
        results.append(item)
    return results


@router.get("/{lot_id}", response_model=LotOut)
def get_lot(lot_id: str, db: Session = Depends(get_db)):
    return lot_directory.get_lot(db, lot_id)


@router.get("/{lot_id}/qr", response_model=LotQrOut)
def get_lot_qr(lot_id: str, db: Session = Depends(get_db)):
    # Image rendering happens client side; this only hands out the payload
    lot = lot_directory.get_lot(db, lot_id)
    lot_url = f"{settings.PUBLIC_BASE_URL.rstrip('/')}/lot/{lot.id}"
    return {
        "id": lot.id,
        "name": lot.name,
        "location": lot.location,
        "qr_data": lot_url,
        "qr_code_url": f"/api/qr?data={quote(lot_url, safe='')}",
    }


@router.post("", response_model=LotOut, status_code=201)
def create_lot(
    body: AdminLotCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(allow_admin),
):
    # ownerId may be omitted to register a lot nobody owns yet
    return lot_directory.create_lot(db, body, owner_id=body.owner_id)


@router.put("/{lot_id}", response_model=LotOut)
def update_lot(
    lot_id: str,
    body: LotPatch,
    db: Session = Depends(get_db),
    principal: Principal = Depends(allow_admin),
):
    return lot_directory.update_lot(db, lot_id, body)


@router.delete("/{lot_id}", response_model=MessageOut)
def delete_lot(
    lot_id: str,
    force: bool = Query(default=False),
    db: Session = Depends(get_db),
    principal: Principal = Depends(allow_admin),
):
    lot_directory.delete_lot(db, lot_id, force=force)
    return {"message": "Parking lot deleted successfully"}
