import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional, Tuple

from geopy.distance import geodesic
from sqlalchemy import or_, text
from sqlalchemy.orm import Session

from parkwise.auth import Principal
from parkwise.errors import NotFound, Forbidden, LotInUse
from parkwise.models import ParkingLot, Role
from parkwise.schemas import LotCreate, LotPatch
from parkwise import booking_ledger, slot_counter

logger = logging.getLogger(__name__)

# One degree of latitude is never shorter than this many kilometres
KM_PER_DEGREE_LAT = 110.5


@dataclass(frozen=True)
class NearQuery:
    latitude: float
    longitude: float
    radius_km: float


def get_lot(db: Session, lot_id: str) -> ParkingLot:
    lot = db.get(ParkingLot, lot_id, populate_existing=True)
    if not lot:
        raise NotFound("Parking lot not found")
    return lot


def get_owned_lot(db: Session, lot_id: str, principal: Principal) -> ParkingLot:
    lot = get_lot(db, lot_id)
    if principal.role != Role.ADMIN and lot.owner_id != principal.user_id:
        raise Forbidden("You do not have permission to manage this lot")
    return lot


def list_by_owner(db: Session, owner_id: str) -> List[ParkingLot]:
    return (
        db.query(ParkingLot)
        .filter(ParkingLot.owner_id == owner_id)
        .order_by(ParkingLot.created_at.desc())
        .all()
    )


def create_lot(db: Session, data: LotCreate, owner_id: Optional[str]) -> ParkingLot:
    available = data.total_slots if data.available_slots is None else data.available_slots
    slot_counter.SlotCounter(available=available, total=data.total_slots).check()

    lot = ParkingLot(
        id=str(uuid.uuid4()),
        name=data.name,
        location=data.location,
        latitude=data.latitude,
        longitude=data.longitude,
        total_slots=data.total_slots,
        available_slots=available,
        price_per_hour=data.price_per_hour,
        operating_hours=data.operating_hours,
        image_id=data.image_id,
        owner_id=owner_id,
    )
    db.add(lot)
    db.commit()
    db.refresh(lot)
    logger.info("Created lot %s (%s) with %d/%d slots", lot.id, lot.name, available, lot.total_slots)
    return lot


def update_lot(db: Session, lot_id: str, patch: LotPatch) -> ParkingLot:
    """Apply an owner edit. A new ``total_slots`` keeps booked slots booked."""
    changes = patch.model_dump(exclude_unset=True)
    try:
        new_total = changes.pop("total_slots", None)
        if new_total is not None:
            counter = slot_counter.resize(db, lot_id, new_total)
            logger.info("Resized lot %s to %d slots (%d available)", lot_id, counter.total, counter.available)

        lot = get_lot(db, lot_id)
        for field, value in changes.items():
            setattr(lot, field, value)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(lot)
    return lot


def delete_lot(db: Session, lot_id: str, force: bool = False) -> None:
    """Remove a lot.

    Refused with ``LotInUse`` while Confirmed bookings reference it, unless
    ``force`` is set; forced deletes leave those bookings orphaned. The
    unforced check and the delete are one statement, so a booking committed
    in between cannot be orphaned.
    """
    if force:
        lot = get_lot(db, lot_id)
        active = booking_ledger.count_confirmed(db, lot_id)
        if active:
            logger.warning("Force-deleting lot %s with %d active bookings", lot_id, active)
        db.delete(lot)
        db.commit()
        return

    res = db.execute(
        text("""
            DELETE FROM parking_lots
            WHERE id = :lot_id
              AND NOT EXISTS (
                  SELECT 1 FROM bookings
                  WHERE lot_id = :lot_id AND status = 'Confirmed'
              )
        """),
        {"lot_id": lot_id},
    )
    if res.rowcount != 1:
        db.rollback()
        get_lot(db, lot_id)
        active = booking_ledger.count_confirmed(db, lot_id)
        raise LotInUse(f"Parking lot has {active} active bookings")
    db.commit()
    logger.info("Deleted lot %s", lot_id)


def distance_km(lot: ParkingLot, near: NearQuery) -> float:
    return geodesic((near.latitude, near.longitude), (lot.latitude, lot.longitude)).km


def search_lots(
    db: Session,
    search: Optional[str] = None,
    near: Optional[NearQuery] = None,
) -> List[Tuple[ParkingLot, Optional[float]]]:
    """Find lots by name/location text and, optionally, proximity.

    With ``near`` only lots with coordinates inside the radius are returned,
    nearest first. Otherwise results keep creation order and carry no
    distance.
    """
    query = db.query(ParkingLot)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(ParkingLot.name.ilike(pattern), ParkingLot.location.ilike(pattern)))

    if near is None:
        return [(lot, None) for lot in query.order_by(ParkingLot.created_at.asc()).all()]

    # Cheap latitude band first, exact geodesic distance after
    band = near.radius_km / KM_PER_DEGREE_LAT
    query = query.filter(
        ParkingLot.latitude.isnot(None),
        ParkingLot.longitude.isnot(None),
        ParkingLot.latitude.between(near.latitude - band, near.latitude + band),
    )
    results = []
    for lot in query.all():
        d = distance_km(lot, near)
        if d <= near.radius_km:
            results.append((lot, d))
    results.sort(key=lambda pair: pair[1])
    return results
