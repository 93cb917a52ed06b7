"""
Storage of booking records.

Nothing here commits or touches parking lots; the coordinator chains these
writes with the slot counter inside one session transaction.
"""
import uuid
from typing import List

from sqlalchemy import func, text
from sqlalchemy.orm import Session

from parkwise.errors import NotFound
from parkwise.models import Booking, BookingStatus


def get_booking(db: Session, booking_id: str) -> Booking:
    booking = db.get(Booking, booking_id, populate_existing=True)
    if not booking:
        raise NotFound("Booking not found")
    return booking


def create_booking(
    db: Session,
    user_id: str,
    lot_id: str,
    lot_name: str,
    date: str,
    time: str,
    status: BookingStatus,
    price: float,
) -> Booking:
    booking = Booking(
        id=str(uuid.uuid4()),
        user_id=user_id,
        lot_id=lot_id,
        lot_name=lot_name,
        date=date,
        time=time,
        status=status.value,
        price=price,
    )
    db.add(booking)
    db.flush()
    return booking


def update_status(db: Session, booking_id: str, old: BookingStatus, new: BookingStatus) -> bool:
    """Move a booking from ``old`` to ``new`` status.

    Returns False when the persisted status is no longer ``old``, so a
    transition is applied at most once.
    """
    res = db.execute(
        text("""
            UPDATE bookings SET status = :new
            WHERE id = :booking_id AND status = :old
        """),
        {"booking_id": booking_id, "old": old.value, "new": new.value},
    )
    return res.rowcount == 1


def delete_booking(db: Session, booking_id: str, status: BookingStatus) -> bool:
    """Remove a booking if it still has ``status``. Returns False otherwise."""
    res = db.execute(
        text("DELETE FROM bookings WHERE id = :booking_id AND status = :status"),
        {"booking_id": booking_id, "status": status.value},
    )
    return res.rowcount == 1


def list_by_user(db: Session, user_id: str) -> List[Booking]:
    return (
        db.query(Booking)
        .filter(Booking.user_id == user_id)
        .order_by(Booking.created_at.desc())
        .all()
    )


def list_all(db: Session) -> List[Booking]:
    return db.query(Booking).order_by(Booking.created_at.desc()).all()


def count_confirmed(db: Session, lot_id: str) -> int:
    return (
        db.query(func.count(Booking.id))
        .filter(Booking.lot_id == lot_id, Booking.status == BookingStatus.CONFIRMED.value)
        .scalar()
        or 0
    )
