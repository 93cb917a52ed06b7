from sqlalchemy import func
from sqlalchemy.orm import Session

from parkwise.models import Booking, BookingStatus, ParkingLot


def get_overview(db: Session) -> dict:
    total_lots, total_slots, available_slots = db.query(
        func.count(ParkingLot.id),
        func.coalesce(func.sum(ParkingLot.total_slots), 0),
        func.coalesce(func.sum(ParkingLot.available_slots), 0),
    ).one()

    counts = {status.value: 0 for status in BookingStatus}
    rows = db.query(Booking.status, func.count(Booking.id)).group_by(Booking.status).all()
    for status, count in rows:
        counts[status] = count

    # Revenue counts everything that was not cancelled
    revenue = (
        db.query(func.coalesce(func.sum(Booking.price), 0))
        .filter(Booking.status != BookingStatus.CANCELLED.value)
        .scalar()
    )

    return {
        "total_lots": int(total_lots),
        "total_slots": int(total_slots),
        "available_slots": int(available_slots),
        "bookings": {
            "confirmed": counts[BookingStatus.CONFIRMED.value],
            "completed": counts[BookingStatus.COMPLETED.value],
            "cancelled": counts[BookingStatus.CANCELLED.value],
        },
        "revenue": float(revenue or 0),
    }
