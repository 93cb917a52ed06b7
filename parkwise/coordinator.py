"""
Booking coordinator.

The only code allowed to move a lot's ``available_slots`` because of booking
activity. Each operation writes the booking and the lot counter in one
session transaction:

- create:  take a slot (decrement-if-positive), insert the booking, commit
- update:  conditional status write (old -> new), counter delta, commit
- delete:  conditional delete, release the held slot, commit

Counter deltas are derived from the booking's *persisted* status, so a
repeated or racing request can never apply the same delta twice. When the
storage fails after the first write, the session is rolled back and
``PartialWriteFailure`` is raised; ``reconcile_lot`` rebuilds a counter from
the ledger if an earlier failure ever left it out of step.
"""
import logging
from typing import Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from parkwise import booking_ledger, lot_directory, slot_counter
from parkwise.auth import Principal
from parkwise.errors import NotFound, Forbidden, InvalidTransition, ParkwiseError, PartialWriteFailure
from parkwise.models import Booking, BookingStatus, ParkingLot
from parkwise.payments import PaymentAuthorizer, ensure_authorized
from parkwise.schemas import BookingCreate, BookingPatch

logger = logging.getLogger(__name__)

# (old, new) -> change of the lot's available slots
TRANSITIONS = {
    (BookingStatus.CONFIRMED, BookingStatus.CANCELLED): +1,
    (BookingStatus.CANCELLED, BookingStatus.CONFIRMED): -1,
    (BookingStatus.CONFIRMED, BookingStatus.COMPLETED): 0,
}


def units_held(status: BookingStatus) -> int:
    return 1 if status == BookingStatus.CONFIRMED else 0


def counter_delta(old: BookingStatus, new: BookingStatus) -> int:
    """Slot counter change for a status transition; raises for illegal ones."""
    if old == new:
        return 0
    try:
        return TRANSITIONS[(old, new)]
    except KeyError:
        raise InvalidTransition(f"Cannot change a {old.value} booking to {new.value}")


def ensure_can_access(booking: Booking, principal: Principal) -> None:
    if not principal.is_admin and booking.user_id != principal.user_id:
        raise Forbidden("You do not have permission to access this booking")


def release_slot(db: Session, lot_id: str, booking_id: str) -> int:
    """Give back the slot held by a booking. Missing lots are skipped."""
    try:
        applied = slot_counter.adjust_available(db, lot_id, +1, clamp=True)
    except NotFound:
        logger.warning("Lot %s of booking %s no longer exists; slot release skipped", lot_id, booking_id)
        return 0
    logger.info("Released slot of booking %s on lot %s (+%d)", booking_id, lot_id, applied)
    return applied


def take_slot(db: Session, lot_id: str, booking_id: str | None = None) -> None:
    slot_counter.adjust_available(db, lot_id, -1)
    logger.info("Took slot on lot %s for booking %s (-1)", lot_id, booking_id or "<new>")


def _fail(db: Session, exc: SQLAlchemyError, wrote: bool, action: str):
    db.rollback()
    if not wrote:
        raise exc
    logger.error("%s failed after a partial write, rolled back: %s", action, exc)
    raise PartialWriteFailure(f"{action} failed and was rolled back; please retry") from exc


def create_booking(
    db: Session,
    principal: Principal,
    data: BookingCreate,
    authorizer: PaymentAuthorizer,
) -> Booking:
    user_id = data.user_id if principal.is_admin and data.user_id else principal.user_id
    lot = lot_directory.get_lot(db, data.lot_id)
    lot_id, lot_name = lot.id, lot.name
    price = lot.price_per_hour if data.price is None else data.price
    ensure_authorized(authorizer, price)

    wrote = False
    try:
        if units_held(data.status):
            take_slot(db, lot_id)
            wrote = True
        booking = booking_ledger.create_booking(
            db,
            user_id=user_id,
            lot_id=lot_id,
            lot_name=lot_name,
            date=data.date,
            time=data.time,
            status=data.status,
            price=price,
        )
        db.commit()
    except ParkwiseError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        _fail(db, exc, wrote, "Create booking")

    logger.info("Booking %s created for user %s on lot %s (%s)", booking.id, user_id, lot_id, data.status.value)
    return booking


def update_booking(db: Session, principal: Principal, booking_id: str, patch: BookingPatch) -> Booking:
    booking = booking_ledger.get_booking(db, booking_id)
    ensure_can_access(booking, principal)
    if patch.status is None:
        return booking

    old = BookingStatus(booking.status)
    new = patch.status
    delta = counter_delta(old, new)
    if old == new:
        return booking

    wrote = False
    try:
        if not booking_ledger.update_status(db, booking_id, old, new):
            # A racing identical request got there first: same outcome, no-op
            if booking_ledger.get_booking(db, booking_id).status == new.value:
                db.rollback()
                logger.info("Booking %s already %s", booking_id, new.value)
                return booking_ledger.get_booking(db, booking_id)
            raise InvalidTransition(f"Booking is no longer {old.value}; reload and retry")
        wrote = True
        if delta > 0:
            release_slot(db, booking.lot_id, booking_id)
        elif delta < 0:
            take_slot(db, booking.lot_id, booking_id)
        db.commit()
    except ParkwiseError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        _fail(db, exc, wrote, "Update booking")

    logger.info("Booking %s moved %s -> %s", booking_id, old.value, new.value)
    return booking_ledger.get_booking(db, booking_id)


def delete_booking(db: Session, principal: Principal, booking_id: str) -> None:
    booking = booking_ledger.get_booking(db, booking_id)
    ensure_can_access(booking, principal)
    status = BookingStatus(booking.status)
    lot_id = booking.lot_id

    wrote = False
    try:
        if not booking_ledger.delete_booking(db, booking_id, status):
            # Raises NotFound when a racing delete already removed it
            booking_ledger.get_booking(db, booking_id)
            raise InvalidTransition("Booking changed while being deleted; reload and retry")
        wrote = True
        if units_held(status):
            release_slot(db, lot_id, booking_id)
        db.commit()
    except ParkwiseError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        _fail(db, exc, wrote, "Delete booking")

    logger.info("Booking %s deleted (%s)", booking_id, status.value)


def reconcile_lot(db: Session, lot_id: str) -> Tuple[ParkingLot, int, int]:
    """Rebuild a lot's counter from its Confirmed bookings.

    Returns the lot, its previous available count and the correction applied.
    """
    before = slot_counter.read_counter(db, lot_id)
    if before is None:
        raise NotFound("Parking lot not found")
    try:
        after = slot_counter.recount(db, lot_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    correction = after.available - before.available
    if correction:
        logger.warning(
            "Reconciled lot %s: availableSlots %d -> %d", lot_id, before.available, after.available
        )
    return lot_directory.get_lot(db, lot_id), before.available, correction
