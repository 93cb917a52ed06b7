"""
Slot counter of a parking lot.

``apply_delta`` is the pure bounds rule. The storage helpers below apply the
same rule as single conditional UPDATE statements, so concurrent requests
against one lot never read-modify-write the counter in Python.
"""
import logging
from dataclasses import dataclass, replace

from sqlalchemy import text
from sqlalchemy.orm import Session

from parkwise.errors import NotFound, CapacityExceeded, CapacityUnderflow, CapacityOverflow

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3


@dataclass(frozen=True)
class SlotCounter:
    available: int
    total: int

    @classmethod
    def of(cls, lot) -> "SlotCounter":
        return cls(available=lot.available_slots, total=lot.total_slots)

    @property
    def held(self) -> int:
        return self.total - self.available

    def check(self) -> "SlotCounter":
        if self.total < 0:
            raise CapacityUnderflow(f"totalSlots cannot be negative (got {self.total})")
        if self.available < 0:
            raise CapacityUnderflow(f"availableSlots cannot be negative (got {self.available})")
        if self.available > self.total:
            raise CapacityOverflow(
                f"availableSlots ({self.available}) cannot exceed totalSlots ({self.total})"
            )
        return self


def apply_delta(counter: SlotCounter, delta: int, clamp: bool = False) -> SlotCounter:
    """Return ``counter`` moved by ``delta`` available slots.

    Decrements never clamp: taking a slot from an empty lot raises
    ``CapacityExceeded``. With ``clamp`` an increment past ``total`` stops at
    ``total`` instead of raising ``CapacityOverflow``.
    """
    counter.check()
    available = counter.available + delta
    if available < 0:
        if counter.available == 0:
            raise CapacityExceeded()
        raise CapacityUnderflow(
            f"Cannot take {-delta} slots, only {counter.available} available"
        )
    if available > counter.total:
        if not clamp:
            raise CapacityOverflow(
                f"availableSlots would exceed totalSlots ({counter.total})"
            )
        available = counter.total
    return replace(counter, available=available)


def read_counter(db: Session, lot_id: str) -> SlotCounter | None:
    row = db.execute(
        text("SELECT available_slots, total_slots FROM parking_lots WHERE id = :lot_id"),
        {"lot_id": lot_id},
    ).fetchone()
    if row is None:
        return None
    return SlotCounter(available=row[0], total=row[1])


def adjust_available(db: Session, lot_id: str, delta: int, clamp: bool = False) -> int:
    """Atomically add ``delta`` to a lot's available slots.

    Returns the delta actually applied, which is smaller than ``delta`` (or
    zero) only when ``clamp`` capped an increment at ``total_slots``. Raises
    ``NotFound`` for an unknown lot and a ``CapacityError`` when the bounds
    forbid the change. Does not commit.
    """
    if delta == 0:
        return 0

    if delta < 0:
        sql = text("""
            UPDATE parking_lots
            SET available_slots = available_slots + :delta, updated_at = CURRENT_TIMESTAMP
            WHERE id = :lot_id AND available_slots + :delta >= 0
        """)
    elif clamp:
        sql = text("""
            UPDATE parking_lots
            SET available_slots = CASE
                    WHEN available_slots + :delta > total_slots THEN total_slots
                    ELSE available_slots + :delta
                END,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = :lot_id AND available_slots < total_slots
        """)
    else:
        sql = text("""
            UPDATE parking_lots
            SET available_slots = available_slots + :delta, updated_at = CURRENT_TIMESTAMP
            WHERE id = :lot_id AND available_slots + :delta <= total_slots
        """)

    for _ in range(MAX_ATTEMPTS):
        before = read_counter(db, lot_id) if clamp and delta > 0 else None
        res = db.execute(sql, {"lot_id": lot_id, "delta": delta})
        if res.rowcount == 1:
            if before is not None:
                return min(delta, before.held)
            return delta

        counter = read_counter(db, lot_id)
        if counter is None:
            raise NotFound(f"Parking lot {lot_id} not found")
        # Raises for every miss except an increment clamped to a full lot
        moved = apply_delta(counter, delta, clamp=clamp)
        if moved.available == counter.available:
            logger.warning("Lot %s already at totalSlots (%d); increment clamped to 0", lot_id, counter.total)
            return 0
        # The counter moved between the UPDATE and the read; try again
        logger.debug("Counter of lot %s changed concurrently, retrying", lot_id)

    raise CapacityUnderflow(f"Could not adjust slot counter of lot {lot_id}")


def resize(db: Session, lot_id: str, new_total: int) -> SlotCounter:
    """Set a lot's total slots, keeping the slots held by bookings held.

    Shrinking below the number of held slots raises ``CapacityOverflow``.
    Does not commit.
    """
    if new_total < 0:
        raise CapacityUnderflow(f"totalSlots cannot be negative (got {new_total})")

    res = db.execute(
        text("""
            UPDATE parking_lots
            SET available_slots = available_slots + (:new_total - total_slots),
                total_slots = :new_total,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = :lot_id AND total_slots - available_slots <= :new_total
        """),
        {"lot_id": lot_id, "new_total": new_total},
    )
    counter = read_counter(db, lot_id)
    if counter is None:
        raise NotFound(f"Parking lot {lot_id} not found")
    if res.rowcount != 1:
        raise CapacityOverflow(
            f"Cannot reduce totalSlots to {new_total}: {counter.held} slots are booked"
        )
    return counter


def recount(db: Session, lot_id: str) -> SlotCounter:
    """Rebuild a lot's available slots from its Confirmed bookings.

    One statement, so it is safe to run at any time and any number of times.
    Does not commit.
    """
    held = """(
        SELECT COUNT(*) FROM bookings b
        WHERE b.lot_id = parking_lots.id AND b.status = 'Confirmed'
    )"""
    res = db.execute(
        text(f"""
            UPDATE parking_lots
            SET available_slots = CASE
                    WHEN total_slots - {held} < 0 THEN 0
                    ELSE total_slots - {held}
                END,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = :lot_id
        """),
        {"lot_id": lot_id},
    )
    if res.rowcount != 1:
        raise NotFound(f"Parking lot {lot_id} not found")
    return read_counter(db, lot_id)
