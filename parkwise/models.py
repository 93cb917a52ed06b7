from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, String, Integer, Float, DateTime, CheckConstraint, Index

from parkwise.db import Base


def utcnow():
    return datetime.now(timezone.utc)


class BookingStatus(str, Enum):
    CONFIRMED = "Confirmed"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class Role(str, Enum):
    USER = "user"
    OWNER = "owner"
    ADMIN = "admin"


class ParkingLot(Base):
    __tablename__ = "parking_lots"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    location = Column(String, nullable=False)
    longitude = Column(Float)
    latitude = Column(Float)
    total_slots = Column(Integer, nullable=False)
    available_slots = Column(Integer, nullable=False)
    price_per_hour = Column(Float, nullable=False, default=0.0)
    operating_hours = Column(String, nullable=False, default="24/7")
    image_id = Column(String)
    owner_id = Column(String, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("total_slots >= 0", name="lot_total_non_negative"),
        CheckConstraint(
            "available_slots >= 0 AND available_slots <= total_slots",
            name="lot_available_in_bounds",
        ),
        CheckConstraint("price_per_hour >= 0", name="lot_price_non_negative"),
    )

    @property
    def has_coords(self):
        return self.latitude is not None and self.longitude is not None

    @property
    def location_coords(self):
        if not self.has_coords:
            return None
        return {"latitude": self.latitude, "longitude": self.longitude}


class Booking(Base):
    __tablename__ = "bookings"
    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    # No foreign key: a booking may outlive its lot after a forced delete
    lot_id = Column(String, nullable=False)
    lot_name = Column(String, nullable=False)
    date = Column(String, nullable=False)
    time = Column(String, nullable=False)
    status = Column(String, nullable=False, default=BookingStatus.CONFIRMED.value)
    price = Column(Float, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        CheckConstraint(
            "status in ('Confirmed','Completed','Cancelled')", name="booking_status_valid"
        ),
        CheckConstraint("price >= 0", name="booking_price_non_negative"),
        Index("ix_bookings_lot_status", "lot_id", "status"),
    )
