from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel

from parkwise.models import BookingStatus


class CamelModel(BaseModel):
    """Base for API bodies: camelCase on the wire, snake_case in Python."""
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


class JsonOutResult(BaseModel):
    data: Any = None
    status: str
    status_code: str
    message: str


class MessageOut(BaseModel):
    message: str


# ----------------- Parking lots -----------------
class Coordinates(CamelModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class LotCreate(CamelModel):
    name: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    total_slots: int = Field(..., ge=0)
    available_slots: Optional[int] = Field(None, ge=0)
    price_per_hour: float = Field(..., ge=0)
    operating_hours: str = "24/7"
    image_id: Optional[str] = None

    @model_validator(mode="after")
    def check_counter_and_coords(self):
        if self.available_slots is not None and self.available_slots > self.total_slots:
            raise ValueError("availableSlots cannot exceed totalSlots")
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        return self


# NOT NULL columns: a patch may omit them but never clear them
REQUIRED_LOT_FIELDS = {"name", "location", "total_slots", "price_per_hour", "operating_hours"}


class LotPatch(CamelModel):
    """Fields an owner may change after creation. The live counter is not one of them."""
    model_config = {**CamelModel.model_config, "extra": "forbid"}

    name: Optional[str] = Field(None, min_length=1)
    location: Optional[str] = Field(None, min_length=1)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    total_slots: Optional[int] = Field(None, ge=0)
    price_per_hour: Optional[float] = Field(None, ge=0)
    operating_hours: Optional[str] = None
    image_id: Optional[str] = None

    @model_validator(mode="after")
    def check_nulls_and_coords(self):
        for field in REQUIRED_LOT_FIELDS & self.model_fields_set:
            if getattr(self, field) is None:
                raise ValueError(f"{to_camel(field)} cannot be null")
        coords = {"latitude", "longitude"} & self.model_fields_set
        if coords and len(coords) != 2:
            raise ValueError("latitude and longitude must be changed together")
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        return self


class AdminLotCreate(LotCreate):
    """Lot created by an admin, on behalf of an owner or with no owner at all."""
    owner_id: Optional[str] = None


class LotOut(CamelModel):
    id: str
    name: str
    location: str
    location_coords: Optional[Coordinates] = None
    available_slots: int
    total_slots: int
    price_per_hour: float
    image_id: Optional[str] = None
    operating_hours: str
    owner_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LotSearchResult(LotOut):
    distance_km: Optional[float] = None


class LotQrOut(CamelModel):
    id: str
    name: str
    location: str
    qr_data: str
    qr_code_url: str


class ReconcileOut(CamelModel):
    lot: LotOut
    previous_available: int
    correction: int


# ----------------- Bookings -----------------
class BookingCreate(CamelModel):
    user_id: Optional[str] = None
    lot_id: str
    date: str = Field(..., min_length=1)
    time: str = Field(..., min_length=1)
    status: BookingStatus = BookingStatus.CONFIRMED
    price: Optional[float] = Field(None, ge=0)


class BookingPatch(CamelModel):
    """Only the lifecycle status of a booking is mutable."""
    model_config = {**CamelModel.model_config, "extra": "forbid"}

    status: Optional[BookingStatus] = None


class BookingOut(CamelModel):
    id: str
    user_id: str
    lot_id: str
    lot_name: str
    date: str
    time: str
    status: BookingStatus
    price: float
    created_at: Optional[datetime] = None


# ----------------- Admin -----------------
class StatusCounts(CamelModel):
    confirmed: int = 0
    completed: int = 0
    cancelled: int = 0


class OverviewOut(CamelModel):
    total_lots: int
    total_slots: int
    available_slots: int
    bookings: StatusCounts
    revenue: float
