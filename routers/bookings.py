from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from parkwise import booking_ledger, coordinator
from parkwise.auth import Principal, get_current_principal, allow_admin
from parkwise.db import get_db
from parkwise.payments import PaymentAuthorizer, get_payment_authorizer
from parkwise.schemas import BookingCreate, BookingOut, BookingPatch, MessageOut

router = APIRouter()
user_router = APIRouter()


@router.get("", response_model=List[BookingOut])
def list_bookings(
    db: Session = Depends(get_db),
    principal: Principal = Depends(allow_admin),
):
    return booking_ledger.list_all(db)


@router.post("", response_model=BookingOut, status_code=201)
def create_booking(
    body: BookingCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    authorizer: PaymentAuthorizer = Depends(get_payment_authorizer),
):
    """
    Book one slot at a lot. A Confirmed booking takes a slot with a single
    conditional decrement, so the last free slot goes to exactly one caller;
    everyone else gets 409 CAPACITY_EXCEEDED and nothing is stored.
    """
    return coordinator.create_booking(db, principal, body, authorizer)


@router.get("/{booking_id}", response_model=BookingOut)
def get_booking(
    booking_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    booking = booking_ledger.get_booking(db, booking_id)
    coordinator.ensure_can_access(booking, principal)
    return booking


@router.put("/{booking_id}", response_model=BookingOut)
def update_booking(
    booking_id: str,
    body: BookingPatch,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return coordinator.update_booking(db, principal, booking_id, body)


@router.delete("/{booking_id}", response_model=MessageOut)
def delete_booking(
    booking_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    coordinator.delete_booking(db, principal, booking_id)
    return {"message": "Booking deleted successfully"}


@user_router.get("/bookings", response_model=List[BookingOut])
def list_my_bookings(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return booking_ledger.list_by_user(db, principal.user_id)
