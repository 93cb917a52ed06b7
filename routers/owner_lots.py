from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from parkwise import lot_directory
from parkwise.auth import Principal, allow_owner
from parkwise.db import get_db
from parkwise.errors import Forbidden
from parkwise.schemas import LotCreate, LotOut, LotPatch, MessageOut

router = APIRouter()


@router.get("", response_model=List[LotOut])
def list_owner_lots(
    owner_id: Optional[str] = Query(default=None, alias="ownerId"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(allow_owner),
):
    # Admins may look at any owner's lots
    if owner_id and owner_id != principal.user_id and not principal.is_admin:
        raise Forbidden("You can only list your own lots")
    return lot_directory.list_by_owner(db, owner_id or principal.user_id)


@router.post("", response_model=LotOut, status_code=201)
def create_owner_lot(
    body: LotCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(allow_owner),
):
    return lot_directory.create_lot(db, body, owner_id=principal.user_id)


@router.put("/{lot_id}", response_model=LotOut)
def update_owner_lot(
    lot_id: str,
    body: LotPatch,
    db: Session = Depends(get_db),
    principal: Principal = Depends(allow_owner),
):
    lot_directory.get_owned_lot(db, lot_id, principal)
    return lot_directory.update_lot(db, lot_id, body)


@router.delete("/{lot_id}", response_model=MessageOut)
def delete_owner_lot(
    lot_id: str,
    force: bool = Query(default=False),
    db: Session = Depends(get_db),
    principal: Principal = Depends(allow_owner),
):
    lot_directory.get_owned_lot(db, lot_id, principal)
    if force and not principal.is_admin:
        raise Forbidden("Only admins can delete a lot with active bookings")
    lot_directory.delete_lot(db, lot_id, force=force)
    return {"message": "Parking lot deleted successfully"}
