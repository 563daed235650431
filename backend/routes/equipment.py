# backend/routes/equipment.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session, joinedload

from database import get_db
from models.equipment import Equipment
from models.request import MaintenanceRequest, OPEN_STATUSES
from models.team import Team
from schemas.equipment import (
    EquipmentCreate, EquipmentUpdate, EquipmentOut, EquipmentAutofill, OpenRequestCount
)
from schemas.user import CurrentUser
from utils.audit import write_log, client_ip
from utils.tokenJWT import get_current_user

# Any authenticated caller may read and edit equipment
router = APIRouter(prefix="/equipment", tags=["Equipment"])


def _serialize(e: Equipment) -> dict:
    return {
        "id": e.id,
        "name": e.name,
        "category": e.category,
        "location": e.location,
        "maintenance_team_id": e.maintenance_team_id,
        # Rows created before the column existed carry NULL
        "is_usable": True if e.is_usable is None else e.is_usable,
        "created_at": e.created_at,
        "team_name": e.maintenance_team.name if e.maintenance_team else None,
    }


def _get_or_404(db: Session, equipment_id: int) -> Equipment:
    equipment = (
        db.query(Equipment)
        .options(joinedload(Equipment.maintenance_team))
        .filter(Equipment.id == equipment_id)
        .first()
    )
    if not equipment:
        raise HTTPException(status_code=404, detail="Equipment not found")
    return equipment


def _check_team(db: Session, team_id):
    if team_id is not None and not db.query(Team.id).filter(Team.id == team_id).first():
        raise HTTPException(status_code=404, detail="Team not found")


# List all equipment, newest first
@router.get("", response_model=List[EquipmentOut])
def list_equipment(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    rows = (
        db.query(Equipment)
        .options(joinedload(Equipment.maintenance_team))
        .order_by(Equipment.created_at.desc(), Equipment.id.desc())
        .all()
    )
    return [_serialize(e) for e in rows]


@router.get("/{equipment_id}", response_model=EquipmentOut)
def get_equipment(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return _serialize(_get_or_404(db, equipment_id))


@router.post("", response_model=EquipmentOut, status_code=status.HTTP_201_CREATED)
def create_equipment(
    payload: EquipmentCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    if not payload.name:
        raise HTTPException(status_code=400, detail="Name is required")
    team_id = payload.maintenance_team_id or None
    _check_team(db, team_id)

    equipment = Equipment(
        name=payload.name,
        category=payload.category or None,
        location=payload.location or None,
        maintenance_team_id=team_id,
        is_usable=True,
    )
    db.add(equipment)
    db.commit()
    db.refresh(equipment)

    write_log(db, user_id=current_user.id, action="EQUIPMENT_CREATE", resource="equipment",
              ip=client_ip(request), meta={"equipment_id": equipment.id})
    return _serialize(equipment)


# Partial update: only fields present in the body change
@router.patch("/{equipment_id}", response_model=EquipmentOut)
def update_equipment(
    equipment_id: int,
    payload: EquipmentUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    if "name" in changes and not changes["name"]:
        raise HTTPException(status_code=400, detail="Name cannot be empty")

    equipment = _get_or_404(db, equipment_id)
    if "maintenance_team_id" in changes:
        _check_team(db, changes["maintenance_team_id"])

    for key, value in changes.items():
        setattr(equipment, key, value)
    db.commit()
    db.refresh(equipment)

    write_log(db, user_id=current_user.id, action="EQUIPMENT_UPDATE", resource="equipment",
              ip=client_ip(request), meta={"equipment_id": equipment.id, "fields": sorted(changes)})
    return _serialize(equipment)


# Delete equipment together with every request filed against it
@router.delete("/{equipment_id}")
def delete_equipment(
    equipment_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    equipment = db.query(Equipment).filter(Equipment.id == equipment_id).first()
    if not equipment:
        raise HTTPException(status_code=404, detail="Equipment not found")

    db.delete(equipment)
    db.commit()

    write_log(db, user_id=current_user.id, action="EQUIPMENT_DELETE", resource="equipment",
              ip=client_ip(request), meta={"equipment_id": equipment_id})
    return {"message": "Equipment deleted successfully"}


# Default team and category for pre-populating a new request
@router.get("/{equipment_id}/autofill", response_model=EquipmentAutofill)
def get_autofill(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    equipment = _get_or_404(db, equipment_id)
    return {
        "team_id": equipment.maintenance_team_id,
        "team_name": equipment.maintenance_team.name if equipment.maintenance_team else None,
        "category": equipment.category,
    }


# Number of open (new or in progress) requests against this equipment
@router.get("/{equipment_id}/requests/count", response_model=OpenRequestCount)
def count_open_requests(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    open_count = (
        db.query(MaintenanceRequest)
        .filter(
            MaintenanceRequest.equipment_id == equipment_id,
            MaintenanceRequest.status.in_(OPEN_STATUSES),
        )
        .count()
    )
    return {"equipment_id": equipment_id, "open_count": open_count}
