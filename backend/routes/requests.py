# backend/routes/requests.py
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import case, func
from sqlalchemy.orm import Session, joinedload

from config import settings
from database import get_db
from models.equipment import Equipment
from models.request import (
    MaintenanceRequest, RequestStatus, RequestType, REQUEST_STATUSES, REQUEST_TYPES
)
from models.team import Team
from models.users import User, UserRole
from schemas.request import (
    RequestCreate, RequestUpdate, StatusUpdate, RequestOut, CalendarEvent, StatsSummary
)
from schemas.user import CurrentUser
from utils.audit import write_log, client_ip
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/requests", tags=["Requests"])

DEFAULT_DURATION_HOURS = 1.0

# Roles allowed to move a request between statuses
STATUS_ROLES = {UserRole.TECHNICIAN.value, UserRole.MANAGER.value}


# ---- HELPERS ----
def _serialize(r: MaintenanceRequest) -> dict:
    return {
        "id": r.id,
        "equipment_id": r.equipment_id,
        "team_id": r.team_id,
        "user_id": r.user_id,
        "assigned_technician_id": r.assigned_technician_id,
        "type": r.type,
        "status": r.status,
        "title": r.title,
        "description": r.description,
        "scheduled_date": r.scheduled_date,
        "start_time": r.start_time,
        "duration_hours": r.duration_hours,
        "created_at": r.created_at,
        "updated_at": r.updated_at,
        "equipment_name": r.equipment.name if r.equipment else None,
        "equipment_category": r.equipment.category if r.equipment else None,
        "team_name": r.team.name if r.team else None,
        "user_name": r.requester.name if r.requester else None,
        "technician_name": r.technician.name if r.technician else None,
    }


def _joined_query(db: Session):
    return db.query(MaintenanceRequest).options(
        joinedload(MaintenanceRequest.equipment),
        joinedload(MaintenanceRequest.team),
        joinedload(MaintenanceRequest.requester),
        joinedload(MaintenanceRequest.technician),
    )


def _get_or_404(db: Session, request_id: int) -> MaintenanceRequest:
    r = _joined_query(db).filter(MaintenanceRequest.id == request_id).first()
    if not r:
        raise HTTPException(status_code=404, detail="Request not found")
    return r


def _validate_type(value: Optional[str]):
    if value not in REQUEST_TYPES:
        raise HTTPException(status_code=400, detail='Type must be "corrective" or "preventive"')


def _validate_status(value: Optional[str]):
    if value not in REQUEST_STATUSES:
        raise HTTPException(
            status_code=400,
            detail=f"Valid status is required ({', '.join(REQUEST_STATUSES)})",
        )


def _check_references(db: Session, equipment_id=None, team_id=None, technician_id=None):
    if equipment_id is not None and not db.query(Equipment.id).filter(Equipment.id == equipment_id).first():
        raise HTTPException(status_code=404, detail="Equipment not found")
    if team_id is not None and not db.query(Team.id).filter(Team.id == team_id).first():
        raise HTTPException(status_code=404, detail="Team not found")
    if technician_id is not None and not db.query(User.id).filter(User.id == technician_id).first():
        raise HTTPException(status_code=404, detail="Technician not found")


def _check_type_role(current_user: CurrentUser, type_value: str):
    if (settings.ENFORCE_ROLE_POLICY and current_user.role != UserRole.MANAGER.value
            and type_value != RequestType.CORRECTIVE.value):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "Forbidden", "message": "Only managers can file preventive requests"},
        )


def _check_status_role(current_user: CurrentUser):
    if settings.ENFORCE_ROLE_POLICY and current_user.role not in STATUS_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "Forbidden", "message": "Only technicians and managers can change status"},
        )


# ==========================================
#  LIST / CALENDAR / STATS
# ==========================================
@router.get("", response_model=List[RequestOut])
def list_requests(
    status: Optional[str] = Query(None),
    equipment_id: Optional[int] = Query(None),
    type: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    query = _joined_query(db)

    if status:
        query = query.filter(MaintenanceRequest.status == status)
    if equipment_id is not None:
        query = query.filter(MaintenanceRequest.equipment_id == equipment_id)
    if type:
        query = query.filter(MaintenanceRequest.type == type)

    rows = query.order_by(MaintenanceRequest.created_at.desc(), MaintenanceRequest.id.desc()).all()
    return [_serialize(r) for r in rows]


# Scheduled requests only, optionally bounded by an inclusive date range
@router.get("/calendar", response_model=List[CalendarEvent])
def get_calendar(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    query = (
        db.query(MaintenanceRequest)
        .options(joinedload(MaintenanceRequest.equipment))
        .filter(MaintenanceRequest.scheduled_date.isnot(None))
    )
    if start:
        query = query.filter(MaintenanceRequest.scheduled_date >= start)
    if end:
        query = query.filter(MaintenanceRequest.scheduled_date <= end)

    rows = query.order_by(
        MaintenanceRequest.scheduled_date,
        MaintenanceRequest.start_time,
        MaintenanceRequest.id,
    ).all()

    return [
        {
            "id": r.id,
            "title": r.title,
            "date": r.scheduled_date,
            "startTime": r.start_time,
            "durationHours": r.duration_hours,
            "status": r.status,
            "type": r.type,
            "description": r.description,
            "equipment_id": r.equipment_id,
            "team_id": r.team_id,
            "equipment_name": r.equipment.name if r.equipment else None,
        }
        for r in rows
    ]


# Counts by status and by type over the whole table, in one query
@router.get("/stats/summary", response_model=StatsSummary)
def get_stats_summary(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    def _count_where(condition):
        return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

    row = db.query(
        _count_where(MaintenanceRequest.status == RequestStatus.NEW.value).label("new_count"),
        _count_where(MaintenanceRequest.status == RequestStatus.IN_PROGRESS.value).label("in_progress_count"),
        _count_where(MaintenanceRequest.status == RequestStatus.REPAIRED.value).label("repaired_count"),
        _count_where(MaintenanceRequest.status == RequestStatus.SCRAP.value).label("scrap_count"),
        _count_where(MaintenanceRequest.type == RequestType.CORRECTIVE.value).label("corrective_count"),
        _count_where(MaintenanceRequest.type == RequestType.PREVENTIVE.value).label("preventive_count"),
        func.count(MaintenanceRequest.id).label("total_count"),
    ).one()

    return StatsSummary(
        new_count=row.new_count,
        in_progress_count=row.in_progress_count,
        repaired_count=row.repaired_count,
        scrap_count=row.scrap_count,
        corrective_count=row.corrective_count,
        preventive_count=row.preventive_count,
        total_count=row.total_count,
    )


# ==========================================
#  SINGLE REQUEST
# ==========================================
@router.get("/{request_id}", response_model=RequestOut)
def get_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return _serialize(_get_or_404(db, request_id))


@router.post("", response_model=RequestOut, status_code=status.HTTP_201_CREATED)
def create_request(
    payload: RequestCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    if not payload.equipment_id or not payload.type or not payload.title:
        raise HTTPException(status_code=400, detail="Equipment ID, type, and title are required")
    _validate_type(payload.type)

    team_id = payload.team_id or None
    technician_id = payload.assigned_technician_id or None

    _check_type_role(current_user, payload.type)
    if settings.ENFORCE_ROLE_POLICY and current_user.role != UserRole.MANAGER.value:
        # Technicians own the requests they file, under their own team
        if current_user.role == UserRole.TECHNICIAN.value:
            technician = db.query(User).filter(User.id == current_user.id).first()
            team_id = technician.team_id if technician else None
            technician_id = current_user.id if technician else None

    _check_references(db, equipment_id=payload.equipment_id, team_id=team_id, technician_id=technician_id)

    now = datetime.utcnow()
    r = MaintenanceRequest(
        equipment_id=payload.equipment_id,
        team_id=team_id,
        user_id=current_user.id,
        assigned_technician_id=technician_id,
        type=payload.type,
        status=RequestStatus.NEW.value,
        title=payload.title,
        description=payload.description or None,
        scheduled_date=payload.scheduled_date,
        start_time=payload.start_time,
        duration_hours=payload.duration_hours or DEFAULT_DURATION_HOURS,
        created_at=now,
        updated_at=now,
    )
    db.add(r)
    db.commit()

    write_log(db, user_id=current_user.id, action="REQUEST_CREATE", resource="requests",
              ip=client_ip(request), meta={"request_id": r.id, "type": r.type})
    return _serialize(_get_or_404(db, r.id))


# Kanban transition; any status may follow any other
@router.patch("/{request_id}/status", response_model=RequestOut)
def update_request_status(
    request_id: int,
    payload: StatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    _validate_status(payload.status)
    _check_status_role(current_user)

    r = _get_or_404(db, request_id)
    previous = r.status
    r.status = payload.status
    r.updated_at = datetime.utcnow()
    db.commit()

    write_log(db, user_id=current_user.id, action="REQUEST_STATUS", resource="requests",
              ip=client_ip(request), meta={"request_id": request_id, "from": previous, "to": payload.status})
    return _serialize(_get_or_404(db, request_id))


# Partial update: only fields present in the body change
@router.patch("/{request_id}", response_model=RequestOut)
def update_request(
    request_id: int,
    payload: RequestUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    if "type" in changes:
        _validate_type(changes["type"])
        _check_type_role(current_user, changes["type"])
    if "status" in changes:
        _validate_status(changes["status"])
        _check_status_role(current_user)
    if "title" in changes and not changes["title"]:
        raise HTTPException(status_code=400, detail="Title cannot be empty")
    if "equipment_id" in changes and changes["equipment_id"] is None:
        raise HTTPException(status_code=400, detail="Equipment ID cannot be null")

    r = _get_or_404(db, request_id)
    _check_references(
        db,
        equipment_id=changes.get("equipment_id"),
        team_id=changes.get("team_id"),
        technician_id=changes.get("assigned_technician_id"),
    )

    for key, value in changes.items():
        setattr(r, key, value)
    r.updated_at = datetime.utcnow()
    db.commit()

    write_log(db, user_id=current_user.id, action="REQUEST_UPDATE", resource="requests",
              ip=client_ip(request), meta={"request_id": request_id, "fields": sorted(changes)})
    return _serialize(_get_or_404(db, request_id))
