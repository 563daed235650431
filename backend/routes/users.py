# backend/routes/users.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session, joinedload

from database import get_db
from models.team import Team
from models.users import User, UserRole, USER_ROLES
from schemas.user import CurrentUser, RoleUpdate, TeamAssignment, UserResponse
from utils.audit import write_log, client_ip
from utils.tokenJWT import manager_required

# Every user-administration route is manager-only
router = APIRouter(prefix="/users", tags=["Users"])


def _serialize(u: User) -> dict:
    return {
        "id": u.id,
        "email": u.email,
        "name": u.name,
        "role": u.role,
        "team_id": u.team_id,
        "team_name": u.team.name if u.team else None,
        "created_at": u.created_at,
    }


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).options(joinedload(User.team)).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


# All users with their team, grouped by role
@router.get("", response_model=List[UserResponse])
def list_users(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(manager_required),
):
    users = (
        db.query(User)
        .options(joinedload(User.team))
        .order_by(User.role, User.name)
        .all()
    )
    return [_serialize(u) for u in users]


@router.get("/technicians", response_model=List[UserResponse])
def list_technicians(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(manager_required),
):
    users = (
        db.query(User)
        .options(joinedload(User.team))
        .filter(User.role == UserRole.TECHNICIAN.value)
        .order_by(User.name)
        .all()
    )
    return [_serialize(u) for u in users]


# Assign a user to a team; a null team_id unassigns
@router.patch("/{user_id}/team", response_model=UserResponse)
def assign_team(
    user_id: int,
    payload: TeamAssignment,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(manager_required),
):
    team_id = payload.team_id or None
    user = _get_user_or_404(db, user_id)
    if team_id is not None and not db.query(Team.id).filter(Team.id == team_id).first():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team not found")

    user.team_id = team_id
    db.commit()

    write_log(db, user_id=current_user.id, action="USER_TEAM", resource="users",
              ip=client_ip(request), meta={"user_id": user_id, "team_id": team_id})
    return _serialize(_get_user_or_404(db, user_id))


@router.patch("/{user_id}/role", response_model=UserResponse)
def update_user_role(
    user_id: int,
    payload: RoleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(manager_required),
):
    if payload.role not in USER_ROLES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid role")

    user = _get_user_or_404(db, user_id)
    previous = user.role
    user.role = payload.role
    db.commit()

    write_log(db, user_id=current_user.id, action="USER_ROLE", resource="users",
              ip=client_ip(request), meta={"user_id": user_id, "from": previous, "to": payload.role})
    return _serialize(_get_user_or_404(db, user_id))
