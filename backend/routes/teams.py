# backend/routes/teams.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.team import Team
from schemas.team import TeamOut, TeamCreate
from schemas.user import CurrentUser
from utils.audit import write_log, client_ip
from utils.tokenJWT import get_current_user, manager_required

router = APIRouter(prefix="/teams", tags=["Teams"])


@router.get("", response_model=List[TeamOut])
def list_teams(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return db.query(Team).order_by(Team.name).all()


@router.get("/{team_id}", response_model=TeamOut)
def get_team(
    team_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    team = db.query(Team).filter(Team.id == team_id).first()
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")
    return team


# Create a team (Manager only)
@router.post("", response_model=TeamOut, status_code=status.HTTP_201_CREATED)
def create_team(
    payload: TeamCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(manager_required),
):
    name = (payload.name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Name is required")

    team = Team(name=name)
    db.add(team)
    db.commit()
    db.refresh(team)

    write_log(db, user_id=current_user.id, action="TEAM_CREATE", resource="teams",
              ip=client_ip(request), meta={"team_id": team.id, "name": team.name})
    return team
