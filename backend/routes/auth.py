# backend/routes/auth.py
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, UserRole
from schemas import user as schemas
from utils.audit import write_log, client_ip
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import create_access_token, get_current_user

router = APIRouter(prefix="/auth", tags=["Auth"])


def _auth_payload(user: User) -> dict:
    return {
        "token": create_access_token(user),
        "token_type": "bearer",
        "user": schemas.UserPublic.model_validate(user),
    }


# Register a new account; everyone starts as an employee
@router.post("/signup", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: schemas.UserCreate, request: Request, db: Session = Depends(get_db)):
    normalized_email = payload.email.strip().lower()
    if not payload.password or not payload.name or not payload.name.strip():
        raise HTTPException(status_code=400, detail="Email, password, and name are required")

    existing = db.query(User).filter(func.lower(User.email) == normalized_email).first()
    if existing:
        write_log(db, user_id=None, action="SIGNUP", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"email": normalized_email, "reason": "User already exists"})
        raise HTTPException(status_code=400, detail="User already exists")

    new_user = User(
        email=normalized_email,
        password_hash=get_password_hash(payload.password),
        name=payload.name.strip(),
        role=UserRole.EMPLOYEE.value,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    write_log(db, user_id=new_user.id, action="SIGNUP", resource="auth",
              ip=client_ip(request), meta={"email": new_user.email})

    return _auth_payload(new_user)


# Authenticate and issue a JWT
@router.post("/login", response_model=schemas.AuthResponse)
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    normalized_email = payload.email.strip().lower()
    if not payload.password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    db_user = db.query(User).filter(func.lower(User.email) == normalized_email).first()
    if not db_user or not verify_password(payload.password, db_user.password_hash):
        write_log(db, user_id=(db_user.id if db_user else None), action="LOGIN", resource="auth",
                  status="FAIL", ip=client_ip(request), meta={"email": normalized_email})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              ip=client_ip(request), meta={"email": db_user.email})

    return _auth_payload(db_user)


# Profile of the resolved caller
@router.get("/me", response_model=schemas.UserResponse)
def me(current_user: schemas.CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == current_user.id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "team_id": user.team_id,
        "team_name": user.team.name if user.team else None,
        "created_at": user.created_at,
    }
