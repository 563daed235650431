# backend/models/users.py
from datetime import datetime
import enum

from sqlalchemy import Column, Integer, String, ForeignKey, CheckConstraint, DateTime
from sqlalchemy.orm import relationship
from database import Base


# Roles recognised by the role gate
class UserRole(str, enum.Enum):
    EMPLOYEE = "employee"
    TECHNICIAN = "technician"
    MANAGER = "manager"


USER_ROLES = tuple(r.value for r in UserRole)


# Represents a user account with authentication details, role and home team
class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role IN ('employee', 'technician', 'manager')", name="ck_users_role"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default=UserRole.EMPLOYEE.value)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    team = relationship("Team", back_populates="members")
