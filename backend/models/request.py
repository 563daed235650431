from datetime import datetime
import enum

from sqlalchemy import (
    Column, Integer, String, Text, ForeignKey, Date, Time, DateTime, Numeric, CheckConstraint
)
from sqlalchemy.orm import relationship
from database import Base


# Corrective requests react to a breakdown, preventive ones follow a plan
class RequestType(str, enum.Enum):
    CORRECTIVE = "corrective"
    PREVENTIVE = "preventive"


class RequestStatus(str, enum.Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    REPAIRED = "repaired"
    SCRAP = "scrap"


REQUEST_TYPES = tuple(t.value for t in RequestType)
REQUEST_STATUSES = tuple(s.value for s in RequestStatus)
OPEN_STATUSES = (RequestStatus.NEW.value, RequestStatus.IN_PROGRESS.value)


# A maintenance work item filed against one piece of equipment
class MaintenanceRequest(Base):
    __tablename__ = "requests"
    __table_args__ = (
        CheckConstraint("type IN ('corrective', 'preventive')", name="ck_requests_type"),
        CheckConstraint(
            "status IN ('new', 'in_progress', 'repaired', 'scrap')", name="ck_requests_status"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    equipment_id = Column(
        Integer, ForeignKey("equipment.id", ondelete="CASCADE"), nullable=False, index=True
    )
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    assigned_technician_id = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    type = Column(String(50), nullable=False)
    status = Column(String(50), nullable=False, default=RequestStatus.NEW.value, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Calendar placement
    scheduled_date = Column(Date, nullable=True, index=True)
    start_time = Column(Time, nullable=True)
    duration_hours = Column(Numeric(4, 2, asdecimal=False), default=1.0)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    equipment = relationship("Equipment", back_populates="requests")
    team = relationship("Team")
    requester = relationship("User", foreign_keys=[user_id])
    technician = relationship("User", foreign_keys=[assigned_technician_id])
