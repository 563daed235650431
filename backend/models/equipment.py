from datetime import datetime

from sqlalchemy import Column, Integer, String, ForeignKey, Boolean, DateTime
from sqlalchemy.orm import relationship
from database import Base


# Represents a maintainable asset and its default maintenance team
class Equipment(Base):
    __tablename__ = "equipment"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True)
    location = Column(String(255), nullable=True)
    maintenance_team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    is_usable = Column(Boolean, default=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    maintenance_team = relationship("Team", back_populates="equipment")

    # Requests die with their equipment (ORM side mirrors ON DELETE CASCADE)
    requests = relationship(
        "MaintenanceRequest",
        back_populates="equipment",
        cascade="all, delete-orphan",
    )
