from pydantic import BaseModel
from typing import Optional
from datetime import datetime


# Fields shared by every equipment payload
class EquipmentBase(BaseModel):
    category: Optional[str] = None
    location: Optional[str] = None
    maintenance_team_id: Optional[int] = None


# Schema for registering equipment; name presence is checked in the route
class EquipmentCreate(EquipmentBase):
    name: Optional[str] = None


# Partial update; only fields present in the body are applied
class EquipmentUpdate(EquipmentBase):
    name: Optional[str] = None
    is_usable: Optional[bool] = None


# Equipment row joined with its maintenance team name
class EquipmentOut(EquipmentBase):
    id: int
    name: str
    is_usable: bool = True
    created_at: Optional[datetime] = None
    team_name: Optional[str] = None


# Defaults used to pre-populate a new request form
class EquipmentAutofill(BaseModel):
    team_id: Optional[int] = None
    team_name: Optional[str] = None
    category: Optional[str] = None


class OpenRequestCount(BaseModel):
    equipment_id: int
    open_count: int
