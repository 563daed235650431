from pydantic import BaseModel
from typing import Optional
from datetime import datetime


# Schema for displaying a team
class TeamOut(BaseModel):
    id: int
    name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Schema for creating a team; emptiness is checked in the route for a 400
class TeamCreate(BaseModel):
    name: Optional[str] = None
