import datetime as dt
from pydantic import BaseModel
from typing import Optional


# Schema for filing a request. Required fields and enum values are checked in
# the route so that failures come back as descriptive 400s.
class RequestCreate(BaseModel):
    equipment_id: Optional[int] = None
    team_id: Optional[int] = None
    assigned_technician_id: Optional[int] = None
    type: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    scheduled_date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    duration_hours: Optional[float] = None


# Partial update; only fields present in the body are applied
class RequestUpdate(BaseModel):
    equipment_id: Optional[int] = None
    team_id: Optional[int] = None
    assigned_technician_id: Optional[int] = None
    type: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    scheduled_date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    duration_hours: Optional[float] = None
    status: Optional[str] = None


# Kanban transition
class StatusUpdate(BaseModel):
    status: Optional[str] = None


# Request row joined with equipment, team, requester and technician names
class RequestOut(BaseModel):
    id: int
    equipment_id: int
    team_id: Optional[int] = None
    user_id: Optional[int] = None
    assigned_technician_id: Optional[int] = None
    type: str
    status: str
    title: str
    description: Optional[str] = None
    scheduled_date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    duration_hours: Optional[float] = None
    created_at: dt.datetime
    updated_at: dt.datetime

    equipment_name: Optional[str] = None
    equipment_category: Optional[str] = None
    team_name: Optional[str] = None
    user_name: Optional[str] = None
    technician_name: Optional[str] = None


# Scheduled request shaped for calendar consumption
class CalendarEvent(BaseModel):
    id: int
    title: str
    date: dt.date
    startTime: Optional[dt.time] = None
    durationHours: Optional[float] = None
    status: str
    type: str
    description: Optional[str] = None
    equipment_id: int
    team_id: Optional[int] = None
    equipment_name: Optional[str] = None


# Dashboard counters over the whole requests table
class StatsSummary(BaseModel):
    new_count: int
    in_progress_count: int
    repaired_count: int
    scrap_count: int
    corrective_count: int
    preventive_count: int
    total_count: int
