from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str

# Schema for signup requests; role is always employee on signup
class UserCreate(UserBase):
    password: str
    name: str

# Compact user block returned with a token
class UserPublic(BaseModel):
    id: int
    email: str
    name: str
    role: str

    class Config:
        from_attributes = True

# Signup/login response
class AuthResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserPublic

# Output schema for profile and administration listings
class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    role: str
    team_id: Optional[int] = None
    team_name: Optional[str] = None
    created_at: Optional[datetime] = None

# Identity resolved from the bearer token (or the bypass identity)
class CurrentUser(BaseModel):
    id: int
    email: Optional[str] = None
    role: Optional[str] = None

# Schema for team assignment; null unassigns
class TeamAssignment(BaseModel):
    team_id: Optional[int] = None

# Schema for administrative role updates
class RoleUpdate(BaseModel):
    role: Optional[str] = None
