from pydantic import BaseModel, EmailStr, Field, HttpUrl
from typing import Literal, Optional
from datetime import datetime

Role = Literal["admin", "organizer", "moderator", "mentor", "participant"]
MentorStatus = Literal["pending", "approved", "rejected"]


class ProfileResponse(BaseModel):
    id: str
    full_name: Optional[str] = None
    role: str
    mentor_status: Optional[str] = None
    mentor_approval_date: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    max_teams: Optional[int] = None
    github_username: Optional[str] = None
    linkedin_username: Optional[str] = None
    photo_url: Optional[str] = None
    preferred_stack_id: Optional[str] = None
    onboarding_completed: Optional[bool] = None
    github_org_invited: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=2)
    role: Role = "participant"


class UserUpdate(BaseModel):
    full_name: Optional[str] = None
    role: Optional[Role] = None
    mentor_status: Optional[MentorStatus] = None
    max_teams: Optional[int] = Field(default=None, ge=1, le=10)


class OnboardingUpdate(BaseModel):
    full_name: str = Field(min_length=1)
    github_username: str = Field(min_length=1)


class MentorProfileSubmit(BaseModel):
    full_name: str = Field(min_length=1)
    photo_url: HttpUrl
    linkedin_username: str = Field(min_length=1)
    github_username: str = Field(min_length=1)


class MaxTeamsUpdate(BaseModel):
    max_teams: int = Field(ge=1, le=10)


class PhotoUploadResponse(BaseModel):
    photo_url: str


class MentorStackResponse(BaseModel):
    id: str
    mentor_id: str
    stack_id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
