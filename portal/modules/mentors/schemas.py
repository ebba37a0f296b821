from pydantic import BaseModel, field_validator
from typing import List, Optional
from datetime import datetime


class MentorRejectRequest(BaseModel):
    reason: str

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please provide a reason for rejection")
        return value


class MentorApplicationResponse(BaseModel):
    id: str
    full_name: Optional[str] = None
    mentor_status: Optional[str] = None
    mentor_approval_date: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    github_username: Optional[str] = None
    linkedin_username: Optional[str] = None
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StackSummary(BaseModel):
    id: str
    name: str
    icon: Optional[str] = None


class PublicMentorResponse(BaseModel):
    id: str
    full_name: Optional[str] = None
    photo_url: Optional[str] = None
    github_username: Optional[str] = None
    linkedin_username: Optional[str] = None
    stacks: List[StackSummary] = []
