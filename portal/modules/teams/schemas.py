from pydantic import BaseModel, Field, HttpUrl, field_validator
from typing import List, Optional
from datetime import datetime


class TeamCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    stack_id: Optional[str] = None
    description: Optional[str] = None
    looking_for_members: bool = False
    max_members: Optional[int] = Field(default=None, ge=1, le=20)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Team name is required")
        return value


class TeamUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    looking_for_members: Optional[bool] = None
    github_repo_url: Optional[HttpUrl] = None
    stack_id: Optional[str] = None


class JoinTeamRequest(BaseModel):
    join_code: str = Field(min_length=1)

    @field_validator("join_code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        return value.strip().upper()


class AssignMentorRequest(BaseModel):
    mentor_id: Optional[str] = None


class TeamResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    leader_id: Optional[str] = None
    join_code: str
    is_ready: Optional[bool] = False
    looking_for_members: Optional[bool] = False
    max_members: Optional[int] = None
    mentor_id: Optional[str] = None
    stack_id: Optional[str] = None
    github_repo_url: Optional[str] = None
    logo_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TeamMemberResponse(BaseModel):
    id: str
    team_id: str
    user_id: str
    joined_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PersonSummary(BaseModel):
    id: str
    full_name: Optional[str] = None


class StackRef(BaseModel):
    id: str
    name: str


class MemberSummary(BaseModel):
    id: str
    user_id: str
    full_name: Optional[str] = None
    is_leader: bool = False
    joined_at: Optional[datetime] = None


class TeamDetailResponse(TeamResponse):
    members: List[MemberSummary] = []
    leader: Optional[PersonSummary] = None
    mentor: Optional[PersonSummary] = None
    stack: Optional[StackRef] = None


class TeamWithCountResponse(TeamResponse):
    member_count: int = 0


class LobbyTeamResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    looking_for_members: bool = True
    max_members: Optional[int] = None
    member_count: int = 0
    leader: Optional[PersonSummary] = None
    stack: Optional[StackRef] = None
