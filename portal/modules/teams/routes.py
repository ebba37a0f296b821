from fastapi import APIRouter, Depends
from portal.database.supabase_client import get_supabase
from portal.modules.teams.schemas import (
    TeamCreate, TeamUpdate, JoinTeamRequest, AssignMentorRequest, TeamResponse,
    TeamMemberResponse, TeamDetailResponse, TeamWithCountResponse, LobbyTeamResponse
)
from portal.modules.teams.service import TeamService
from portal.core.dependencies import require_permission, get_current_profile
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/teams", tags=["teams"])


def get_team_service(supabase: Client = Depends(get_supabase)) -> TeamService:
    return TeamService(supabase)


@router.get("", response_model=List[TeamWithCountResponse])
async def list_teams(
    profile: Dict = Depends(require_permission("teams:read")),
    service: TeamService = Depends(get_team_service)
):
    """All teams with member counts"""
    return service.list_teams()


@router.post("", response_model=TeamDetailResponse, status_code=201)
async def create_team(
    team_data: TeamCreate,
    profile: Dict = Depends(require_permission("teams:create")),
    service: TeamService = Depends(get_team_service)
):
    """Create a team with the caller as leader"""
    return service.create_team(team_data, profile["id"])


@router.get("/me", response_model=TeamDetailResponse)
async def get_my_team(
    profile: Dict = Depends(get_current_profile),
    service: TeamService = Depends(get_team_service)
):
    return service.get_my_team(profile["id"])


@router.get("/lobby", response_model=List[LobbyTeamResponse])
async def list_lobby(
    profile: Dict = Depends(get_current_profile),
    service: TeamService = Depends(get_team_service)
):
    """Teams looking for members"""
    return service.list_lobby()


@router.post("/join", response_model=TeamMemberResponse, status_code=201)
async def join_by_code(
    body: JoinTeamRequest,
    profile: Dict = Depends(require_permission("teams:join")),
    service: TeamService = Depends(get_team_service)
):
    return service.join_by_code(body.join_code, profile["id"])


@router.get("/{team_id}", response_model=TeamDetailResponse)
async def get_team(
    team_id: str,
    profile: Dict = Depends(require_permission("teams:read")),
    service: TeamService = Depends(get_team_service)
):
    return service.get_team_detail(team_id)


@router.patch("/{team_id}", response_model=TeamResponse)
async def update_team(
    team_id: str,
    team_data: TeamUpdate,
    profile: Dict = Depends(get_current_profile),
    service: TeamService = Depends(get_team_service)
):
    """Leader edits team details"""
    return service.update_team(team_id, profile["id"], team_data)


@router.delete("/{team_id}", status_code=204)
async def delete_team(
    team_id: str,
    profile: Dict = Depends(get_current_profile),
    service: TeamService = Depends(get_team_service)
):
    service.delete_team(team_id, profile["id"])
    return None


@router.post("/{team_id}/join", response_model=TeamMemberResponse, status_code=201)
async def join_from_lobby(
    team_id: str,
    profile: Dict = Depends(require_permission("teams:join")),
    service: TeamService = Depends(get_team_service)
):
    return service.join_from_lobby(team_id, profile["id"])


@router.post("/{team_id}/readiness", response_model=TeamResponse)
async def toggle_readiness(
    team_id: str,
    profile: Dict = Depends(get_current_profile),
    service: TeamService = Depends(get_team_service)
):
    """Flip the team's ready flag"""
    return service.toggle_readiness(team_id, profile["id"])


@router.post("/{team_id}/leave", status_code=204)
async def leave_team(
    team_id: str,
    profile: Dict = Depends(get_current_profile),
    service: TeamService = Depends(get_team_service)
):
    service.leave_team(team_id, profile["id"])
    return None


@router.delete("/{team_id}/members/{user_id}", status_code=204)
async def kick_member(
    team_id: str,
    user_id: str,
    profile: Dict = Depends(get_current_profile),
    service: TeamService = Depends(get_team_service)
):
    """Leader removes a member"""
    service.kick_member(team_id, profile["id"], user_id)
    return None


@router.put("/{team_id}/mentor", response_model=TeamResponse)
async def assign_mentor(
    team_id: str,
    body: AssignMentorRequest,
    profile: Dict = Depends(require_permission("teams:assign_mentor")),
    service: TeamService = Depends(get_team_service)
):
    return service.assign_mentor(team_id, body.mentor_id)
