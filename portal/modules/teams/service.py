from supabase import Client
from portal.config import settings
from portal.database.supabase_client import fetch_all, fetch_in
from portal.modules.teams.schemas import (
    TeamCreate, TeamUpdate, TeamResponse, TeamMemberResponse, TeamDetailResponse,
    TeamWithCountResponse, LobbyTeamResponse, MemberSummary, PersonSummary, StackRef
)
from typing import Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import secrets
import string
import logging

logger = logging.getLogger(__name__)

JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_join_code(length: int) -> str:
    return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(length))


class TeamService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    # Lookups

    def _get_team(self, team_id: str) -> Dict:
        try:
            result = self.supabase.table("teams")\
                .select("*")\
                .eq("id", team_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Team not found")
        return result.data[0]

    def _get_membership(self, user_id: str) -> Optional[Dict]:
        try:
            result = self.supabase.table("team_members")\
                .select("*")\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return result.data[0] if result.data else None

    def _members_of(self, team_ids: List[str]) -> List[Dict]:
        if not team_ids:
            return []
        members = fetch_in(
            lambda: self.supabase.table("team_members").select("*").order("joined_at").order("id"),
            "team_id", team_ids,
        )
        return sorted(members, key=lambda m: m.get("joined_at") or "")

    def _profiles_by_id(self, user_ids: List[str]) -> Dict[str, Dict]:
        ids = [uid for uid in set(user_ids) if uid]
        if not ids:
            return {}
        profiles = fetch_in(
            lambda: self.supabase.table("profiles").select("id, full_name").order("id"), "id", ids
        )
        return {p["id"]: p for p in profiles}

    def _stacks_by_id(self, stack_ids: List[str]) -> Dict[str, Dict]:
        ids = [sid for sid in set(stack_ids) if sid]
        if not ids:
            return {}
        result = self.supabase.table("technology_stacks")\
            .select("id, name")\
            .in_("id", ids)\
            .execute()
        return {s["id"]: s for s in result.data or []}

    def _count_members(self, team_id: str) -> int:
        return len(self._members_of([team_id]))

    def _generate_unique_join_code(self) -> str:
        for _ in range(settings.team_join_code_attempts):
            code = generate_join_code(settings.team_join_code_length)
            existing = self.supabase.table("teams")\
                .select("id")\
                .eq("join_code", code)\
                .limit(1)\
                .execute()
            if not existing.data:
                return code
            logger.warning(f"Join code collision on {code}, retrying")
        raise HTTPException(status_code=500, detail="Could not generate a unique join code")

    @staticmethod
    def _require_leader(team: Dict, user_id: str):
        if team.get("leader_id") != user_id:
            raise HTTPException(status_code=403, detail="Only the team leader can do this")

    # Formation

    def create_team(self, team_data: TeamCreate, user_id: str) -> TeamDetailResponse:
        """Create a team led by the caller, then add the caller as its first member.

        The two inserts are not atomic; when the membership insert fails the
        team row is deleted again so no memberless team is left behind.
        """
        if self._get_membership(user_id):
            raise HTTPException(status_code=409, detail="You are already a member of a team")

        try:
            join_code = self._generate_unique_join_code()
            team_result = self.supabase.table("teams").insert({
                "name": team_data.name,
                "description": team_data.description,
                "stack_id": team_data.stack_id,
                "looking_for_members": team_data.looking_for_members,
                "max_members": team_data.max_members,
                "leader_id": user_id,
                "join_code": join_code,
                "is_ready": False,
            }).execute()
            if not team_result.data:
                raise HTTPException(status_code=500, detail="Failed to create team")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        team = team_result.data[0]
        try:
            member_result = self.supabase.table("team_members").insert({
                "team_id": team["id"],
                "user_id": user_id,
            }).execute()
            if not member_result.data:
                raise RuntimeError("membership insert returned no row")
        except Exception as e:
            logger.error(f"Adding leader {user_id} to team {team['id']} failed: {e}")
            self._discard_team(team["id"])
            raise HTTPException(status_code=500, detail=f"Failed to create team: {e}")

        logger.info(f"Team {team['id']} created by {user_id}")
        return self.get_team_detail(team["id"])

    def _discard_team(self, team_id: str):
        try:
            self.supabase.table("teams").delete().eq("id", team_id).execute()
            logger.info(f"Rolled back team {team_id}")
        except Exception as e:
            # Left for the reconciliation sweep
            logger.error(f"Rollback of team {team_id} failed: {e}")

    def _add_member(self, team: Dict, user_id: str) -> TeamMemberResponse:
        if self._get_membership(user_id):
            raise HTTPException(status_code=409, detail="You are already a member of a team")
        try:
            max_members = team.get("max_members")
            if max_members and self._count_members(team["id"]) >= max_members:
                raise HTTPException(status_code=409, detail="Team is full")

            result = self.supabase.table("team_members").insert({
                "team_id": team["id"],
                "user_id": user_id,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to join team")
            logger.info(f"User {user_id} joined team {team['id']}")
            return TeamMemberResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def join_by_code(self, join_code: str, user_id: str) -> TeamMemberResponse:
        try:
            result = self.supabase.table("teams")\
                .select("*")\
                .eq("join_code", join_code)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Invalid join code")
        return self._add_member(result.data[0], user_id)

    def join_from_lobby(self, team_id: str, user_id: str) -> TeamMemberResponse:
        team = self._get_team(team_id)
        if not team.get("looking_for_members"):
            raise HTTPException(status_code=409, detail="Team is not looking for members")
        return self._add_member(team, user_id)

    def list_lobby(self) -> List[LobbyTeamResponse]:
        """Teams advertising for members, with member count, leader name and stack"""
        try:
            teams = fetch_all(
                lambda: self.supabase.table("teams")
                .select("*")
                .eq("looking_for_members", True)
                .order("created_at", desc=True)
                .order("id")
            )
            members = self._members_of([t["id"] for t in teams])
            leaders = self._profiles_by_id([t.get("leader_id") for t in teams])
            stacks = self._stacks_by_id([t.get("stack_id") for t in teams])

            lobby = []
            for team in teams:
                leader = leaders.get(team.get("leader_id"))
                stack = stacks.get(team.get("stack_id"))
                lobby.append(LobbyTeamResponse(
                    id=team["id"],
                    name=team["name"],
                    description=team.get("description"),
                    max_members=team.get("max_members"),
                    member_count=sum(1 for m in members if m["team_id"] == team["id"]),
                    leader=PersonSummary(**leader) if leader else None,
                    stack=StackRef(**stack) if stack else None,
                ))
            return lobby
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # Reads

    def get_team_detail(self, team_id: str) -> TeamDetailResponse:
        team = self._get_team(team_id)
        try:
            members = self._members_of([team_id])
            people = self._profiles_by_id(
                [m["user_id"] for m in members] + [team.get("leader_id"), team.get("mentor_id")]
            )
            stack = self._stacks_by_id([team.get("stack_id")]).get(team.get("stack_id"))
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        leader = people.get(team.get("leader_id"))
        mentor = people.get(team.get("mentor_id"))
        return TeamDetailResponse(
            **team,
            members=[
                MemberSummary(
                    id=m["id"],
                    user_id=m["user_id"],
                    full_name=people.get(m["user_id"], {}).get("full_name"),
                    is_leader=m["user_id"] == team.get("leader_id"),
                    joined_at=m.get("joined_at"),
                )
                for m in members
            ],
            leader=PersonSummary(**leader) if leader else None,
            mentor=PersonSummary(**mentor) if mentor else None,
            stack=StackRef(**stack) if stack else None,
        )

    def get_my_team(self, user_id: str) -> TeamDetailResponse:
        membership = self._get_membership(user_id)
        if not membership:
            raise HTTPException(status_code=404, detail="You are not a member of a team")
        return self.get_team_detail(membership["team_id"])

    def list_teams(self) -> List[TeamWithCountResponse]:
        try:
            teams = fetch_all(
                lambda: self.supabase.table("teams").select("*").order("created_at", desc=True).order("id")
            )
            members = self._members_of([t["id"] for t in teams])
            return [
                TeamWithCountResponse(
                    **team,
                    member_count=sum(1 for m in members if m["team_id"] == team["id"])
                )
                for team in teams
            ]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_mentor_teams(self, mentor_id: str) -> List[TeamWithCountResponse]:
        try:
            teams = self.supabase.table("teams")\
                .select("*")\
                .eq("mentor_id", mentor_id)\
                .execute().data or []
            members = self._members_of([t["id"] for t in teams])
            return [
                TeamWithCountResponse(
                    **team,
                    member_count=sum(1 for m in members if m["team_id"] == team["id"])
                )
                for team in teams
            ]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # Changes

    def toggle_readiness(self, team_id: str, user_id: str) -> TeamResponse:
        """Flip is_ready; only that column is written"""
        team = self._get_team(team_id)
        membership = self._get_membership(user_id)
        if not membership or membership["team_id"] != team_id:
            raise HTTPException(status_code=403, detail="Only team members can change readiness")

        new_value = not team.get("is_ready")
        try:
            if new_value and self._count_members(team_id) < settings.team_min_ready_members:
                raise HTTPException(
                    status_code=400,
                    detail=f"A team needs at least {settings.team_min_ready_members} members to be ready"
                )
            result = self.supabase.table("teams")\
                .update({"is_ready": new_value})\
                .eq("id", team_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Team not found")
            return TeamResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_team(self, team_id: str, user_id: str, team_data: TeamUpdate) -> TeamResponse:
        team = self._get_team(team_id)
        self._require_leader(team, user_id)
        update_data = team_data.model_dump(mode="json", exclude_unset=True)
        if not update_data:
            return TeamResponse(**team)
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            result = self.supabase.table("teams")\
                .update(update_data)\
                .eq("id", team_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Team not found")
            return TeamResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def kick_member(self, team_id: str, leader_id: str, member_user_id: str) -> bool:
        """Remove one membership; the leader cannot be removed"""
        team = self._get_team(team_id)
        self._require_leader(team, leader_id)
        if member_user_id == team.get("leader_id"):
            raise HTTPException(status_code=400, detail="The team leader cannot be removed")
        return self._remove_membership(team_id, member_user_id)

    def leave_team(self, team_id: str, user_id: str) -> bool:
        team = self._get_team(team_id)
        if user_id == team.get("leader_id"):
            raise HTTPException(
                status_code=400,
                detail="The team leader cannot leave; delete the team instead"
            )
        return self._remove_membership(team_id, user_id)

    def _remove_membership(self, team_id: str, user_id: str) -> bool:
        try:
            result = self.supabase.table("team_members")\
                .delete()\
                .eq("team_id", team_id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Member not found in team")
        logger.info(f"User {user_id} removed from team {team_id}")
        return True

    def delete_team(self, team_id: str, user_id: str) -> bool:
        """Delete memberships first, then the team"""
        team = self._get_team(team_id)
        self._require_leader(team, user_id)
        try:
            self.supabase.table("team_members")\
                .delete()\
                .eq("team_id", team_id)\
                .execute()
            self.supabase.table("teams")\
                .delete()\
                .eq("id", team_id)\
                .execute()
            logger.info(f"Team {team_id} deleted by {user_id}")
            return True
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def assign_mentor(self, team_id: str, mentor_id: Optional[str]) -> TeamResponse:
        """Attach an approved mentor with spare capacity, or detach with None"""
        self._get_team(team_id)
        try:
            if mentor_id:
                mentor = self.supabase.table("profiles")\
                    .select("id, role, mentor_status, max_teams")\
                    .eq("id", mentor_id)\
                    .limit(1)\
                    .execute()
                if not mentor.data or mentor.data[0].get("role") != "mentor":
                    raise HTTPException(status_code=404, detail="Mentor not found")
                mentor_row = mentor.data[0]
                if mentor_row.get("mentor_status") != "approved":
                    raise HTTPException(status_code=400, detail="Mentor is not approved")

                assigned = self.supabase.table("teams")\
                    .select("id")\
                    .eq("mentor_id", mentor_id)\
                    .neq("id", team_id)\
                    .execute()
                capacity = mentor_row.get("max_teams") or 1
                if len(assigned.data or []) >= capacity:
                    raise HTTPException(status_code=409, detail="Mentor has no remaining team capacity")

            result = self.supabase.table("teams")\
                .update({
                    "mentor_id": mentor_id,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                })\
                .eq("id", team_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Team not found")
            logger.info(f"Mentor {mentor_id} assigned to team {team_id}")
            return TeamResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
