from supabase import Client
from fastapi import HTTPException
from portal.modules.benefits.service import BenefitService
from portal.modules.events.service import EventService
from portal.modules.teams.service import TeamService
from typing import Any, Dict
import logging

logger = logging.getLogger(__name__)


class DashboardService:
    """Role specific overview numbers shown on each dashboard's landing page"""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def summary_for(self, dashboard: str, profile: Dict) -> Dict[str, Any]:
        builders = {
            "admin": self._admin_summary,
            "organizer": self._organizer_summary,
            "mentor": self._mentor_summary,
            "participant": self._participant_summary,
        }
        try:
            return builders[dashboard](profile)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _admin_summary(self, profile: Dict) -> Dict[str, Any]:
        teams = TeamService(self.supabase).list_teams()
        profiles = self.supabase.table("profiles")\
            .select("id, role, mentor_status")\
            .execute().data or []
        users_by_role: Dict[str, int] = {}
        for row in profiles:
            users_by_role[row["role"]] = users_by_role.get(row["role"], 0) + 1
        return {
            "users_by_role": users_by_role,
            "pending_mentor_applications": sum(
                1 for row in profiles
                if row["role"] == "mentor" and row.get("mentor_status") == "pending"
            ),
            "teams": len(teams),
            "ready_teams": sum(1 for t in teams if t.is_ready),
            "available_benefits": BenefitService(self.supabase).count_available().available,
        }

    def _organizer_summary(self, profile: Dict) -> Dict[str, Any]:
        teams = TeamService(self.supabase).list_teams()
        return {
            "teams": len(teams),
            "ready_teams": sum(1 for t in teams if t.is_ready),
            "teams_without_mentor": sum(1 for t in teams if not t.mentor_id),
            "upcoming_events": [
                e.model_dump(mode="json") for e in EventService(self.supabase).list_upcoming()
            ],
        }

    def _mentor_summary(self, profile: Dict) -> Dict[str, Any]:
        teams = TeamService(self.supabase).list_mentor_teams(profile["id"])
        return {
            "mentor_status": profile.get("mentor_status"),
            "rejection_reason": profile.get("rejection_reason"),
            "max_teams": profile.get("max_teams") or 1,
            "teams": [t.model_dump(mode="json") for t in teams],
            "benefits": len(BenefitService(self.supabase).list_my_benefits(profile["id"])),
        }

    def _participant_summary(self, profile: Dict) -> Dict[str, Any]:
        team_service = TeamService(self.supabase)
        try:
            team = team_service.get_my_team(profile["id"]).model_dump(mode="json")
        except HTTPException as e:
            if e.status_code != 404:
                raise
            team = None
        return {
            "onboarding_completed": bool(profile.get("onboarding_completed")),
            "team": team,
            "upcoming_events": [
                e.model_dump(mode="json") for e in EventService(self.supabase).list_upcoming(3)
            ],
            "benefits": len(BenefitService(self.supabase).list_my_benefits(profile["id"])),
        }
