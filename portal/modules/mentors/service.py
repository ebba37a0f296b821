from supabase import Client
from portal.modules.mentors.schemas import (
    MentorApplicationResponse, PublicMentorResponse, StackSummary
)
from typing import Dict, List
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class MentorService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_pending_applications(self) -> List[MentorApplicationResponse]:
        """Mentor profiles waiting for review, newest first"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("role", "mentor")\
                .eq("mentor_status", "pending")\
                .order("created_at", desc=True)\
                .execute()
            return [MentorApplicationResponse(**row) for row in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _get_pending_mentor(self, mentor_id: str) -> Dict:
        try:
            result = self.supabase.table("profiles")\
                .select("id, role, mentor_status")\
                .eq("id", mentor_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data or result.data[0].get("role") != "mentor":
            raise HTTPException(status_code=404, detail="Mentor application not found")
        mentor = result.data[0]
        if mentor.get("mentor_status") != "pending":
            raise HTTPException(
                status_code=409,
                detail=f"Application is {mentor.get('mentor_status') or 'not submitted'}, only pending applications can be reviewed"
            )
        return mentor

    def _set_status(self, mentor_id: str, update_data: Dict) -> MentorApplicationResponse:
        try:
            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", mentor_id)\
                .eq("mentor_status", "pending")\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=409, detail="Application was reviewed concurrently")
        return MentorApplicationResponse(**result.data[0])

    def approve(self, mentor_id: str) -> MentorApplicationResponse:
        """pending -> approved"""
        self._get_pending_mentor(mentor_id)
        application = self._set_status(mentor_id, {
            "mentor_status": "approved",
            "mentor_approval_date": datetime.now(timezone.utc).isoformat(),
        })
        logger.info(f"Mentor application {mentor_id} approved")
        return application

    def reject(self, mentor_id: str, reason: str) -> MentorApplicationResponse:
        """pending -> rejected, keeping the reason on the profile"""
        self._get_pending_mentor(mentor_id)
        application = self._set_status(mentor_id, {
            "mentor_status": "rejected",
            "rejection_reason": reason,
        })
        logger.info(f"Mentor application {mentor_id} rejected")
        return application

    def list_approved_mentors(self) -> List[PublicMentorResponse]:
        """Approved mentors with their technology stacks, for the public mentors page"""
        try:
            mentors_result = self.supabase.table("profiles")\
                .select("*")\
                .eq("role", "mentor")\
                .eq("mentor_status", "approved")\
                .order("full_name")\
                .execute()
            mentors = mentors_result.data or []
            if not mentors:
                return []

            links_result = self.supabase.table("mentor_stacks")\
                .select("mentor_id, stack_id")\
                .in_("mentor_id", [m["id"] for m in mentors])\
                .execute()
            links = links_result.data or []

            stacks_by_id = {}
            stack_ids = list({link["stack_id"] for link in links})
            if stack_ids:
                stacks_result = self.supabase.table("technology_stacks")\
                    .select("id, name, icon")\
                    .in_("id", stack_ids)\
                    .execute()
                stacks_by_id = {s["id"]: s for s in stacks_result.data or []}

            response = []
            for mentor in mentors:
                stacks = [
                    StackSummary(**stacks_by_id[link["stack_id"]])
                    for link in links
                    if link["mentor_id"] == mentor["id"] and link["stack_id"] in stacks_by_id
                ]
                response.append(PublicMentorResponse(
                    id=mentor["id"],
                    full_name=mentor.get("full_name"),
                    photo_url=mentor.get("photo_url"),
                    github_username=mentor.get("github_username"),
                    linkedin_username=mentor.get("linkedin_username"),
                    stacks=stacks,
                ))
            return response
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
