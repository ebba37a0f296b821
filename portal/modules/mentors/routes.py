from fastapi import APIRouter, Depends
from portal.database.supabase_client import get_supabase
from portal.modules.mentors.schemas import (
    MentorRejectRequest, MentorApplicationResponse, PublicMentorResponse
)
from portal.modules.mentors.service import MentorService
from portal.core.dependencies import require_permission
from supabase import Client
from typing import Dict, List

router = APIRouter(prefix="/mentors", tags=["mentors"])


def get_mentor_service(supabase: Client = Depends(get_supabase)) -> MentorService:
    return MentorService(supabase)


@router.get("", response_model=List[PublicMentorResponse])
async def list_mentors(service: MentorService = Depends(get_mentor_service)):
    """Public list of approved mentors"""
    return service.list_approved_mentors()


@router.get("/applications", response_model=List[MentorApplicationResponse])
async def list_applications(
    profile: Dict = Depends(require_permission("mentors:read")),
    service: MentorService = Depends(get_mentor_service)
):
    """Pending mentor applications"""
    return service.list_pending_applications()


@router.post("/{mentor_id}/approve", response_model=MentorApplicationResponse)
async def approve_mentor(
    mentor_id: str,
    profile: Dict = Depends(require_permission("mentors:review")),
    service: MentorService = Depends(get_mentor_service)
):
    return service.approve(mentor_id)


@router.post("/{mentor_id}/reject", response_model=MentorApplicationResponse)
async def reject_mentor(
    mentor_id: str,
    body: MentorRejectRequest,
    profile: Dict = Depends(require_permission("mentors:review")),
    service: MentorService = Depends(get_mentor_service)
):
    """Reject a pending application; a non-empty reason is required"""
    return service.reject(mentor_id, body.reason)
