from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from portal.database.supabase_client import get_supabase, get_service_supabase
from portal.modules.users.schemas import (
    ProfileResponse, UserCreate, UserUpdate, OnboardingUpdate,
    MentorProfileSubmit, MaxTeamsUpdate, PhotoUploadResponse, MentorStackResponse
)
from portal.modules.users.service import UserService
from portal.core.dependencies import require_permission, require_role, get_current_profile
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/users", tags=["users"])
profile_router = APIRouter(prefix="/profile", tags=["profile"])

MAX_PHOTO_BYTES = 5 * 1024 * 1024


def get_user_service(
    supabase: Client = Depends(get_supabase),
    admin_client: Client = Depends(get_service_supabase)
) -> UserService:
    return UserService(supabase, admin_client)


@router.get("", response_model=List[ProfileResponse])
async def list_users(
    search: Optional[str] = None,
    role: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    profile: Dict = Depends(require_permission("users:read")),
    service: UserService = Depends(get_user_service)
):
    """List users with optional name search and role filter"""
    return service.list_users(search=search, role=role, limit=limit, offset=offset)


@router.post("", response_model=ProfileResponse, status_code=201)
async def create_user(
    user_data: UserCreate,
    profile: Dict = Depends(require_permission("users:create")),
    service: UserService = Depends(get_user_service)
):
    """Create a user account with a chosen role"""
    return service.create_user(user_data)


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_user(
    user_id: str,
    profile: Dict = Depends(require_permission("users:read")),
    service: UserService = Depends(get_user_service)
):
    return service.get_user_by_id(user_id)


@router.put("/{user_id}", response_model=ProfileResponse)
async def update_user(
    user_id: str,
    user_data: UserUpdate,
    profile: Dict = Depends(require_permission("users:update")),
    service: UserService = Depends(get_user_service)
):
    """Edit a user's name, role, mentor status or team capacity"""
    return service.update_user(user_id, user_data)


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: str,
    profile: Dict = Depends(require_permission("users:delete")),
    service: UserService = Depends(get_user_service)
):
    if user_id == profile["id"]:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    service.delete_user(user_id)
    return None


@profile_router.get("/me", response_model=ProfileResponse)
async def get_my_profile(profile: Dict = Depends(get_current_profile)):
    return ProfileResponse(**profile)


@profile_router.put("/me/onboarding", response_model=ProfileResponse)
async def complete_onboarding(
    data: OnboardingUpdate,
    profile: Dict = Depends(require_role("participant")),
    service: UserService = Depends(get_user_service)
):
    """Participant onboarding: name and GitHub username"""
    return service.complete_onboarding(profile["id"], data)


@profile_router.put("/me/mentor", response_model=ProfileResponse)
async def submit_mentor_profile(
    data: MentorProfileSubmit,
    profile: Dict = Depends(require_role("mentor")),
    service: UserService = Depends(get_user_service)
):
    """Submit the mentor profile for approval"""
    return service.submit_mentor_profile(profile["id"], data)


@profile_router.post("/me/photo", response_model=PhotoUploadResponse, status_code=201)
async def upload_photo(
    file: UploadFile = File(...),
    profile: Dict = Depends(require_role("mentor")),
    service: UserService = Depends(get_user_service)
):
    """Upload a profile photo; returns the public URL to submit with the mentor profile"""
    if file.content_type and not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image files are accepted")
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Empty file")
    if len(content) > MAX_PHOTO_BYTES:
        raise HTTPException(status_code=400, detail="Photo is too large")
    url = service.upload_photo(profile["id"], file.filename or "photo", content, file.content_type)
    return PhotoUploadResponse(photo_url=url)


@profile_router.put("/me/max-teams", response_model=ProfileResponse)
async def update_max_teams(
    data: MaxTeamsUpdate,
    profile: Dict = Depends(require_role("mentor")),
    service: UserService = Depends(get_user_service)
):
    return service.update_max_teams(profile["id"], data.max_teams)


@profile_router.get("/me/stacks", response_model=List[MentorStackResponse])
async def list_my_stacks(
    profile: Dict = Depends(require_role("mentor")),
    service: UserService = Depends(get_user_service)
):
    return service.list_mentor_stacks(profile["id"])


@profile_router.put("/me/stacks/{stack_id}", response_model=MentorStackResponse)
async def add_my_stack(
    stack_id: str,
    profile: Dict = Depends(require_role("mentor")),
    service: UserService = Depends(get_user_service)
):
    return service.add_mentor_stack(profile["id"], stack_id)


@profile_router.delete("/me/stacks/{stack_id}", status_code=204)
async def remove_my_stack(
    stack_id: str,
    profile: Dict = Depends(require_role("mentor")),
    service: UserService = Depends(get_user_service)
):
    service.remove_mentor_stack(profile["id"], stack_id)
    return None
