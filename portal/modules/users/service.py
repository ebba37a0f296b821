from supabase import Client
from portal.config import settings
from portal.database.supabase_client import public_storage_url
from portal.modules.auth.service import AuthService
from portal.modules.users.schemas import (
    ProfileResponse, UserCreate, UserUpdate, OnboardingUpdate,
    MentorProfileSubmit, MentorStackResponse
)
from typing import List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import uuid
import logging

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class UserService:
    def __init__(self, supabase: Client, admin_client: Optional[Client] = None):
        self.supabase = supabase
        self.admin_client = admin_client

    def get_user_by_id(self, user_id: str) -> ProfileResponse:
        """Get user profile by ID"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="User not found")
        return ProfileResponse(**result.data[0])

    def list_users(
        self,
        search: Optional[str] = None,
        role: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[ProfileResponse]:
        """List profiles, filtered by a case-insensitive name search and/or role ('all' disables the role filter)"""
        try:
            query = self.supabase.table("profiles").select("*")
            if role and role != "all":
                query = query.eq("role", role)
            if search:
                query = query.ilike("full_name", f"%{search}%")
            result = query.order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return [ProfileResponse(**user) for user in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_user(self, user_data: UserCreate) -> ProfileResponse:
        """Create an account on behalf of an admin through the auth admin API"""
        registered = AuthService(self.supabase, self.admin_client).create_account_as_admin(
            user_data.email, user_data.password, user_data.full_name, user_data.role
        )
        return self.get_user_by_id(registered.user_id)

    def update_user(self, user_id: str, user_data: UserUpdate) -> ProfileResponse:
        """Admin edit of a profile"""
        try:
            update_data = {"updated_at": _now()}
            if user_data.full_name is not None:
                update_data["full_name"] = user_data.full_name
            if user_data.role is not None:
                update_data["role"] = user_data.role
            if user_data.mentor_status is not None:
                update_data["mentor_status"] = user_data.mentor_status
                if user_data.mentor_status == "approved":
                    update_data["mentor_approval_date"] = _now()
                if user_data.mentor_status == "pending":
                    update_data["rejection_reason"] = None
            if user_data.max_teams is not None:
                update_data["max_teams"] = user_data.max_teams

            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="User not found")

            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_user(self, user_id: str) -> bool:
        """Delete a profile along with its team memberships and mentor stacks"""
        try:
            self.supabase.table("team_members")\
                .delete()\
                .eq("user_id", user_id)\
                .execute()

            self.supabase.table("mentor_stacks")\
                .delete()\
                .eq("mentor_id", user_id)\
                .execute()

            result = self.supabase.table("profiles")\
                .delete()\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="User not found")
            logger.info(f"Deleted user {user_id}")
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _update_own_profile(self, user_id: str, update_data: dict) -> ProfileResponse:
        try:
            update_data["updated_at"] = _now()
            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Profile not found")
            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def complete_onboarding(self, user_id: str, data: OnboardingUpdate) -> ProfileResponse:
        return self._update_own_profile(user_id, {
            "full_name": data.full_name,
            "github_username": data.github_username,
            "onboarding_completed": True,
        })

    def submit_mentor_profile(self, user_id: str, data: MentorProfileSubmit) -> ProfileResponse:
        """Submit (or resubmit after a rejection) the mentor profile for review"""
        profile = self._update_own_profile(user_id, {
            **data.model_dump(mode="json"),
            "mentor_status": "pending",
            "rejection_reason": None,
        })
        logger.info(f"Mentor profile {user_id} submitted for approval")
        return profile

    def update_max_teams(self, user_id: str, max_teams: int) -> ProfileResponse:
        return self._update_own_profile(user_id, {"max_teams": max_teams})

    def upload_photo(self, user_id: str, filename: str, content: bytes, content_type: Optional[str]) -> str:
        """Store a mentor photo and return its public URL"""
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "jpg"
        path = f"{user_id}/{uuid.uuid4().hex}.{ext}"
        bucket = settings.mentor_photos_bucket
        try:
            self.supabase.storage.from_(bucket).upload(
                path, content, {"content-type": content_type or "application/octet-stream"}
            )
            return public_storage_url(self.supabase, bucket, path)
        except Exception as e:
            logger.error(f"Failed to upload photo for {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Error uploading photo")

    def list_mentor_stacks(self, mentor_id: str) -> List[MentorStackResponse]:
        try:
            result = self.supabase.table("mentor_stacks")\
                .select("*")\
                .eq("mentor_id", mentor_id)\
                .execute()
            return [MentorStackResponse(**row) for row in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def add_mentor_stack(self, mentor_id: str, stack_id: str) -> MentorStackResponse:
        """Add a technology stack preference; adding an existing one is a no-op"""
        try:
            stack = self.supabase.table("technology_stacks")\
                .select("id, is_enabled")\
                .eq("id", stack_id)\
                .limit(1)\
                .execute()
            if not stack.data or not stack.data[0].get("is_enabled"):
                raise HTTPException(status_code=404, detail="Technology stack not found")

            existing = self.supabase.table("mentor_stacks")\
                .select("*")\
                .eq("mentor_id", mentor_id)\
                .eq("stack_id", stack_id)\
                .execute()
            if existing.data:
                return MentorStackResponse(**existing.data[0])

            result = self.supabase.table("mentor_stacks").insert({
                "mentor_id": mentor_id,
                "stack_id": stack_id,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to update preferences")
            return MentorStackResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def remove_mentor_stack(self, mentor_id: str, stack_id: str) -> bool:
        try:
            result = self.supabase.table("mentor_stacks")\
                .delete()\
                .eq("mentor_id", mentor_id)\
                .eq("stack_id", stack_id)\
                .execute()
            return len(result.data) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
