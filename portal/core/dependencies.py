"""
Core dependencies for route protection and role checking
"""

from enum import Enum
from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from portal.config.permissions_config import DASHBOARD_ACCESS, LOGIN_PATH, roles_for_permission
from portal.database.supabase_client import get_supabase, get_service_supabase
from portal.modules.auth.service import AuthService
from supabase import Client
from typing import Any, Dict, Iterable, Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


class AccessDecision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


def authorize(profile: Optional[Dict[str, Any]], required_roles: Iterable[str]) -> AccessDecision:
    """Pure role check: allow only when the profile exists and its role is one of required_roles."""
    if not profile:
        return AccessDecision.DENY
    if profile.get("role") in tuple(required_roles):
        return AccessDecision.ALLOW
    return AccessDecision.DENY


def get_auth_service(
    supabase: Client = Depends(get_supabase),
    admin_client: Client = Depends(get_service_supabase)
) -> AuthService:
    return AuthService(supabase, admin_client)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(credentials.credentials)


def fetch_profile(user_id: str, supabase: Client) -> Optional[Dict[str, Any]]:
    result = supabase.table("profiles")\
        .select("*")\
        .eq("id", user_id)\
        .limit(1)\
        .execute()
    return result.data[0] if result.data else None


def _get_request_profile(request: Request, user_id: str, supabase: Client) -> Optional[Dict[str, Any]]:
    """Fetch the caller's profile once per request."""
    cached = getattr(request.state, "profile", None)
    if cached is not None and cached.get("id") == user_id:
        return cached
    try:
        profile = fetch_profile(user_id, supabase)
    except Exception as e:
        logger.error(f"Error fetching profile for {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    request.state.profile = profile
    return profile


def get_current_profile(
    request: Request,
    user_data: dict = Depends(get_current_user),
    supabase: Client = Depends(get_supabase)
) -> dict:
    """The authenticated caller's profiles row; callers without one are treated as unauthenticated."""
    profile = _get_request_profile(request, user_data["id"], supabase)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Profile not found. Redirect to {LOGIN_PATH}"
        )
    return profile


def require_role(*roles: str):
    """Factory function to create a role check dependency"""
    def check_role(profile: dict = Depends(get_current_profile)) -> dict:
        if authorize(profile, roles) is AccessDecision.DENY:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient role. Required one of: {', '.join(roles)}"
            )
        return profile
    return check_role


def require_permission(required_permission: str):
    """Factory function to create a permission check dependency from the role matrix"""
    allowed_roles = roles_for_permission(required_permission)

    def check_permission(profile: dict = Depends(get_current_profile)) -> dict:
        if authorize(profile, allowed_roles) is AccessDecision.DENY:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {required_permission}"
            )
        return profile
    return check_permission


def require_dashboard(dashboard: str, profile: dict) -> dict:
    """Route guard for /dashboard/{dashboard}: mismatched roles are sent back to the login page."""
    allowed = DASHBOARD_ACCESS.get(dashboard)
    if allowed is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Dashboard not found")
    if authorize(profile, allowed) is AccessDecision.DENY:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access to the {dashboard} dashboard denied. Redirect to {LOGIN_PATH}"
        )
    return profile
