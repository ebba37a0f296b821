from fastapi import APIRouter, Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from portal.modules.auth.schemas import (
    LoginRequest, RegisterRequest, AdminRegisterRequest, TokenResponse, RegisterResponse
)
from portal.modules.auth.service import AuthService
from portal.core.dependencies import get_auth_service, get_current_user, get_current_profile
from portal.config.permissions_config import PERMISSION_MATRIX, dashboard_path_for_role
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])

# Security scheme for JWT Bearer token
security = HTTPBearer()


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a participant or mentor"""
    return service.register(register_data)


@router.post("/admin/register", response_model=RegisterResponse, status_code=201)
async def register_admin(
    register_data: AdminRegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register an admin using the deployment's admin registration key"""
    return service.register_admin(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token plus the dashboard to open"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me")
async def get_me(
    current_user: Dict = Depends(get_current_user),
    profile: Dict = Depends(get_current_profile)
):
    """Get current user, profile and permissions (for frontend UI)."""
    role = profile.get("role")
    return {
        **current_user,
        "profile": profile,
        "permissions": PERMISSION_MATRIX["roles"].get(role, []),
        "dashboard": dashboard_path_for_role(role),
    }
