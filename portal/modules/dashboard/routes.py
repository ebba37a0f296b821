from fastapi import APIRouter, Depends
from portal.config.permissions_config import dashboard_path_for_role
from portal.database.supabase_client import get_supabase
from portal.modules.dashboard.schemas import DashboardLocation, DashboardResponse
from portal.modules.dashboard.service import DashboardService
from portal.core.dependencies import get_current_profile, require_dashboard
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def get_dashboard_service(supabase: Client = Depends(get_supabase)) -> DashboardService:
    return DashboardService(supabase)


@router.get("", response_model=DashboardLocation)
async def my_dashboard(profile: Dict = Depends(get_current_profile)):
    """Where the caller lands after login"""
    return DashboardLocation(role=profile["role"], path=dashboard_path_for_role(profile["role"]))


@router.get("/{dashboard}", response_model=DashboardResponse)
async def open_dashboard(
    dashboard: str,
    profile: Dict = Depends(get_current_profile),
    service: DashboardService = Depends(get_dashboard_service)
):
    """Role-gated dashboard overview; mismatched roles are sent to the login page"""
    require_dashboard(dashboard, profile)
    return DashboardResponse(
        dashboard=dashboard,
        role=profile["role"],
        summary=service.summary_for(dashboard, profile),
    )
