import asyncio
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from portal.database.supabase_client import get_supabase
from portal.modules.platform.schemas import (
    PlatformSettingCreate, PlatformSettingUpdate, PlatformSettingResponse,
    SmtpConfig, SmtpTestResponse, RegistrationConfig, GithubConfig,
    ThemeCreate, ThemeUpdate, ThemeResponse,
    SMTP_CONFIG_KEY, REGISTRATION_CONFIG_KEY, GITHUB_CONFIG_KEY,
)
from portal.modules.platform.service import PlatformService
from portal.modules.platform.smtp import check_smtp_connection
from portal.core.dependencies import require_permission
from supabase import Client
from typing import Dict, List, Optional

router = APIRouter(prefix="/platform", tags=["platform"])


def get_platform_service(supabase: Client = Depends(get_supabase)) -> PlatformService:
    return PlatformService(supabase)


@router.get("/settings", response_model=List[PlatformSettingResponse])
async def list_settings(
    profile: Dict = Depends(require_permission("platform:read")),
    service: PlatformService = Depends(get_platform_service)
):
    """List all platform settings"""
    return service.list_settings()


@router.post("/settings", response_model=PlatformSettingResponse, status_code=201)
async def create_setting(
    setting_data: PlatformSettingCreate,
    profile: Dict = Depends(require_permission("platform:update")),
    service: PlatformService = Depends(get_platform_service)
):
    return service.create_setting(setting_data)


@router.put("/settings/{setting_id}", response_model=PlatformSettingResponse)
async def update_setting(
    setting_id: str,
    setting_data: PlatformSettingUpdate,
    profile: Dict = Depends(require_permission("platform:update")),
    service: PlatformService = Depends(get_platform_service)
):
    return service.update_setting(setting_id, setting_data)


@router.delete("/settings/{setting_id}", status_code=204)
async def delete_setting(
    setting_id: str,
    profile: Dict = Depends(require_permission("platform:update")),
    service: PlatformService = Depends(get_platform_service)
):
    service.delete_setting(setting_id)
    return None


@router.get("/smtp", response_model=Optional[SmtpConfig])
async def get_smtp_config(
    profile: Dict = Depends(require_permission("platform:read")),
    service: PlatformService = Depends(get_platform_service)
):
    value = service.get_config_value(SMTP_CONFIG_KEY)
    return SmtpConfig(**value) if value else None


@router.put("/smtp", response_model=PlatformSettingResponse)
async def update_smtp_config(
    config: SmtpConfig,
    profile: Dict = Depends(require_permission("platform:update")),
    service: PlatformService = Depends(get_platform_service)
):
    return service.save_config_value(SMTP_CONFIG_KEY, "smtp", config.model_dump(by_alias=True))


@router.post("/smtp/test", response_model=SmtpTestResponse)
async def test_smtp(
    request: Request,
    profile: Dict = Depends(require_permission("platform:update"))
):
    """
    Try to connect and authenticate against an SMTP server.
    Body: {host, port, secure, auth: {user, pass}}. Returns 200 on success,
    400 when the body is malformed or the connection fails.
    """
    try:
        config = SmtpConfig.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        body = SmtpTestResponse(success=False, message="Invalid request", error=str(e))
        return JSONResponse(status_code=400, content=body.model_dump())
    ok, error = await asyncio.to_thread(check_smtp_connection, config)
    if ok:
        return SmtpTestResponse(success=True, message="SMTP connection successful")
    body = SmtpTestResponse(success=False, message="Failed to connect to SMTP server", error=error)
    return JSONResponse(status_code=400, content=body.model_dump())


@router.get("/registration", response_model=RegistrationConfig)
async def get_registration_config(
    profile: Dict = Depends(require_permission("platform:read")),
    service: PlatformService = Depends(get_platform_service)
):
    return service.get_registration_config()


@router.put("/registration", response_model=PlatformSettingResponse)
async def update_registration_config(
    config: RegistrationConfig,
    profile: Dict = Depends(require_permission("platform:update")),
    service: PlatformService = Depends(get_platform_service)
):
    return service.save_config_value(REGISTRATION_CONFIG_KEY, "registration", config.model_dump(mode="json"))


@router.get("/github", response_model=Optional[GithubConfig])
async def get_github_config(
    profile: Dict = Depends(require_permission("platform:read")),
    service: PlatformService = Depends(get_platform_service)
):
    value = service.get_config_value(GITHUB_CONFIG_KEY)
    return GithubConfig(**value) if value else None


@router.put("/github", response_model=PlatformSettingResponse)
async def update_github_config(
    config: GithubConfig,
    profile: Dict = Depends(require_permission("platform:update")),
    service: PlatformService = Depends(get_platform_service)
):
    return service.save_config_value(GITHUB_CONFIG_KEY, "system", config.model_dump())


@router.get("/themes", response_model=List[ThemeResponse])
async def list_themes(
    profile: Dict = Depends(require_permission("platform:read")),
    service: PlatformService = Depends(get_platform_service)
):
    return service.list_themes()


@router.get("/themes/active", response_model=Optional[ThemeResponse])
async def get_active_theme(service: PlatformService = Depends(get_platform_service)):
    """Public: the theme the site should render with"""
    return service.get_active_theme()


@router.post("/themes", response_model=ThemeResponse, status_code=201)
async def create_theme(
    theme_data: ThemeCreate,
    profile: Dict = Depends(require_permission("platform:update")),
    service: PlatformService = Depends(get_platform_service)
):
    return service.create_theme(theme_data, profile["id"])


@router.put("/themes/{theme_id}", response_model=ThemeResponse)
async def update_theme(
    theme_id: str,
    theme_data: ThemeUpdate,
    profile: Dict = Depends(require_permission("platform:update")),
    service: PlatformService = Depends(get_platform_service)
):
    return service.update_theme(theme_id, theme_data)


@router.post("/themes/{theme_id}/activate", response_model=ThemeResponse)
async def activate_theme(
    theme_id: str,
    profile: Dict = Depends(require_permission("platform:update")),
    service: PlatformService = Depends(get_platform_service)
):
    return service.activate_theme(theme_id)


@router.delete("/themes/{theme_id}", status_code=204)
async def delete_theme(
    theme_id: str,
    profile: Dict = Depends(require_permission("platform:update")),
    service: PlatformService = Depends(get_platform_service)
):
    service.delete_theme(theme_id)
    return None
