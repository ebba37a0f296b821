from supabase import Client
from portal.modules.platform.schemas import (
    PlatformSettingCreate, PlatformSettingUpdate, PlatformSettingResponse,
    RegistrationConfig, ThemeCreate, ThemeUpdate, ThemeResponse,
    REGISTRATION_CONFIG_KEY,
)
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def registration_block_reason(config: RegistrationConfig, email: str, now: Optional[datetime] = None) -> Optional[str]:
    """Return why a signup with this email is refused right now, or None when it is allowed."""
    if not config.enabled:
        return "Registration is currently closed"
    if config.allowedDomains:
        domain = email.rsplit("@", 1)[-1].lower()
        allowed = {d.strip().lstrip("@").lower() for d in config.allowedDomains if d.strip()}
        if allowed and domain not in allowed:
            return f"Registration is restricted to: {', '.join(sorted(allowed))}"
    schedule = config.schedule
    if schedule.enabled:
        now = _as_utc(now or datetime.now(timezone.utc))
        if schedule.startDate and now < _as_utc(schedule.startDate):
            return "Registration has not opened yet"
        if schedule.endDate and now > _as_utc(schedule.endDate):
            return "Registration has closed"
    return None


class PlatformService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_settings(self) -> List[PlatformSettingResponse]:
        """List all platform settings in creation order"""
        try:
            result = self.supabase.table("platform_settings")\
                .select("*")\
                .order("created_at")\
                .execute()
            return [PlatformSettingResponse(**row) for row in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _find_setting(self, key: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("platform_settings")\
            .select("*")\
            .eq("key", key)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def get_setting_by_key(self, key: str) -> PlatformSettingResponse:
        try:
            row = self._find_setting(key)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not row:
            raise HTTPException(status_code=404, detail=f"Setting {key} not found")
        return PlatformSettingResponse(**row)

    def create_setting(self, setting_data: PlatformSettingCreate) -> PlatformSettingResponse:
        """Create a new setting; keys are unique"""
        try:
            if self._find_setting(setting_data.key):
                raise HTTPException(status_code=409, detail=f"Setting {setting_data.key} already exists")
            result = self.supabase.table("platform_settings").insert({
                "key": setting_data.key,
                "type": setting_data.type,
                "value": setting_data.value,
                "description": setting_data.description,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create setting")
            return PlatformSettingResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_setting(self, setting_id: str, setting_data: PlatformSettingUpdate) -> PlatformSettingResponse:
        try:
            update_data = {
                "value": setting_data.value,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            }
            if setting_data.description is not None:
                update_data["description"] = setting_data.description
            result = self.supabase.table("platform_settings")\
                .update(update_data)\
                .eq("id", setting_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Setting not found")
            return PlatformSettingResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_setting(self, setting_id: str) -> bool:
        try:
            result = self.supabase.table("platform_settings")\
                .delete()\
                .eq("id", setting_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Setting not found")
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_config_value(self, key: str) -> Optional[Any]:
        """Raw JSON value of a keyed setting, or None when the row does not exist"""
        try:
            row = self._find_setting(key)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return row.get("value") if row else None

    def save_config_value(self, key: str, setting_type: str, value: Dict[str, Any]) -> PlatformSettingResponse:
        """Update a keyed setting's value, creating the row when it is missing"""
        try:
            now = datetime.now(timezone.utc).isoformat()
            result = self.supabase.table("platform_settings")\
                .update({"value": value, "updated_at": now})\
                .eq("key", key)\
                .execute()
            if not result.data:
                logger.info(f"Setting {key} missing, creating it")
                result = self.supabase.table("platform_settings").insert({
                    "key": key,
                    "type": setting_type,
                    "value": value,
                }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail=f"Failed to save {key}")
            return PlatformSettingResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_registration_config(self) -> RegistrationConfig:
        value = self.get_config_value(REGISTRATION_CONFIG_KEY)
        if not value:
            return RegistrationConfig()
        return RegistrationConfig(**value)

    # Themes

    def list_themes(self) -> List[ThemeResponse]:
        try:
            result = self.supabase.table("themes")\
                .select("*")\
                .order("created_at", desc=True)\
                .execute()
            return [ThemeResponse(**row) for row in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_theme_by_id(self, theme_id: str) -> ThemeResponse:
        try:
            result = self.supabase.table("themes")\
                .select("*")\
                .eq("id", theme_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Theme not found")
        return ThemeResponse(**result.data[0])

    def get_active_theme(self) -> Optional[ThemeResponse]:
        try:
            result = self.supabase.table("themes")\
                .select("*")\
                .eq("is_active", True)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return ThemeResponse(**result.data[0]) if result.data else None

    def create_theme(self, theme_data: ThemeCreate, user_id: str) -> ThemeResponse:
        try:
            result = self.supabase.table("themes").insert({
                "name": theme_data.name,
                "type": theme_data.type,
                "is_active": False,
                "colors": theme_data.colors.model_dump(),
                "fonts": theme_data.fonts.model_dump(),
                "created_by": user_id,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create theme")
            theme = ThemeResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if theme_data.is_active:
            theme = self.activate_theme(theme.id)
        return theme

    def update_theme(self, theme_id: str, theme_data: ThemeUpdate) -> ThemeResponse:
        try:
            update_data = {"updated_at": datetime.now(timezone.utc).isoformat()}
            if theme_data.name:
                update_data["name"] = theme_data.name
            if theme_data.colors is not None:
                update_data["colors"] = theme_data.colors.model_dump()
            if theme_data.fonts is not None:
                update_data["fonts"] = theme_data.fonts.model_dump()
            result = self.supabase.table("themes")\
                .update(update_data)\
                .eq("id", theme_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Theme not found")
            return ThemeResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def activate_theme(self, theme_id: str) -> ThemeResponse:
        """Make one theme the active theme and deactivate every other one"""
        self.get_theme_by_id(theme_id)
        try:
            self.supabase.table("themes")\
                .update({"is_active": False})\
                .neq("id", theme_id)\
                .execute()
            result = self.supabase.table("themes")\
                .update({"is_active": True})\
                .eq("id", theme_id)\
                .execute()
            logger.info(f"Theme {theme_id} activated")
            return ThemeResponse(**result.data[0])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_theme(self, theme_id: str) -> bool:
        theme = self.get_theme_by_id(theme_id)
        if theme.type == "default":
            raise HTTPException(status_code=400, detail="The default theme cannot be deleted")
        try:
            result = self.supabase.table("themes")\
                .delete()\
                .eq("id", theme_id)\
                .execute()
            return len(result.data) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
