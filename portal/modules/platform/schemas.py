from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime

SettingType = Literal["smtp", "registration", "system"]
ThemeType = Literal["default", "custom"]

SMTP_CONFIG_KEY = "smtp_config"
REGISTRATION_CONFIG_KEY = "registration_config"
GITHUB_CONFIG_KEY = "github_config"


class SmtpAuth(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user: str = ""
    pass_: str = Field(default="", alias="pass")


class SmtpConfig(BaseModel):
    host: str = Field(min_length=1)
    port: int = Field(ge=1, le=65535)
    secure: bool = False
    auth: SmtpAuth = Field(default_factory=SmtpAuth)


class SmtpTestResponse(BaseModel):
    success: bool
    message: str
    error: Optional[str] = None


class RegistrationSchedule(BaseModel):
    enabled: bool = False
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None


class RegistrationConfig(BaseModel):
    enabled: bool = True
    requireEmailVerification: bool = True
    allowedDomains: List[str] = Field(default_factory=list)
    schedule: RegistrationSchedule = Field(default_factory=RegistrationSchedule)


class GithubConfig(BaseModel):
    org_name: str = Field(min_length=1)
    participant_team_slug: str = Field(min_length=1)
    mentor_team_slug: str = Field(min_length=1)
    personal_access_token: str = Field(min_length=1)


class PlatformSettingCreate(BaseModel):
    key: str = Field(min_length=1)
    type: SettingType = "system"
    value: Any
    description: Optional[str] = None


class PlatformSettingUpdate(BaseModel):
    value: Any
    description: Optional[str] = None


class PlatformSettingResponse(BaseModel):
    id: str
    key: str
    type: str
    value: Any = None
    description: Optional[str] = None
    validation_schema: Optional[Any] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ThemeColors(BaseModel):
    model_config = ConfigDict(extra="allow")

    background: str
    foreground: str
    card: str
    cardForeground: str
    popover: str
    popoverForeground: str
    primary: str
    primaryForeground: str
    secondary: str
    secondaryForeground: str
    muted: str
    mutedForeground: str
    accent: str
    accentForeground: str
    destructive: str
    destructiveForeground: str
    border: str
    input: str
    ring: str


class ThemeFonts(BaseModel):
    model_config = ConfigDict(extra="allow")

    primary: List[str]


class ThemeCreate(BaseModel):
    name: str = Field(min_length=1)
    type: ThemeType = "custom"
    is_active: bool = False
    colors: ThemeColors
    fonts: ThemeFonts


class ThemeUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    colors: Optional[ThemeColors] = None
    fonts: Optional[ThemeFonts] = None


class ThemeResponse(BaseModel):
    id: str
    name: str
    type: str
    is_active: Optional[bool] = False
    colors: Dict[str, Any]
    fonts: Dict[str, Any]
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
