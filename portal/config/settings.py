from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Needed for admin user creation and profile writes on signup

    # Storage buckets
    mentor_photos_bucket: str = "mentor-photos"
    gallery_bucket: str = "event-gallery"

    # Registration
    admin_registration_key: Optional[str] = None  # /auth/admin/register is closed when unset

    # Teams
    team_min_ready_members: int = 3
    team_join_code_length: int = 8
    team_join_code_attempts: int = 5

    # SMTP connectivity test
    smtp_test_timeout_sec: int = 10

    # Reconciliation sweep for partially applied multi-step writes
    reconcile_enabled: bool = False
    reconcile_interval_sec: int = 600
    reconcile_grace_sec: int = 300  # Rows younger than this may belong to a write still in progress

    # App
    app_name: str = "event-portal"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "*"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
        extra="ignore"
    )


settings = Settings()
