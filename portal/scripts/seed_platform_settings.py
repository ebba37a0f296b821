"""
Seed Platform Settings Script
Populates the default platform_settings rows and the default theme.
Existing rows are left untouched so admin edits survive re-runs.

Run with: python -m portal.scripts.seed_platform_settings
"""

import sys
from portal.database.supabase_client import SupabaseClient
from portal.modules.platform.schemas import (
    SMTP_CONFIG_KEY, REGISTRATION_CONFIG_KEY, GITHUB_CONFIG_KEY
)
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = [
    {
        "key": SMTP_CONFIG_KEY,
        "type": "smtp",
        "description": "Outgoing mail server",
        "value": {
            "host": "",
            "port": 587,
            "secure": False,
            "auth": {"user": "", "pass": ""},
        },
    },
    {
        "key": REGISTRATION_CONFIG_KEY,
        "type": "registration",
        "description": "Who may register and when",
        "value": {
            "enabled": True,
            "requireEmailVerification": True,
            "allowedDomains": [],
            "schedule": {"enabled": False, "startDate": None, "endDate": None},
        },
    },
    {
        "key": GITHUB_CONFIG_KEY,
        "type": "system",
        "description": "GitHub organization used for team invitations",
        "value": {
            "org_name": "",
            "participant_team_slug": "",
            "mentor_team_slug": "",
            "personal_access_token": "",
        },
    },
]

DEFAULT_THEME = {
    "name": "Default",
    "type": "default",
    "is_active": True,
    "colors": {
        "background": "0 0% 100%",
        "foreground": "222.2 84% 4.9%",
        "card": "0 0% 100%",
        "cardForeground": "222.2 84% 4.9%",
        "popover": "0 0% 100%",
        "popoverForeground": "222.2 84% 4.9%",
        "primary": "222.2 47.4% 11.2%",
        "primaryForeground": "210 40% 98%",
        "secondary": "210 40% 96.1%",
        "secondaryForeground": "222.2 47.4% 11.2%",
        "muted": "210 40% 96.1%",
        "mutedForeground": "215.4 16.3% 46.9%",
        "accent": "210 40% 96.1%",
        "accentForeground": "222.2 47.4% 11.2%",
        "destructive": "0 84.2% 60.2%",
        "destructiveForeground": "210 40% 98%",
        "border": "214.3 31.8% 91.4%",
        "input": "214.3 31.8% 91.4%",
        "ring": "222.2 84% 4.9%",
    },
    "fonts": {"primary": ["Inter", "sans-serif"]},
}


def seed_settings(supabase: Client) -> int:
    """Insert missing default settings; returns how many were created"""
    logger.info("Seeding platform settings...")
    created_count = 0

    for setting in DEFAULT_SETTINGS:
        try:
            existing = supabase.table("platform_settings")\
                .select("id")\
                .eq("key", setting["key"])\
                .execute()
            if existing.data:
                logger.debug(f"Setting exists, skipping: {setting['key']}")
                continue
            supabase.table("platform_settings").insert(setting).execute()
            created_count += 1
            logger.debug(f"Created setting: {setting['key']}")
        except Exception as e:
            logger.error(f"Error processing setting {setting['key']}: {e}")

    logger.info(f"Platform settings seeded: {created_count} created")
    return created_count


def seed_default_theme(supabase: Client) -> bool:
    """Create the default theme unless one exists"""
    existing = supabase.table("themes")\
        .select("id")\
        .eq("type", "default")\
        .execute()
    if existing.data:
        logger.info("Default theme exists, skipping")
        return False

    active = supabase.table("themes")\
        .select("id")\
        .eq("is_active", True)\
        .execute()
    supabase.table("themes").insert({
        **DEFAULT_THEME,
        "is_active": not active.data,
    }).execute()
    logger.info("Default theme created")
    return True


def main():
    try:
        supabase = SupabaseClient.get_service_client()
        logger.info("Starting platform seeding...")
        count = seed_settings(supabase)
        seed_default_theme(supabase)
        logger.info(f"Seeding completed successfully! {count} settings created")
    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
