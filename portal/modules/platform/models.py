# Supabase tables: platform_settings, themes
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

platform_settings:
- id: uuid (primary key)
- key: text (unique, not null) - smtp_config, registration_config, github_config, ...
- type: setting_type enum (not null) - values: smtp, registration, system
- value: jsonb (not null)
- description: text (nullable)
- validation_schema: jsonb (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

themes:
- id: uuid (primary key)
- name: text (not null)
- type: theme_type enum (not null, default: 'custom') - values: default, custom
- is_active: boolean (default: false)
- colors: jsonb (not null) - background, foreground, card, ... ring
- fonts: jsonb (not null) - {"primary": ["Inter", ...]}
- created_by: uuid (nullable, references profiles.id)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
