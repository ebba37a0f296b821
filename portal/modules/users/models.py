# Supabase tables: profiles, mentor_stacks, auth.users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id)
- full_name: text (nullable)
- role: user_role enum (not null) - values: admin, organizer, moderator, mentor, participant
- mentor_status: text (nullable) - values: pending, approved, rejected
- mentor_approval_date: timestamp (nullable)
- rejection_reason: text (nullable)
- max_teams: integer (nullable, default: 1) - how many teams a mentor takes on
- github_username: text (nullable)
- linkedin_username: text (nullable)
- photo_url: text (nullable)
- preferred_stack_id: uuid (nullable, references technology_stacks.id)
- onboarding_completed: boolean (default: false)
- github_org_invited: boolean (default: false)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

mentor_stacks:
- id: uuid (primary key)
- mentor_id: uuid (references profiles.id, not null)
- stack_id: uuid (references technology_stacks.id, not null)
- created_at: timestamp (default: now())

Note: no server-side check prevents invalid role changes; only the admin
edit endpoint changes roles.
"""
