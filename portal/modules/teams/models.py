# Supabase tables: teams, team_members
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

teams:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- leader_id: uuid (references profiles.id, nullable)
- join_code: text (not null) - short code shared with teammates
- is_ready: boolean (default: false)
- looking_for_members: boolean (default: false) - listed in the lobby when true
- max_members: integer (nullable) - null means no cap
- mentor_id: uuid (references profiles.id, nullable)
- stack_id: uuid (references technology_stacks.id, nullable)
- github_repo_url: text (nullable)
- logo_url: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

team_members:
- id: uuid (primary key)
- team_id: uuid (references teams.id)
- user_id: uuid (references profiles.id)
- joined_at: timestamp (default: now())

Note: neither "one team per user" nor join_code uniqueness is guaranteed by
a constraint we can see; TeamService checks both before writing.
"""
