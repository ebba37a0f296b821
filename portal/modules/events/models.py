# Supabase tables: events, event_gallery, technology_stacks
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

events:
- id: uuid (primary key)
- title: text (not null)
- description: text (nullable)
- start_time: timestamptz (not null)
- end_time: timestamptz (not null) - never before start_time
- meta_info: jsonb (nullable) - {"location": str, "maxParticipants": int}
- created_by: uuid (references profiles.id)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

event_gallery:
- id: uuid (primary key)
- image_url: text (not null)
- description: text (nullable)
- tags: text[] (default: '{}')
- event_id: uuid (references events.id, nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

technology_stacks:
- id: uuid (primary key)
- name: text (not null)
- icon: text (nullable) - icon URL
- is_enabled: boolean (default: true)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())
"""
