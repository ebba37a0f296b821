# Supabase tables: news, legal_documents, home_page_settings, contact_settings, partners
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

news:
- id: uuid (primary key)
- title: text (not null)
- content: text (not null) - HTML
- meta_info: jsonb (nullable) - {"tags": [str], "category": str}
- published_at: timestamptz (nullable) - null keeps the item a draft
- created_by: uuid (references profiles.id)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

legal_documents:
- id: uuid (primary key)
- type: legal_document_type - 'terms' | 'privacy'
- content: text (not null) - HTML
- version: text (not null) - semver, strictly increasing per type
- is_published: boolean (default: false)
- published_at: timestamptz (nullable)
- created_by: uuid (references profiles.id)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

home_page_settings (single row):
- id: uuid (primary key)
- hero_title: text
- hero_subtitle: text
- hero_image_url: text
- updated_at: timestamp

contact_settings (single row):
- id: uuid (primary key)
- email: text
- phone: text
- address: text
- additional_info: text
- updated_at: timestamp

partners:
- id: uuid (primary key)
- name: text (not null)
- logo_url: text (not null)
- website_url: text (nullable)
- display_order: integer (default: 0)
- is_active: boolean (default: true)
- created_at: timestamp (default: now())
"""
