# Supabase tables: vendors, benefits, benefit_assignments
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

vendors:
- id: uuid (primary key)
- name: text (not null)
- website: text (not null)
- icon: text (not null) - logo URL
- redemption_instructions: text (not null)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

benefits:
- id: uuid (primary key)
- vendor_id: uuid (references vendors.id)
- coupon_code: text (not null)
- provider_name: text (nullable)
- provider_website: text (nullable)
- redemption_instructions: text (nullable)
- expiry_date: date (nullable)
- user_type: text - 'all' | 'mentor' | 'participant'
- is_active: boolean (default: true)
- is_assigned: boolean (default: false) - claimed by an assignment
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

benefit_assignments:
- id: uuid (primary key)
- user_id: uuid (references profiles.id)
- benefit_id: uuid (references benefits.id)
- is_redeemed: boolean (default: false)
- redeemed_at: timestamp (nullable)
- created_at: timestamp (default: now())

Available benefits for a vendor are the active, unassigned rows taken in
created_at, id order.
"""
