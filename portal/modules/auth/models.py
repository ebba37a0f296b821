# Supabase Auth
# This module uses Supabase's built-in authentication system.
# Supabase Auth handles:
# - User registration (auth.users table)
# - User login and session management
# - JWT token generation and validation

"""
Supabase Auth provides:
- auth.sign_up() - Register new users
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users

The chosen role and full name travel in user_metadata on sign up. The
matching public.profiles row (see modules/users/models.py) is written right
after sign up, so the portal never depends on a database trigger existing.
"""
