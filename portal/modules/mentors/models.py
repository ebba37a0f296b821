# Mentor applications live on the profiles table (see modules/users/models.py)

"""
mentor_status transitions handled here:
- pending -> approved: sets mentor_approval_date
- pending -> rejected: stores rejection_reason (non-empty)

A rejected mentor re-enters review by resubmitting the mentor profile,
which sets mentor_status back to pending (PUT /profile/me/mentor).
"""
