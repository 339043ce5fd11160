"""
Use Cases

Organized into domain folders:
- auth/: Sign-up, sign-in, sessions and passwords
- admin/: Account administration
- audit/: Audit reports
- maintenance/: Store housekeeping

Import from subdirectories for better organization.
"""
