"""
Database Models

SQLAlchemy ORM models for the passport service.

Key Models:
- base.py: Declarative base and shared column type definitions
- user.py: User accounts
- passport.py: Passports binding an authenticator to a user, plus the
  statement builders used by the passport store

Relationships:
- User: owns zero or more passports
- Passport: belongs to exactly one user (``user_id`` foreign key), and is
  either local (password and access token) or third-party (provider,
  identifier and OAuth tokens)
"""
