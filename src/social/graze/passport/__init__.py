"""
Passport - authenticator records for user accounts

A passport binds one way of signing in to one user. Local passports carry a
password and an API access token; third-party passports carry the provider
name, the provider's identifier for the user and the OAuth tokens it issued.
A user may hold any number of passports.

Key Components:
- model: SQLAlchemy models for users and passports
- store: PassportStore, the create/update/lookup operations over an injected
  async session maker
- hashing: pluggable password hashers
- errors: coded PassportException factory
- app: aiohttp wiring, configuration and the X-Forwarded-* header middleware
"""
