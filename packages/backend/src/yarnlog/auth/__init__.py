"""Authentication and authorization.

Users → email/password → bcrypt check → signed JWT access token.
Every protected request presents the token as `Authorization: Bearer ...`;
the verified user id is then used for owner scoping of projects.
"""
