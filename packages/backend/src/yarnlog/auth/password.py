"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and is resistant to rainbow table attacks. The work
factor comes from settings (12 in production, lower in tests).

verify_password() also accepts a missing hash: login calls it even when
the email is unknown, so both failure paths burn one bcrypt check and
take the same time.
"""

from functools import lru_cache
from typing import Optional

import bcrypt

MIN_PASSWORD_LENGTH = 6

# bcrypt ignores (newer releases reject) input beyond 72 bytes.
_BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


@lru_cache(maxsize=None)
def _dummy_hash(rounds: int) -> bytes:
    """Hash verified against when there is no user. Never matches."""
    return bcrypt.hashpw(b"yarnlog-dummy-password", bcrypt.gensalt(rounds=rounds))


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password with bcrypt.

    bcrypt includes a random salt automatically and produces hashes
    starting with "$2b$".
    """
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password(
    password: str, password_hash: Optional[str], rounds: int = 12
) -> bool:
    """Check a password against a stored bcrypt hash.

    A None hash is checked against a dummy hash of the same work factor
    and always returns False.
    """
    if password_hash is None:
        bcrypt.checkpw(_encode(password), _dummy_hash(rounds))
        return False
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False
