"""
Password hashing for family members.

New hashes are salted ``pbkdf2_sha256``. Rosters written before that stored
an unsalted SHA-256 hex digest; those still verify and are flagged for
rehash so a successful login upgrades them.
"""

from __future__ import annotations

import secrets

from passlib.context import CryptContext

pwd_context = CryptContext(
    schemes=["pbkdf2_sha256", "hex_sha256"],
    deprecated=["hex_sha256"],
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> tuple[bool, str | None]:
    """
    Returns ``(valid, new_hash)``; ``new_hash`` is set when the stored hash
    uses a deprecated scheme and should be replaced.
    """
    if not password_hash:
        return False, None
    try:
        return pwd_context.verify_and_update(password, password_hash)
    except ValueError:
        # Unrecognized hash format
        return False, None


def new_session_token() -> str:
    return secrets.token_urlsafe(32)
