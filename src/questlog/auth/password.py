"""
Password hashing using argon2id.

Hashes embed a random salt and the cost parameters, so verification
needs only the stored string.
"""

from __future__ import annotations

import argon2

_hasher = argon2.PasswordHasher(
    time_cost=2,
    memory_cost=65536,  # 64 MB
    parallelism=1,
    hash_len=32,
    salt_len=16,
    type=argon2.Type.ID,
)


def hash_password(password: str) -> str:
    """Hash a password using argon2id. Returns the full hash string."""
    return _hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """True when ``password`` matches. A wrong password or unreadable hash is False."""
    try:
        return _hasher.verify(password_hash, password)
    except (argon2.exceptions.VerificationError, argon2.exceptions.InvalidHashError):
        return False


# Verified against when no user matches the email, so a missing account
# costs the same as a wrong password.
_DUMMY_HASH = _hasher.hash("questlog-dummy-password")


def burn_verification() -> None:
    """Run one verification against a throwaway hash."""
    verify_password("not-the-password", _DUMMY_HASH)

