"""Bcrypt hashing of the client-side password digest.

Clients send the SHA-256 hex digest of the password; that digest is what
gets salted and hashed here.
"""

from __future__ import annotations

from passlib.context import CryptContext

_ctx = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(digest: str) -> str:
    """Hash a client password digest with bcrypt."""
    return _ctx.hash(digest)


def verify_password(digest: str, hashed: str | None) -> bool:
    """Verify a client password digest against a stored bcrypt hash."""
    if not hashed:
        return False
    return _ctx.verify(digest, hashed)
