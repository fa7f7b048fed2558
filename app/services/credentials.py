"""Secret hashing and opaque token generation.

Stateless helpers shared by the user model and the auth flows. Digests are
bcrypt hashes stored as text; tokens are URL-safe random strings that are
handed out once and never stored in plaintext.
"""

import secrets

import bcrypt

from app.config import get_settings

BCRYPT_MIN_ROUNDS = 4
TOKEN_BYTES = 32


def digest(secret: str) -> str:
    """Return a salted bcrypt digest of the given secret."""
    if get_settings().BCRYPT_MIN_COST:
        salt = bcrypt.gensalt(rounds=BCRYPT_MIN_ROUNDS)
    else:
        salt = bcrypt.gensalt()
    return bcrypt.hashpw(secret.encode("utf-8"), salt).decode("utf-8")


def verify(digest_value: str | None, candidate: str) -> bool:
    """Check a candidate secret against a digest. False when there is no usable digest."""
    if not digest_value:
        return False
    try:
        return bcrypt.checkpw(candidate.encode("utf-8"), digest_value.encode("utf-8"))
    except ValueError:
        # malformed digest or candidate over bcrypt's input limit
        return False


def new_token() -> str:
    """Return a random URL-safe token."""
    return secrets.token_urlsafe(TOKEN_BYTES)
