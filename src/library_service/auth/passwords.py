"""Password hashing with bcrypt.

Hashes are salted per password and slow to compute; the cost factor comes
from ``LibraryConfig.bcrypt_rounds``. Verification goes through
``bcrypt.checkpw``, which compares in constant time.
"""

import bcrypt

from ..config import get_config

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int | None = None) -> str:
    """Return a salted bcrypt hash of ``password`` as text."""
    if rounds is None:
        rounds = get_config().bcrypt_rounds
    hashed = bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check ``password`` against a stored hash.

    A malformed stored hash counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except ValueError:
        return False
