"""Credential handling and authorization policy."""

from .passwords import hash_password, verify_password
from .policy import authorize, require_admin

__all__ = [
    "authorize",
    "hash_password",
    "require_admin",
    "verify_password",
]
