"""Authorization policy.

Pure functions over an already resolved ``Identity``: they read nothing from
the store and change nothing. The request layer resolves the session first,
then asks the policy whether the caller may go on.
"""

from ..errors import ForbiddenError, UnauthenticatedError
from ..models.user import Identity, Role


def authorize(identity: Identity | None, require_admin: bool = False) -> Identity:
    """
    Check that a caller may use an operation.

    Args:
        identity: Identity bound to the caller's session, or None without one
        require_admin: Whether the operation is reserved to administrators

    Returns:
        The same identity, for chaining into the operation

    Raises:
        UnauthenticatedError: No identity
        ForbiddenError: Admin required but the caller is a regular user
    """
    if identity is None:
        raise UnauthenticatedError()
    if require_admin and identity.role != Role.ADMIN:
        raise ForbiddenError()
    return identity


def require_admin(identity: Identity | None) -> Identity:
    return authorize(identity, require_admin=True)
