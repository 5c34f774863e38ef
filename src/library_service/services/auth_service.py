"""
Authentication service.

Handles registration, credential checks and server-side login sessions.
A session token is an opaque random string; everything it stands for
(user ID, name, role, expiry) is kept in the store and looked up on every
request, so logging out takes effect for all workers at once.
"""

import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta

from ..auth.passwords import hash_password, verify_password
from ..config import get_config
from ..database.store import LibraryStore, StorageUnit
from ..errors import (
    ConstraintViolationError,
    InvalidInputError,
    InvalidPasswordError,
    UnauthenticatedError,
    UserExistsError,
    UserNotFoundError,
)
from ..models.limits import NAME_MAX_LENGTH
from ..models.session import SessionInfo
from ..models.user import Identity, Role, User

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


class AuthService:
    """Accounts, logins and session resolution."""

    def __init__(
        self,
        store: LibraryStore,
        session_max_age_seconds: int | None = None,
        bcrypt_rounds: int | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        config = get_config()
        self.store = store
        self.session_max_age = timedelta(
            seconds=session_max_age_seconds
            if session_max_age_seconds is not None
            else config.session_max_age_seconds
        )
        self.bcrypt_rounds = bcrypt_rounds if bcrypt_rounds is not None else config.bcrypt_rounds
        self.clock = clock

    def _create_account(self, username: str, password: str, role: Role) -> User:
        if not username or not password:
            raise InvalidInputError("username and password are required")
        if len(username) > NAME_MAX_LENGTH:
            raise InvalidInputError(f"username must be at most {NAME_MAX_LENGTH} characters")

        # Hash outside the transaction so the write lock is not held during bcrypt
        password_hash = hash_password(password, rounds=self.bcrypt_rounds)

        def _create(unit: StorageUnit) -> User:
            if unit.users.get_by_username(username) is not None:
                raise UserExistsError(f"User '{username}' already exists")
            try:
                user = unit.users.create(username, password_hash, role)
            except ConstraintViolationError as e:
                raise UserExistsError(f"User '{username}' already exists") from e
            return unit.users.to_model(user)

        return self.store.run_atomically(_create)

    def register(self, username: str, password: str) -> User:
        """
        Create a regular user account.

        Raises:
            InvalidInputError: Empty username or password, or an overlong username
            UserExistsError: The name is taken
        """
        user = self._create_account(username, password, Role.USER)
        logger.info("Registered user %d '%s'", user.id, user.name)
        return user

    def login(self, username: str, password: str) -> User:
        """
        Check credentials.

        Raises:
            InvalidInputError: Empty username or password
            UserNotFoundError: No account with this name
            InvalidPasswordError: Wrong password
        """
        if not username or not password:
            raise InvalidInputError("username and password are required")

        def _lookup(unit: StorageUnit) -> tuple[User, str] | None:
            row = unit.users.get_by_username(username)
            if row is None:
                return None
            return unit.users.to_model(row), row.password

        found = self.store.run_read(_lookup)
        if found is None:
            raise UserNotFoundError(f"User '{username}' not found")

        user, password_hash = found
        if not verify_password(password, password_hash):
            logger.info("Failed login for user '%s'", username)
            raise InvalidPasswordError()
        return user

    def start_session(self, user: User) -> SessionInfo:
        """Open a login session for an authenticated user."""
        identity = Identity(user_id=user.id, username=user.name, role=user.role)
        token = secrets.token_urlsafe(TOKEN_BYTES)
        now = self.clock()

        def _start(unit: StorageUnit) -> SessionInfo:
            unit.login_sessions.purge_expired(now)
            row = unit.login_sessions.create(
                token=token,
                identity=identity,
                created_at=now,
                expires_at=now + self.session_max_age,
            )
            return unit.login_sessions.to_model(row)

        session_info = self.store.run_atomically(_start)
        logger.info("User %d logged in", user.id)
        return session_info

    def resolve_identity(self, token: str | None) -> Identity:
        """
        Turn a session token into the caller's identity.

        Raises:
            UnauthenticatedError: Missing, unknown, expired or logged-out token
        """
        if not token:
            raise UnauthenticatedError()

        def _resolve(unit: StorageUnit) -> Identity | None:
            row = unit.login_sessions.get_by_token(token)
            if row is None or not row.authenticated:
                return None
            session_info = unit.login_sessions.to_model(row)
            if session_info.is_expired(self.clock()):
                return None
            return session_info.identity

        identity = self.store.run_read(_resolve)
        if identity is None:
            raise UnauthenticatedError()
        return identity

    def logout(self, token: str | None) -> None:
        """
        End a session immediately.

        Raises:
            UnauthenticatedError: No active session for this token
        """
        if not token:
            raise UnauthenticatedError()

        def _logout(unit: StorageUnit) -> int | None:
            row = unit.login_sessions.get_by_token(token)
            if row is None or not row.authenticated:
                return None
            now = self.clock()
            if unit.login_sessions.to_model(row).is_expired(now):
                return None
            unit.login_sessions.expire(row, now)
            return row.user_id

        user_id = self.store.run_atomically(_logout)
        if user_id is None:
            raise UnauthenticatedError()
        logger.info("User %d logged out", user_id)

    def ensure_admin(self, username: str, password: str) -> User | None:
        """
        Create an administrator account unless the name is already taken.

        Returns:
            The new admin, or None when an account with this name exists
        """
        try:
            user = self._create_account(username, password, Role.ADMIN)
        except UserExistsError:
            logger.info("Admin account '%s' already present", username)
            return None
        logger.info("Created admin account %d '%s'", user.id, user.name)
        return user
