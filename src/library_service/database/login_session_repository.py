"""
Login session repository implementation for the Library Service.

Sessions live in the same store as everything else, so a logout or an
expiry is visible to every worker at once.
"""

from datetime import datetime

from sqlalchemy import delete, select

from ..database.schema import LoginSession as LoginSessionDB
from ..database.schema import RoleEnum
from ..models.session import SessionInfo
from ..models.user import Identity, Role
from .repository import BaseRepository
from .session import safe_flush, safe_query


class LoginSessionRepository(BaseRepository[LoginSessionDB, SessionInfo]):
    """Repository for server-side login sessions."""

    @property
    def model_class(self):
        return LoginSessionDB

    @property
    def response_schema(self):
        return SessionInfo

    def to_model(self, db_obj: LoginSessionDB) -> SessionInfo:
        return SessionInfo(
            token=db_obj.token,
            identity=Identity(
                user_id=db_obj.user_id,
                username=db_obj.username,
                role=Role(db_obj.role.value),
            ),
            created_at=db_obj.created_at,
            expires_at=db_obj.expires_at,
        )

    def get_by_token(self, token: str) -> LoginSessionDB | None:
        query = select(LoginSessionDB).where(LoginSessionDB.token == token)
        return safe_query(
            self.session,
            lambda s: s.execute(query).scalar_one_or_none(),
            "get login session by token",
        )

    def create(
        self,
        token: str,
        identity: Identity,
        created_at: datetime,
        expires_at: datetime,
    ) -> LoginSessionDB:
        return self.add(
            LoginSessionDB(
                token=token,
                user_id=identity.user_id,
                username=identity.username,
                role=RoleEnum(identity.role.value),
                authenticated=True,
                created_at=created_at,
                expires_at=expires_at,
            )
        )

    def expire(self, login_session: LoginSessionDB, at: datetime) -> LoginSessionDB:
        """End a session immediately."""
        login_session.authenticated = False
        login_session.expires_at = at
        return self.save(login_session)

    def purge_expired(self, now: datetime) -> int:
        """Delete sessions that expired before ``now``; returns how many."""
        result = safe_query(
            self.session,
            lambda s: s.execute(delete(LoginSessionDB).where(LoginSessionDB.expires_at < now)),
            "purge expired login sessions",
        )
        safe_flush(self.session, "purge expired login sessions")
        return result.rowcount or 0
