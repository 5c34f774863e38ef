"""Login session model returned to the caller after a successful login."""

from datetime import datetime

from pydantic import BaseModel, Field

from .user import Identity


class SessionInfo(BaseModel):
    """A server-side login session.

    The token is the only thing a client keeps; every protected request
    presents it and gets the bound identity back.
    """

    token: str = Field(..., min_length=16, repr=False)
    identity: Identity
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now()) >= self.expires_at
