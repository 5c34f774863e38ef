"""
Account tools: register, login and logout.

``login`` is the only tool that hands out a session token. Every other
tool except ``register`` expects that token back in ``session_token`` and
resolves it to the caller's identity before doing anything else.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field

from ..auth.policy import authorize
from ..models.limits import NAME_MAX_LENGTH
from ..models.user import Identity
from ..services import get_services
from .responses import run_tool, text_response

logger = logging.getLogger(__name__)


class CredentialsInput(BaseModel):
    """Input schema for the register and login tools."""

    username: str = Field(
        ...,
        description="Account name; unique across the library",
        min_length=1,
        max_length=NAME_MAX_LENGTH,
        examples=["alice"],
    )

    password: str = Field(
        ...,
        description="Account password",
        min_length=1,
        repr=False,
    )


class SessionInput(BaseModel):
    """Input schema for tools that only need the caller's session."""

    session_token: str | None = Field(
        default=None,
        description="Token returned by the login tool",
    )


def resolve_caller(session_token: str | None, require_admin: bool = False) -> Identity:
    """
    Resolve a session token and apply the role policy.

    Raises:
        UnauthenticatedError: No live session for the token
        ForbiddenError: ``require_admin`` and the caller is not an admin
    """
    identity = get_services().auth.resolve_identity(session_token)
    return authorize(identity, require_admin=require_admin)


def _register(params: CredentialsInput) -> dict[str, Any]:
    user = get_services().auth.register(params.username, params.password)
    return text_response(
        f"Registered user '{user.name}' (id {user.id})",
        {"user": user.model_dump(mode="json")},
    )


def _login(params: CredentialsInput) -> dict[str, Any]:
    auth = get_services().auth
    user = auth.login(params.username, params.password)
    session_info = auth.start_session(user)
    return text_response(
        f"Logged in as '{user.name}' ({user.role.value})",
        {
            "session_token": session_info.token,
            "expires_at": session_info.expires_at.isoformat(),
            "user": user.model_dump(mode="json"),
        },
    )


def _logout(params: SessionInput) -> dict[str, Any]:
    get_services().auth.logout(params.session_token)
    return text_response("Logged out")


async def register_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the register tool."""
    return await run_tool("register", CredentialsInput, arguments, _register)


async def login_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the login tool."""
    return await run_tool("login", CredentialsInput, arguments, _login)


async def logout_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the logout tool."""
    return await run_tool("logout", SessionInput, arguments, _logout)


register = {
    "name": "register",
    "description": "Create a regular library account with a username and password.",
    "inputSchema": CredentialsInput.model_json_schema(),
    "handler": register_handler,
}

login = {
    "name": "login",
    "description": (
        "Log in with username and password. Returns a session_token that the other "
        "tools require; it expires after the configured session lifetime or at logout."
    ),
    "inputSchema": CredentialsInput.model_json_schema(),
    "handler": login_handler,
}

logout = {
    "name": "logout",
    "description": "End the session identified by session_token immediately.",
    "inputSchema": SessionInput.model_json_schema(),
    "handler": logout_handler,
}
