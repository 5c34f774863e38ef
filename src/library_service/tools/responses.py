"""
Response envelopes shared by every tool.

A successful call returns human-readable ``content`` plus structured
``data``. A failed call returns ``isError`` with the same ``content`` shape
and an ``error`` object carrying the error code and transport status.
Internal failures only ever say "Internal server error"; the cause is
logged, never returned.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ..errors import DomainError, InternalError, InvalidInputError, LibraryError

P = TypeVar("P", bound=BaseModel)

logger = logging.getLogger(__name__)


def text_response(message: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
    response: dict[str, Any] = {"content": [{"type": "text", "text": message}]}
    if data is not None:
        response["data"] = data
    return response


def error_response(error: LibraryError) -> dict[str, Any]:
    """Build the error envelope for a library error."""
    body = error.to_response()
    return {
        "isError": True,
        "content": [{"type": "text", "text": body["message"]}],
        "error": body,
    }


def _validation_summary(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item["loc"]) or "arguments"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


async def run_tool(
    tool_name: str,
    input_model: type[P],
    arguments: dict[str, Any] | None,
    operation: Callable[[P], dict[str, Any]],
) -> dict[str, Any]:
    """
    Validate arguments, run a blocking operation off the event loop and
    turn its outcome into a response envelope.

    Args:
        tool_name: Name used in log lines
        input_model: Pydantic schema of the tool's arguments
        arguments: Raw arguments from the tools/call request
        operation: Synchronous function doing the actual work

    Returns:
        Success or error envelope; this function never raises
    """
    try:
        params = input_model.model_validate(arguments or {})
    except ValidationError as e:
        logger.warning("Invalid %s parameters: %s", tool_name, e)
        return error_response(
            InvalidInputError(f"Invalid {tool_name} parameters: {_validation_summary(e)}")
        )

    try:
        return await asyncio.to_thread(operation, params)
    except DomainError as e:
        logger.info("%s rejected (%s): %s", tool_name, e.code, e)
        return error_response(e)
    except InternalError as e:
        logger.error("%s failed: %s", tool_name, e)
        return error_response(e)
    except Exception:
        logger.exception("Unexpected error in %s tool", tool_name)
        return error_response(InternalError())
