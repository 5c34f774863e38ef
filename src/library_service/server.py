"""Library Service MCP Server - FastMCP Implementation

Exposes the library core as MCP tools. Clients log in with the ``login``
tool and pass the returned session token to every other tool.

Tools exposed:
- Accounts: register, login, logout
- Catalog: list, lookup and search books
- Circulation: borrow, return, own borrow history
- Administration: add, update and delete books, audit borrow records
"""

import logging
import signal
import sys
from typing import Any

from fastmcp import FastMCP

from .config import get_config
from .database import get_db_manager
from .services import get_services
from .tools import all_tools

# Initialize logging - stderr for logs, stdout for MCP protocol
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)

logger = logging.getLogger(__name__)

# Load configuration
config = get_config()
logging.getLogger().setLevel(config.log_level)

# Create the FastMCP server instance
mcp = FastMCP(
    name=config.server_name,
    version=config.server_version,
    instructions=(
        "Library Service - a small library backend. Call `login` first and pass the "
        "returned session_token to every other tool. Regular users can browse and "
        "search the catalog, borrow and return books. Admin accounts can also add, "
        "edit and delete books and list all borrow records."
    ),
)

# Register all tools with the MCP server
for tool in all_tools:
    logger.debug("Registering tool: %s", tool["name"])
    try:
        mcp.tool(
            name=tool["name"],
            description=tool["description"],
        )(tool["handler"])
    except Exception:
        logger.exception("Failed to register tool %s", tool["name"])
        raise

logger.info("Registered %d tools", len(all_tools))


def prepare_database() -> None:
    """Create missing tables, wire the shared services and bootstrap the admin account.

    Runs before the transport starts, so the shared engine and services exist
    before any worker thread asks for them.
    """
    db_manager = get_db_manager()
    db_manager.init_database()
    services = get_services()

    if config.admin_username and config.admin_password:
        services.auth.ensure_admin(config.admin_username, config.admin_password)


def run_server() -> None:
    """Run the MCP server on the configured transport.

    stdio: stdin receives JSON-RPC requests, stdout sends responses.
    streamable-http: served on ``http_host:http_port``.
    """
    logger.info(
        "Starting %s v%s on %s transport",
        config.server_name,
        config.server_version,
        config.transport,
    )

    if config.is_development:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Debug mode enabled - verbose protocol logging active")
    else:
        logging.getLogger("fastmcp").setLevel(logging.WARNING)

    # Set up signal handlers for graceful shutdown
    def signal_handler(signum: int, _frame: Any) -> None:
        logger.info("Received signal %s, initiating shutdown...", signum)
        get_db_manager().close()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        logger.info("MCP Server ready and waiting for connections...")
        if config.transport == "streamable-http":
            mcp.run(transport="streamable-http", host=config.http_host, port=config.http_port)
        else:
            mcp.run(transport="stdio")
    except Exception:
        logger.exception("Fatal error in MCP server")
        sys.exit(1)


def main() -> None:
    """Main entry point for the MCP server.

    Starts the server via ``python -m library_service.server`` or the
    ``library-service`` entry point.
    """
    try:
        logger.info("=" * 60)
        logger.info("Library Service")
        logger.info("Version: %s", config.server_version)
        logger.info("Transport: %s", config.transport)
        logger.info("Debug Mode: %s", config.debug)
        logger.info("=" * 60)

        prepare_database()
        run_server()

    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception:
        logger.exception("Failed to start MCP server")
        sys.exit(1)


if __name__ == "__main__":
    main()
