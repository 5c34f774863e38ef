"""
Library Service Package.

A small library-management backend served over MCP: users register and log
in, browse and search the catalog, borrow and return books; administrators
maintain the catalog.

Key Components:
- models: Pydantic models returned by the services
- database: SQLAlchemy schema, session management, repositories and the storage port
- auth: password hashing and the role policy
- services: borrow engine, admin cascade engine, auth and catalog queries
- tools: MCP tools (request layer)
- config: Configuration management with pydantic-settings
"""

__version__ = "1.0.0"

# Make database module available at package level
from . import database

__all__ = [
    "__version__",
    "database",
]
