# =============================================================================
# lib/ - Database Connector
# =============================================================================
# This package binds configuration to the ORM:
# - database.py: Connection string parsing, AppDbContext, runtime registration
# - design_time.py: AppDbContextFactory for migration tooling
# =============================================================================

from lib.database import (
    APP_DB_CONTEXT,
    AppDbContext,
    Base,
    DbContextOptions,
    configure_database,
    get_connection_string,
    get_db_context,
    parse_connection_string,
)
from lib.design_time import AppDbContextFactory, close_db_context

__all__ = [
    "APP_DB_CONTEXT",
    "AppDbContext",
    "AppDbContextFactory",
    "Base",
    "DbContextOptions",
    "close_db_context",
    "configure_database",
    "get_connection_string",
    "get_db_context",
    "parse_connection_string",
]
