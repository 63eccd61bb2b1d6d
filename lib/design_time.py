# =============================================================================
# lib/design_time.py - Design-Time Context Factory
# =============================================================================
# Builds an AppDbContext for schema/migration tooling without starting the
# API host. Configuration is rebuilt independently from the working directory:
#
#   appsettings.json                  (required)
#   appsettings.{ENVIRONMENT}.json    (optional, ENVIRONMENT defaults to development)
#   environment variables
#
# Usage:
#   from lib.design_time import AppDbContextFactory, close_db_context
#   db = AppDbContextFactory().create_db_context([])
#   try:
#       Base.metadata.create_all(db.get_bind())
#   finally:
#       close_db_context(db)
#
#   # Print the resolved database URL (password masked)
#   python -m lib.design_time
# =============================================================================

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from app.config import AppSettings, build_configuration, default_sources, resolve_environment
from lib.database import APP_DB_CONTEXT, AppDbContext, DbContextOptions, get_connection_string

logger = logging.getLogger(__name__)

DESIGN_TIME_ENVIRONMENT = "development"


class AppDbContextFactory:
    """Creates AppDbContext instances for offline tooling."""

    def __init__(self, base_path: str | Path | None = None, environment: str | None = None):
        self.base_path = base_path
        self.environment = environment

    def load_settings(self) -> AppSettings:
        environment = resolve_environment(self.environment, default=DESIGN_TIME_ENVIRONMENT)
        sources = default_sources(self.base_path, environment)
        return AppSettings.from_configuration(build_configuration(sources))

    def create_db_context(self, args: Sequence[str] = ()) -> AppDbContext:
        """
        Build a context bound to the configured AppDbContext connection string.

        Args:
            args: Tooling arguments (unused)

        Raises:
            SettingsFileNotFoundError: If appsettings.json is missing
            ConnectionStringNotFoundError: If the connection string is missing
        """
        settings = self.load_settings()
        options = DbContextOptions(get_connection_string(settings, APP_DB_CONTEXT))
        logger.debug(f"Design-time context for {options.safe_url}")
        return AppDbContext(options)


def close_db_context(db: AppDbContext) -> None:
    """Close a design-time context and the engine it created."""
    engine = db.bind
    db.close()
    if engine is not None:
        engine.dispose()


def main(argv: Sequence[str] | None = None) -> int:
    """Print the database URL the tooling would use."""
    parser = argparse.ArgumentParser(description="Resolve the design-time database context")
    parser.add_argument("--environment", default=None, help="Settings overlay to load")
    parser.add_argument("--base-path", default=None, help="Directory containing appsettings.json")
    args = parser.parse_args(argv)

    factory = AppDbContextFactory(base_path=args.base_path, environment=args.environment)
    db = factory.create_db_context([])
    try:
        print(db.context_options.safe_url)
    finally:
        close_db_context(db)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
