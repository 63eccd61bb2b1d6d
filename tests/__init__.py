# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Backend API host:
# - test_config.py: Layered settings sources and precedence
# - test_pipeline.py: Middleware order, HTTPS redirect, CORS
# - test_auth.py: Cookie authentication and authorization policies
# - test_serialization.py: Enum-by-name JSON
# - test_docs.py: Development-only API documentation
# - test_database.py / test_design_time.py: Database connector
# - test_paging.py: Paging contract
#
# Run tests with: poetry run pytest
# =============================================================================
