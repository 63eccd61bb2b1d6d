# =============================================================================
# app/ - FastAPI Host Package
# =============================================================================
# This package assembles the HTTP API host:
# - main.py: create_app() application factory
# - config.py: Layered settings loading (files + environment)
# - middleware.py: HTTPS redirect, CORS and authentication pipeline
# - auth/: Cookie authentication and authorization policies
# - serialization.py: ApiModel (enums serialized by name)
# - docs.py: OpenAPI metadata, development-only doc routes
#
# Controllers live outside this package and are passed to create_app().
# =============================================================================
