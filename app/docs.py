# =============================================================================
# app/docs.py - API Documentation
# =============================================================================
# Fixed OpenAPI metadata, and the documentation routes that exist only in
# the development environment:
#   /openapi.json  machine-readable document
#   /docs          Swagger UI
#   /redoc         ReDoc
# =============================================================================

from typing import Optional

from app.config import AppSettings

API_TITLE = "Backend API"
API_VERSION = "v1"
API_DESCRIPTION = "Backend"
API_CONTACT = {"name": "Backend"}

OPENAPI_URL = "/openapi.json"
DOCS_URL = "/docs"
REDOC_URL = "/redoc"


def documentation_options(settings: AppSettings) -> dict[str, Optional[str]]:
    """FastAPI keyword arguments for the documentation routes."""
    if settings.is_development:
        return {"openapi_url": OPENAPI_URL, "docs_url": DOCS_URL, "redoc_url": REDOC_URL}
    return {"openapi_url": None, "docs_url": None, "redoc_url": None}


def api_metadata() -> dict:
    """FastAPI keyword arguments for the document info block."""
    return {
        "title": API_TITLE,
        "version": API_VERSION,
        "description": API_DESCRIPTION,
        "contact": API_CONTACT,
    }
