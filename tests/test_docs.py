# =============================================================================
# tests/test_docs.py - API Documentation Tests
# =============================================================================
# Documentation routes exist in development and nowhere else.
# =============================================================================

import pytest

from app.docs import documentation_options

DOC_PATHS = ["/openapi.json", "/docs", "/redoc"]


class TestDevelopment:
    """Development exposes the OpenAPI document and the UIs."""

    @pytest.mark.parametrize("path", DOC_PATHS)
    def test_docs_served(self, make_client, path):
        client = make_client(ENVIRONMENT="development")

        assert client.get(path).status_code == 200

    def test_document_metadata(self, make_client):
        client = make_client(ENVIRONMENT="development")

        info = client.get("/openapi.json").json()["info"]

        assert info["title"] == "Backend API"
        assert info["version"] == "v1"
        assert info["description"] == "Backend"
        assert info["contact"]["name"] == "Backend"

    def test_document_lists_controllers(self, make_client):
        client = make_client(ENVIRONMENT="development")

        paths = client.get("/openapi.json").json()["paths"]

        assert "/api/accounts/me" in paths
        assert "/health" in paths


class TestOtherEnvironments:
    """Staging and production serve no documentation."""

    @pytest.mark.parametrize("environment", ["staging", "production"])
    @pytest.mark.parametrize("path", DOC_PATHS)
    def test_docs_not_served(self, make_client, environment, path):
        client = make_client(ENVIRONMENT=environment)

        assert client.get(path).status_code == 404

    def test_options_disabled(self, make_settings):
        assert documentation_options(make_settings(ENVIRONMENT="production")) == {
            "openapi_url": None,
            "docs_url": None,
            "redoc_url": None,
        }
