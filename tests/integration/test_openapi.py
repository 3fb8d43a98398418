"""
Integration tests for OpenAPI documentation and request parsing.

Verifies the OpenAPI schema is generated for all endpoints. These tests
never enter the app lifespan and need no database.
"""

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from src.api.main import app


@pytest.fixture
def client() -> TestClient:
    """Create test client with stub adapters in app state."""
    app.state.pool = Mock()
    app.state.referral_resolver = Mock()
    app.state.object_storage = Mock()
    app.state.email_sender = Mock()
    return TestClient(app)


class TestOpenAPISchema:
    """Tests for OpenAPI schema generation."""

    def test_openapi_schema_accessible(self, client: TestClient) -> None:
        """OpenAPI schema is accessible at /openapi.json."""
        response = client.get("/openapi.json")
        assert response.status_code == 200
        schema = response.json()
        assert "openapi" in schema
        assert "paths" in schema

    def test_openapi_title_and_description(self, client: TestClient) -> None:
        schema = client.get("/openapi.json").json()
        assert schema["info"]["title"] == "vofmun-registration"
        assert "Intake pipeline" in schema["info"]["description"]
        assert schema["info"]["version"] == "0.1.0"

    def test_signup_endpoint_in_schema(self, client: TestClient) -> None:
        schema = client.get("/openapi.json").json()
        signup = schema["paths"]["/v1/signup"]["post"]
        assert signup["summary"] == "Submit a conference registration"
        assert set(signup["responses"]) >= {"201", "400", "409", "500"}

    def test_referral_check_endpoint_in_schema(self, client: TestClient) -> None:
        schema = client.get("/openapi.json").json()
        assert "get" in schema["paths"]["/v1/referral-codes/{code}"]

    def test_response_schemas(self, client: TestClient) -> None:
        components = client.get("/openapi.json").json()["components"]["schemas"]
        assert {"status", "userId", "message"} <= set(components["SignupResponse"]["properties"])
        assert "errors" in components["ValidationErrorResponse"]["properties"]
        assert "ErrorResponse" in components

    def test_endpoints_tagged_with_v1(self, client: TestClient) -> None:
        schema = client.get("/openapi.json").json()
        assert "v1" in [t["name"] for t in schema.get("tags", [])]
        assert "v1" in schema["paths"]["/v1/signup"]["post"]["tags"]
        assert "v1" in schema["paths"]["/v1/referral-codes/{code}"]["get"]["tags"]


class TestRequestParsing:
    """Malformed bodies are rejected before any pipeline stage runs."""

    def test_invalid_json_returns_400(self, client: TestClient) -> None:
        response = client.post(
            "/v1/signup", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        body = response.json()
        assert body["status"] == "error"
        assert body["message"] == "Validation error"
        assert body["errors"]

    def test_missing_body_returns_400(self, client: TestClient) -> None:
        response = client.post("/v1/signup")
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "body"


class TestSwaggerUI:
    """Tests for Swagger UI availability."""

    def test_docs_endpoint_accessible(self, client: TestClient) -> None:
        response = client.get("/docs")
        assert response.status_code == 200
        assert "swagger" in response.text.lower()

    def test_redoc_endpoint_accessible(self, client: TestClient) -> None:
        response = client.get("/redoc")
        assert response.status_code == 200
        assert "redoc" in response.text.lower()
