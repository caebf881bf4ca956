"""
Integration tests for MCP tool endpoints.

Service entry points are patched so tests do not require OpenAlex, Milvus or HF API.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from profindex.core.result import Err, Ok
from profindex.main import app


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def test_mcp_tool_discovery_lists_all_tools(client: TestClient) -> None:
    response = client.get("/mcp/tools")
    assert response.status_code == 200
    names = {t["name"] for t in response.json()["tools"]}
    assert names == {
        "get_professors_by_institution",
        "search_professors",
        "saved_professors",
        "store_status",
        "get_institutions_by_place",
        "search_institutions",
        "search_authors",
    }


def test_mcp_get_professors_by_institution_returns_envelope(client: TestClient) -> None:
    fake = Ok({"institution_key": "I12345", "count": 180, "saved_count": 180, "indexed": True, "authors": []})
    with patch("profindex.mcp.server.ingest_institution", return_value=fake) as mock_ingest:
        response = client.post("/mcp/tools/get_professors_by_institution", json={"institution_query": "I12345"})
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["count"] == 180
    mock_ingest.assert_called_once_with("I12345", per_page=200)


def test_mcp_get_professors_rejects_oversized_page(client: TestClient) -> None:
    with patch("profindex.mcp.server.ingest_institution") as mock_ingest:
        response = client.post(
            "/mcp/tools/get_professors_by_institution",
            json={"institution_query": "I12345", "per_page": 500},
        )
    assert response.status_code == 422
    mock_ingest.assert_not_called()


def test_mcp_search_professors_failure_envelope(client: TestClient) -> None:
    with patch("profindex.mcp.server.search_professors", return_value=Err("Search failed: backend down")):
        response = client.post("/mcp/tools/search_professors", json={"query": "robotics", "institution": "I1"})
    assert response.status_code == 200
    assert response.json() == {"success": False, "error": "Search failed: backend down"}


def test_mcp_search_professors_passes_options(client: TestClient) -> None:
    with patch("profindex.mcp.server.search_professors", return_value=Ok({"results": {"answer": "x"}})) as mock_search:
        client.post(
            "/mcp/tools/search_professors",
            json={"query": "robotics", "institution": "I1", "max_count": 3, "generate_answer": True},
        )
    mock_search.assert_called_once_with("robotics", "I1", max_count=3, rerank=True, generate_answer=True)


def test_mcp_search_professors_missing_body_returns_422(client: TestClient) -> None:
    response = client.post("/mcp/tools/search_professors")
    assert response.status_code == 422


def test_mcp_store_status_optional_institution(client: TestClient) -> None:
    with patch("profindex.mcp.server.store_status", return_value=Ok({"status": "store is accessible"})) as mock_status:
        response = client.post("/mcp/tools/store_status", json={})
    assert response.json()["success"] is True
    mock_status.assert_called_once_with(None)


def test_mcp_get_institutions_by_place(client: TestClient) -> None:
    fake = Ok({"place_query": "Germany", "count": 0, "institutions": []})
    with patch("profindex.mcp.server.institutions_by_place", return_value=fake) as mock_place:
        response = client.post("/mcp/tools/get_institutions_by_place", json={"place_query": "Germany"})
    assert response.json()["place_query"] == "Germany"
    mock_place.assert_called_once_with("Germany", per_page=20)
