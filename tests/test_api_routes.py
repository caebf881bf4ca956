"""
Integration tests for the HTTP API (ingestion stream, saved professors, search, query).

Service entry points are patched; no external services.
"""

import asyncio
import json
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from profindex.api.handlers import ingest_event_stream
from profindex.core.events import ProgressEvent
from profindex.core.result import Err, Ok
from profindex.main import app
from profindex.schemas.tools import ProfessorsByInstitutionRequest


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def _parse_sse(body: str) -> list[tuple[str, dict]]:
    events = []
    for block in body.strip().split("\n\n"):
        lines = block.splitlines()
        event = lines[0][len("event: "):]
        data = json.loads(lines[1][len("data: "):])
        events.append((event, data))
    return events


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"ok": True}


def test_ingest_stream_emits_progress_then_result(client: TestClient) -> None:
    def fake_ingest(institution_query, per_page, emitter, cancel_event):
        emitter.emit(ProgressEvent("Fetching professors from institution", "running", "Fetched page 1 with 200 authors (total so far: 200)."))
        emitter.emit(ProgressEvent("Fetching professors from institution", "completed", "Fetched page 2 with 5 authors (total so far: 205)."))
        return Ok({"institution_key": "I1", "count": 205, "indexed": True})

    with patch("profindex.api.handlers.ingest_institution", side_effect=fake_ingest):
        response = client.post("/institutions/ingest/stream", json={"institution_query": "I1"})
    assert response.status_code == 200
    events = _parse_sse(response.text)
    assert [e for e, _ in events] == ["progress", "progress", "result"]
    assert events[1][1]["status"] == "completed"
    assert events[2][1] == {"success": True, "institution_key": "I1", "count": 205, "indexed": True}


def test_saved_professors_route(client: TestClient) -> None:
    fake = Ok({"institution_key": "I1", "count": 1, "professors": [{"name": "Ada"}]})
    with patch("profindex.api.routes.saved_professors", return_value=fake) as mock_saved:
        response = client.get("/institutions/I1/professors")
    assert response.json()["professors"] == [{"name": "Ada"}]
    mock_saved.assert_called_once_with("I1")


def test_search_route(client: TestClient) -> None:
    with patch("profindex.api.routes.search_professors", return_value=Ok({"results": {"data": []}})) as mock_search:
        response = client.post("/search", json={"query": "robotics", "institution": "I1"})
    assert response.json() == {"success": True, "results": {"data": []}}
    mock_search.assert_called_once_with("robotics", "I1", max_count=10, rerank=True, generate_answer=False)


def test_query_returns_agent_answer(client: TestClient) -> None:
    events = [{"event": "tool", "name": "store_status"}, {"event": "done", "answer": "Yes.", "tools_used": ["store_status"]}]
    with patch("profindex.api.routes.run_agent_agentic_stream", return_value=iter(events)):
        response = client.post("/query", json={"question": "Is I1 indexed?", "session_id": "s-test-1"})
    assert response.status_code == 200
    assert response.json() == {"answer": "Yes.", "tools_used": ["store_status"]}


def test_query_agent_error_is_500(client: TestClient) -> None:
    with patch("profindex.api.routes.run_agent_agentic_stream", return_value=iter([{"event": "error", "message": "boom"}])):
        response = client.post("/query", json={"question": "hi", "session_id": "s-test-2"})
    assert response.status_code == 500


def test_closing_ingest_stream_early_cancels_harvest() -> None:
    seen = {}

    def fake_ingest(institution_query, per_page, emitter, cancel_event):
        seen["cancel_event"] = cancel_event
        emitter.emit(ProgressEvent("Fetching professors from institution", "running", "Fetched page 1 with 200 authors (total so far: 200)."))
        cancel_event.wait(timeout=5)
        return Err("Failed to fetch professors: Harvest cancelled after 1 page(s)")

    async def read_first_then_close() -> str:
        stream = ingest_event_stream(ProfessorsByInstitutionRequest(institution_query="I1"))
        first = await stream.__anext__()
        await stream.aclose()
        return first

    with patch("profindex.api.handlers.ingest_institution", side_effect=fake_ingest):
        first = asyncio.run(read_first_then_close())
    assert first.startswith("event: progress")
    assert seen["cancel_event"].is_set()
