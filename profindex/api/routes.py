"""
API route aggregator: register endpoints; no logic, only delegate to services and handlers.
"""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from profindex.agent.graph import run_agent_agentic_stream
from profindex.api.handlers import ingest_event_stream, sse
from profindex.core.session_store import append_message, clear_session, get_history
from profindex.schemas.query import QueryRequest, QueryResponse
from profindex.schemas.tools import ProfessorsByInstitutionRequest, SearchProfessorsRequest
from profindex.services.directory_service import get_institution
from profindex.services.ingestion_service import ingest_institution, saved_professors
from profindex.services.retrieval_service import search_professors
from profindex.services.status_service import store_status

logger = logging.getLogger(__name__)
router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "Professor index backend running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Ingestion ---

@router.post(
    "/institutions/ingest",
    tags=["ingestion"],
    summary="Harvest and index an institution's professors",
    description="Resolve the institution, fetch qualifying authors from OpenAlex (at most 5 pages), and index their profiles.",
)
def post_ingest(body: ProfessorsByInstitutionRequest) -> dict:
    return ingest_institution(body.institution_query, per_page=body.per_page).envelope()


@router.post(
    "/institutions/ingest/stream",
    tags=["ingestion"],
    summary="Harvest and index with progress (SSE stream)",
    description="Events: progress (one per fetched page), result (the final envelope).",
)
def post_ingest_stream(body: ProfessorsByInstitutionRequest) -> StreamingResponse:
    return StreamingResponse(ingest_event_stream(body), media_type="text/event-stream", headers=SSE_HEADERS)


@router.get("/institutions/{institution_id}", tags=["ingestion"], summary="Institution details from OpenAlex")
def get_institution_detail(institution_id: str) -> dict:
    return get_institution(institution_id).envelope()


@router.get(
    "/institutions/{institution_id}/professors",
    tags=["ingestion"],
    summary="Saved professors for an institution",
    description="Profiles read back from the institution's store, most cited (2-year mean) first.",
)
def get_saved_professors(institution_id: str) -> dict:
    return saved_professors(institution_id).envelope()


@router.get("/stores/status", tags=["ingestion"], summary="Store existence and metadata")
def get_store_status(institution: str | None = None) -> dict:
    return store_status(institution).envelope()


# --- Retrieval ---

@router.post("/search", tags=["retrieval"], summary="Search an institution's saved profiles")
def post_search(body: SearchProfessorsRequest) -> dict:
    return search_professors(
        body.query,
        body.institution,
        max_count=body.max_count,
        rerank=body.rerank,
        generate_answer=body.generate_answer,
    ).envelope()


# --- Agent ---

@router.post(
    "/query",
    response_model=QueryResponse,
    tags=["query"],
    summary="Ask the agent (sync)",
    description="Send a question; receive answer and tools_used. 500 on agent failure.",
)
def post_query(body: QueryRequest) -> QueryResponse:
    logger.info("[api:post_query] IN  question=%r session_id=%s", body.question, body.session_id)
    history = get_history(body.session_id)
    answer = ""
    tools_used: list[str] = []
    for evt in run_agent_agentic_stream(body.question, history=history):
        if evt.get("event") == "done":
            answer = evt.get("answer", "")
            tools_used = evt.get("tools_used", [])
            break
        if evt.get("event") == "error":
            raise HTTPException(status_code=500, detail=evt.get("message", "Agent error"))
    append_message(body.session_id, "user", body.question)
    append_message(body.session_id, "assistant", answer)
    logger.info("[api:post_query] OUT tools_used=%s answer_len=%d", tools_used, len(answer))
    return QueryResponse(answer=answer, tools_used=tools_used)


def _agent_sse(question: str, session_id: str, history: list):
    append_message(session_id, "user", question)
    for evt in run_agent_agentic_stream(question, history):
        event_type = evt.get("event", "")
        if event_type == "answer_delta":
            yield sse("answer_delta", {"content": evt.get("content", "")})
        elif event_type == "tool":
            yield sse("tool", {"name": evt.get("name", "")})
        elif event_type == "done":
            append_message(session_id, "assistant", evt.get("answer", ""))
            yield sse("done", {"answer": evt.get("answer", ""), "tools_used": evt.get("tools_used", [])})
        elif event_type == "error":
            yield sse("error", {"message": evt.get("message", "")})


@router.post(
    "/query/stream",
    tags=["query"],
    summary="Ask the agent (SSE stream)",
    description="Events: answer_delta, tool, done, error.",
)
def post_query_stream(body: QueryRequest) -> StreamingResponse:
    logger.info("[api:post_query_stream] IN  question=%r session_id=%s", body.question, body.session_id)
    history = get_history(body.session_id)
    return StreamingResponse(
        _agent_sse(body.question, body.session_id, history),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.delete("/sessions/{session_id}", tags=["query"], summary="Forget a chat session")
def delete_session(session_id: str) -> dict:
    return {"cleared": clear_session(session_id)}
