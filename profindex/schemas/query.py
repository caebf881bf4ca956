"""Schemas for the agent query endpoints."""

from pydantic import BaseModel, Field


class QueryRequest(BaseModel):
    """Request body for POST /query and /query/stream. History is stored server-side by session_id."""

    question: str = Field(..., min_length=1, description="User question for the agent.")
    session_id: str = Field(..., min_length=1, description="Session ID; chat history is stored on the server for this session.")


class QueryResponse(BaseModel):
    """Response for POST /query."""

    answer: str = Field(..., description="Final answer from the agent.")
    tools_used: list[str] = Field(default_factory=list, description="Tools called by the agent (e.g. search_professors).")
