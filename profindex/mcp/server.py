"""
MCP-style tool server: exposes institution ingestion, scoped profile search,
store status and OpenAlex directory lookups as standardized tool endpoints.
Every tool takes one typed body and answers with the success/failure envelope.
"""

import logging
from typing import Any

from fastapi import APIRouter

from profindex.agent.tools import TOOL_SPECS
from profindex.schemas.tools import (
    DirectorySearchRequest,
    PlaceSearchRequest,
    ProfessorsByInstitutionRequest,
    SavedProfessorsRequest,
    SearchProfessorsRequest,
    StoreStatusRequest,
)
from profindex.services.directory_service import institutions_by_place, search_authors, search_institutions
from profindex.services.ingestion_service import ingest_institution, saved_professors
from profindex.services.retrieval_service import search_professors
from profindex.services.status_service import store_status

logger = logging.getLogger(__name__)

mcp_router = APIRouter(tags=["mcp"])


@mcp_router.get("/tools", summary="MCP tool discovery")
def list_tools() -> dict[str, list[dict[str, Any]]]:
    """Tool names, descriptions and input schemas."""
    return {
        "tools": [
            {"name": s.name, "description": s.description, "input_schema": s.model.model_json_schema()}
            for s in TOOL_SPECS.values()
        ]
    }


@mcp_router.post(
    "/tools/get_professors_by_institution",
    summary="MCP tool: get_professors_by_institution",
    description="Resolve an institution, harvest its professors from OpenAlex and index their profiles.",
)
def mcp_get_professors_by_institution(body: ProfessorsByInstitutionRequest) -> dict[str, Any]:
    logger.info("MCP tool called: get_professors_by_institution")
    return ingest_institution(body.institution_query, per_page=body.per_page).envelope()


@mcp_router.post(
    "/tools/search_professors",
    summary="MCP tool: search_professors",
    description="Search one institution's saved professor profiles (semantic search or question answering).",
)
def mcp_search_professors(body: SearchProfessorsRequest) -> dict[str, Any]:
    logger.info("MCP tool called: search_professors")
    return search_professors(
        body.query,
        body.institution,
        max_count=body.max_count,
        rerank=body.rerank,
        generate_answer=body.generate_answer,
    ).envelope()


@mcp_router.post(
    "/tools/saved_professors",
    summary="MCP tool: saved_professors",
    description="List the professors saved for an institution, most cited first.",
)
def mcp_saved_professors(body: SavedProfessorsRequest) -> dict[str, Any]:
    logger.info("MCP tool called: saved_professors")
    return saved_professors(body.institution).envelope()


@mcp_router.post(
    "/tools/store_status",
    summary="MCP tool: store_status",
    description="Store existence and metadata (system observability).",
)
def mcp_store_status(body: StoreStatusRequest) -> dict[str, Any]:
    logger.info("MCP tool called: store_status")
    return store_status(body.institution).envelope()


@mcp_router.post("/tools/get_institutions_by_place", summary="MCP tool: get_institutions_by_place")
def mcp_get_institutions_by_place(body: PlaceSearchRequest) -> dict[str, Any]:
    logger.info("MCP tool called: get_institutions_by_place")
    return institutions_by_place(body.place_query, per_page=body.per_page).envelope()


@mcp_router.post("/tools/search_institutions", summary="MCP tool: search_institutions")
def mcp_search_institutions(body: DirectorySearchRequest) -> dict[str, Any]:
    logger.info("MCP tool called: search_institutions")
    return search_institutions(body.query, per_page=body.per_page).envelope()


@mcp_router.post("/tools/search_authors", summary="MCP tool: search_authors")
def mcp_search_authors(body: DirectorySearchRequest) -> dict[str, Any]:
    logger.info("MCP tool called: search_authors")
    return search_authors(body.query, per_page=body.per_page).envelope()
