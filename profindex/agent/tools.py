"""
Agent tools: definitions and execution for tool-calling (agentic) mode.

Each tool takes one typed input object (a pydantic model, which also supplies
the OpenAI function schema) and returns the success/failure envelope as JSON.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel, ValidationError

from profindex.core.result import Result
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


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    model: type[BaseModel]
    run: Callable[[Any], Result]


TOOL_SPECS: dict[str, ToolSpec] = {
    tool.name: tool
    for tool in (
        ToolSpec(
            "get_professors_by_institution",
            "Get professors (authors) for an institution, resolving it by name or ID via OpenAlex, "
            "and save their profiles to the institution's searchable store.",
            ProfessorsByInstitutionRequest,
            lambda r: ingest_institution(r.institution_query, per_page=r.per_page),
        ),
        ToolSpec(
            "search_professors",
            "Search the saved professor profiles of one institution using a single, focused natural "
            "language query (do not batch multiple queries together).",
            SearchProfessorsRequest,
            lambda r: search_professors(
                r.query, r.institution, max_count=r.max_count, rerank=r.rerank, generate_answer=r.generate_answer
            ),
        ),
        ToolSpec(
            "saved_professors",
            "List the professors already saved for an institution, most cited first.",
            SavedProfessorsRequest,
            lambda r: saved_professors(r.institution),
        ),
        ToolSpec(
            "store_status",
            "Check whether an institution's profile store exists and how many documents it holds.",
            StoreStatusRequest,
            lambda r: store_status(r.institution),
        ),
        ToolSpec(
            "get_institutions_by_place",
            "List institutions in a given country, city or region.",
            PlaceSearchRequest,
            lambda r: institutions_by_place(r.place_query, per_page=r.per_page),
        ),
        ToolSpec(
            "search_institutions",
            "Search OpenAlex institutions by name or keywords.",
            DirectorySearchRequest,
            lambda r: search_institutions(r.query, per_page=r.per_page),
        ),
        ToolSpec(
            "search_authors",
            "Search OpenAlex authors (professors) by name or keywords when the institution is not yet known.",
            DirectorySearchRequest,
            lambda r: search_authors(r.query, per_page=r.per_page),
        ),
    )
}

# OpenAI function-calling format
AGENT_TOOLS = [
    {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.model.model_json_schema(),
        },
    }
    for tool in TOOL_SPECS.values()
]


def execute_tool(name: str, arguments: dict[str, Any]) -> str:
    """
    Execute a tool by name with the given arguments. Returns the envelope as a JSON string for the LLM.
    """
    logger.info("[tools] execute_tool name=%r arguments=%r", name, arguments)
    tool = TOOL_SPECS.get(name)
    if tool is None:
        return json.dumps({"success": False, "error": f"Unknown tool: {name}"})
    try:
        request = tool.model.model_validate(arguments or {})
    except ValidationError as e:
        return json.dumps({"success": False, "error": f"Invalid arguments for {name}: {e.errors(include_url=False)}"}, default=str)
    return json.dumps(tool.run(request).envelope(), default=str)
