"""Typed inputs for the tool surface (MCP endpoints and agent function calling)."""

from pydantic import BaseModel, Field

from profindex.core.config import (
    DEFAULT_TOP_K,
    DIRECTORY_MAX_PAGE_SIZE,
    DIRECTORY_PAGE_SIZE,
    HARVEST_MAX_PAGE_SIZE,
    HARVEST_PAGE_SIZE,
)


class ProfessorsByInstitutionRequest(BaseModel):
    """Input for get_professors_by_institution."""

    institution_query: str = Field(
        ...,
        min_length=1,
        description="Institution identifier or name. Can be an OpenAlex ID (e.g. I123...), a full institution URL, or a free-text name.",
    )
    per_page: int = Field(
        HARVEST_PAGE_SIZE,
        ge=1,
        le=HARVEST_MAX_PAGE_SIZE,
        description="Page size when paginating through all authors (1-200).",
    )


class SearchProfessorsRequest(BaseModel):
    """Input for search_professors."""

    query: str = Field(..., min_length=1, description="One focused natural language search query (do not batch several queries).")
    institution: str = Field(
        ...,
        min_length=1,
        description="OpenAlex institution identifier used to select the saved profiles (e.g. I123... or full OpenAlex URL).",
    )
    max_count: int = Field(DEFAULT_TOP_K, ge=1, le=100, description="Maximum number of results to return.")
    rerank: bool = Field(True, description="Rerank results with the cross-encoder before returning them.")
    generate_answer: bool = Field(False, description="Generate an answer based on the results.")


class StoreStatusRequest(BaseModel):
    """Input for store_status."""

    institution: str | None = Field(None, description="Optional institution ID; omit to check the base store.")


class SavedProfessorsRequest(BaseModel):
    """Input for saved_professors."""

    institution: str = Field(..., min_length=1, description="OpenAlex institution ID (e.g. I123...) or URL.")


class DirectorySearchRequest(BaseModel):
    """Input for search_institutions and search_authors."""

    query: str = Field(..., min_length=1, description="Search text (e.g. a name or keywords).")
    per_page: int = Field(DIRECTORY_PAGE_SIZE, ge=1, le=DIRECTORY_MAX_PAGE_SIZE, description="Maximum number of results (1-50).")


class PlaceSearchRequest(BaseModel):
    """Input for get_institutions_by_place."""

    place_query: str = Field(
        ..., min_length=1, description="Free-text place query such as country, city, or region (e.g. 'Germany', 'Tokyo')."
    )
    per_page: int = Field(DIRECTORY_PAGE_SIZE, ge=1, le=DIRECTORY_MAX_PAGE_SIZE, description="Maximum number of institutions (1-50).")
