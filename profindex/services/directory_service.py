"""
Directory lookups on OpenAlex: institutions by name or place, authors by name.

Lightweight summaries only; nothing here is indexed.
"""

import logging
from typing import Any

from profindex.core.config import DIRECTORY_MAX_PAGE_SIZE, DIRECTORY_PAGE_SIZE
from profindex.core.result import Err, Ok, Result
from profindex.services.openalex_client import OpenAlexClient, get_openalex_client

logger = logging.getLogger(__name__)


def _institution_summary(i: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": i.get("id"),
        "display_name": i.get("display_name"),
        "country_code": i.get("country_code"),
        "type": i.get("type"),
        "homepage_url": i.get("homepage_url"),
        "ror": i.get("ror"),
    }


def _author_summary(a: dict[str, Any]) -> dict[str, Any]:
    institutions = a.get("last_known_institutions") or []
    last = institutions[0] if institutions else (a.get("last_known_institution") or {})
    return {
        "id": a.get("id"),
        "display_name": a.get("display_name"),
        "orcid": a.get("orcid"),
        "works_count": a.get("works_count"),
        "cited_by_count": a.get("cited_by_count"),
        "last_known_institution": (last or {}).get("display_name"),
    }


def _bounded(per_page: int) -> int:
    if not 1 <= per_page <= DIRECTORY_MAX_PAGE_SIZE:
        raise ValueError(f"per_page must be between 1 and {DIRECTORY_MAX_PAGE_SIZE}, got {per_page}")
    return per_page


def search_institutions(
    query: str, per_page: int = DIRECTORY_PAGE_SIZE, client: OpenAlexClient | None = None
) -> Result:
    client = client or get_openalex_client()
    try:
        data = client.search_institutions(query, per_page=_bounded(per_page))
    except Exception as e:
        return Err(f"Failed to search institutions: {e}")
    institutions = [_institution_summary(i) for i in data.get("results") or []]
    return Ok({"query": query, "count": len(institutions), "institutions": institutions})


def institutions_by_place(
    place_query: str, per_page: int = DIRECTORY_PAGE_SIZE, client: OpenAlexClient | None = None
) -> Result:
    """Institutions matching a country, city or region name."""
    client = client or get_openalex_client()
    try:
        data = client.search_institutions(place_query, per_page=_bounded(per_page))
    except Exception as e:
        return Err(f"Failed to fetch institutions: {e}")
    institutions = [_institution_summary(i) for i in data.get("results") or []]
    return Ok({"place_query": place_query, "count": len(institutions), "institutions": institutions})


def search_authors(
    query: str, per_page: int = DIRECTORY_PAGE_SIZE, client: OpenAlexClient | None = None
) -> Result:
    client = client or get_openalex_client()
    try:
        data = client.search_authors(query, per_page=_bounded(per_page))
    except Exception as e:
        return Err(f"Failed to search authors: {e}")
    authors = [_author_summary(a) for a in data.get("results") or []]
    return Ok({"query": query, "count": len(authors), "authors": authors})


def get_institution(institution_id: str, client: OpenAlexClient | None = None) -> Result:
    client = client or get_openalex_client()
    try:
        data = client.get_institution(institution_id)
    except Exception as e:
        return Err(f"Failed to fetch institution: {e}")
    return Ok({"institution": _institution_summary(data)})
