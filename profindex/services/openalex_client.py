"""
OpenAlex REST client: institution search/fetch and author listing.

Responsibility: One place that talks HTTP to the academic graph. Any non-2xx
response or transport failure becomes UpstreamError; callers never see httpx
types. No retries.
"""

import logging
from functools import lru_cache
from typing import Any

import httpx

from profindex.core.config import OPENALEX_BASE_URL, OPENALEX_MAILTO, OPENALEX_TIMEOUT
from profindex.core.errors import UpstreamError

logger = logging.getLogger(__name__)

AUTHOR_SELECT_FIELDS = (
    "id",
    "display_name",
    "orcid",
    "works_count",
    "cited_by_count",
    "summary_stats",
    "counts_by_year",
    "topics",
    "x_concepts",
    "last_known_institutions",
    "works_api_url",
)


class OpenAlexClient:
    def __init__(
        self,
        base_url: str = OPENALEX_BASE_URL,
        mailto: str = OPENALEX_MAILTO,
        timeout: float = OPENALEX_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.mailto = mailto
        self.timeout = timeout
        self._transport = transport

    def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        query = {k: v for k, v in params.items() if v is not None}
        if self.mailto:
            query["mailto"] = self.mailto
        url = f"{self.base_url}{path}"
        logger.info("[openalex:get] IN  path=%s params=%s", path, {k: v for k, v in query.items() if k != "mailto"})
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.get(url, params=query, headers={"Accept": "application/json"})
        except httpx.HTTPError as e:
            raise UpstreamError(f"OpenAlex request failed: {e}") from e
        if response.status_code < 200 or response.status_code >= 300:
            raise UpstreamError(
                f"OpenAlex request failed ({response.status_code}): {response.text[:300]}",
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(f"OpenAlex returned invalid JSON: {e}") from e
        logger.info("[openalex:get] OUT path=%s results=%d", path, len(data.get("results") or []))
        return data

    def search_institutions(self, query: str, per_page: int = 20) -> dict[str, Any]:
        return self._get("/institutions", {"search": query, "per-page": per_page})

    def get_institution(self, institution_id: str) -> dict[str, Any]:
        key = institution_id.rstrip("/").split("/")[-1]
        return self._get(f"/institutions/{key}", {})

    def search_authors(self, query: str, per_page: int = 20) -> dict[str, Any]:
        return self._get("/authors", {"search": query, "per-page": per_page})

    def list_authors(
        self,
        filter_expr: str,
        cursor: str,
        per_page: int,
        select: tuple[str, ...] = AUTHOR_SELECT_FIELDS,
    ) -> dict[str, Any]:
        """Fetch one cursor page of authors. Response carries results and meta.next_cursor."""
        return self._get(
            "/authors",
            {
                "filter": filter_expr,
                "per-page": per_page,
                "cursor": cursor,
                "select": ",".join(select),
            },
        )


@lru_cache(maxsize=1)
def get_openalex_client() -> OpenAlexClient:
    return OpenAlexClient()
