"""
Institution identity resolution: free-text name, OpenAlex ID, or URL -> canonical ID.

Ambiguous names resolve to the first search hit; there is no disambiguation step.
"""

import logging
import re
from dataclasses import dataclass

from profindex.core.config import OPENALEX_ENTITY_BASE
from profindex.core.errors import NotFoundError
from profindex.services.openalex_client import OpenAlexClient

logger = logging.getLogger(__name__)

_INSTITUTION_ID = re.compile(r"I\d+")


def last_segment(value: str) -> str:
    """Last path segment of an ID or URL ("https://openalex.org/I123" -> "I123")."""
    return value.strip().rstrip("/").split("/")[-1]


def institution_key(reference: str) -> str:
    """Reduce an institution reference to its key without any lookup."""
    ref = reference.strip()
    return last_segment(ref) if ref.startswith("http") else ref


def is_institution_id(candidate: str) -> bool:
    return bool(_INSTITUTION_ID.fullmatch(candidate))


@dataclass(frozen=True)
class CanonicalOrganization:
    id: str

    @property
    def key(self) -> str:
        return last_segment(self.id)


class IdentityResolver:
    def __init__(self, client: OpenAlexClient, entity_base: str = OPENALEX_ENTITY_BASE) -> None:
        self.client = client
        self.entity_base = entity_base.rstrip("/")

    def resolve(self, reference: str) -> CanonicalOrganization:
        """
        Resolve a reference to a CanonicalOrganization.

        IDs, and URLs ending in one, become "{entity_base}/{id}" without a
        network call; anything else is looked up by name and the first hit wins.

        Raises:
            NotFoundError: empty reference or zero search results.
            UpstreamError: OpenAlex returned a non-success response.
        """
        ref = (reference or "").strip()
        if not ref:
            raise NotFoundError("Institution reference is empty")
        candidate = institution_key(ref)

        if is_institution_id(candidate):
            logger.info("[identity:resolve] id pass-through key=%s", candidate)
            return CanonicalOrganization(id=f"{self.entity_base}/{candidate}")

        data = self.client.search_institutions(candidate, per_page=1)
        results = data.get("results") or []
        if not results or not results[0].get("id"):
            raise NotFoundError(f"No institution found for query: {reference}")
        hit = results[0]
        logger.info(
            "[identity:resolve] OUT query=%r -> id=%s name=%r", candidate, hit["id"], hit.get("display_name")
        )
        return CanonicalOrganization(id=hit["id"])
