"""
Retrieval gateway: guarded, institution-scoped search over saved professor profiles.

Responsibility: Validate the query, pick the institution's store by the same
naming rule ingestion uses, and dispatch to plain search or question answering.
The backend's result is returned untouched inside the envelope; every failure
comes back as Err.
"""

import logging
from functools import lru_cache
from typing import Literal

from profindex.core.config import DEFAULT_TOP_K, STORE_BASE_NAME
from profindex.core.errors import QueryTooBroadError
from profindex.core.result import Err, Ok, Result
from profindex.services.identity import institution_key
from profindex.services.query_guard import validate_query
from profindex.services.store_manager import StoreBackend, scoped_store_name
from profindex.services.vector_store import get_backend

logger = logging.getLogger(__name__)

SearchMode = Literal["search", "answer"]


class RetrievalGateway:
    def __init__(self, backend: StoreBackend, base_name: str = STORE_BASE_NAME) -> None:
        self.backend = backend
        self.base_name = base_name

    def search(
        self,
        query: str,
        organization_key: str,
        top_k: int = DEFAULT_TOP_K,
        rerank: bool = True,
        mode: SearchMode = "search",
    ) -> Result:
        try:
            validate_query(query)
            store = scoped_store_name(self.base_name, institution_key(organization_key))
            logger.info("[retrieval:search] IN  query=%r store=%s top_k=%d rerank=%s mode=%s", query, store, top_k, rerank, mode)
            if mode == "answer":
                results = self.backend.question_answering([store], query, top_k, rerank=rerank)
            else:
                results = self.backend.search([store], query, top_k, rerank=rerank)
        except QueryTooBroadError as e:
            logger.info("[retrieval:search] rejected query_len=%d", len(query))
            return Err(e.message)
        except Exception as e:
            logger.warning("[retrieval:search] failed: %s", e)
            return Err(f"Search failed: {e}")
        return Ok({
            "query": query,
            "results": results,
            "max_count": top_k,
            "generate_answer": mode == "answer",
            "store": store,
        })


@lru_cache(maxsize=1)
def get_gateway() -> RetrievalGateway:
    return RetrievalGateway(get_backend())


def search_professors(
    query: str,
    institution: str,
    max_count: int = DEFAULT_TOP_K,
    rerank: bool = True,
    generate_answer: bool = False,
) -> Result:
    """Tool entry point: search one institution's saved professor profiles."""
    return get_gateway().search(
        query,
        institution,
        top_k=max_count,
        rerank=rerank,
        mode="answer" if generate_answer else "search",
    )
