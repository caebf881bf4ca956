"""
Ingestion pipeline (LangGraph): resolve institution -> harvest authors -> synthesize profiles -> index.

Responsibility: Run the ingestion path as one call and return a single
envelope. Resolution and harvest failures abort with Err and no partial list.
Indexing failures are logged and reported as a degraded success
(indexed=False): the harvested authors are still returned.
"""

import logging
import threading
from dataclasses import asdict
from functools import lru_cache
from typing import TypedDict

from langgraph.graph import END, StateGraph

from profindex.core.config import HARVEST_PAGE_SIZE, MAX_RETURNED_AUTHORS
from profindex.core.errors import NotFoundError
from profindex.core.events import ProgressEmitter, default_emitter, log_progress
from profindex.core.result import Err, Ok, Result
from profindex.services.harvester import AuthorHarvester, PersonRecord
from profindex.services.identity import CanonicalOrganization, IdentityResolver, institution_key
from profindex.services.openalex_client import get_openalex_client
from profindex.services.profiles import render_profiles, summarize_profiles
from profindex.services.store_manager import StoreManager
from profindex.services.vector_store import get_backend

logger = logging.getLogger(__name__)


class IngestionState(TypedDict, total=False):
    institution_query: str
    per_page: int
    emitter: ProgressEmitter | None
    cancel_event: threading.Event | None
    organization: CanonicalOrganization
    records: tuple[PersonRecord, ...]
    pages_fetched: int
    markdown: str
    indexed: bool
    index_error: str | None


class IngestionPipeline:
    def __init__(
        self,
        resolver: IdentityResolver,
        harvester: AuthorHarvester,
        store_manager: StoreManager,
        max_returned_authors: int = MAX_RETURNED_AUTHORS,
    ) -> None:
        self.resolver = resolver
        self.harvester = harvester
        self.store_manager = store_manager
        self.max_returned_authors = max_returned_authors
        self.graph = self._build_graph()

    def _resolve_institution(self, state: IngestionState) -> dict:
        organization = self.resolver.resolve(state["institution_query"])
        logger.info("[ingestion:resolve_institution] OUT id=%s key=%s", organization.id, organization.key)
        return {"organization": organization}

    def _harvest_authors(self, state: IngestionState) -> dict:
        result = self.harvester.harvest(
            state["organization"],
            per_page=state.get("per_page") or HARVEST_PAGE_SIZE,
            emitter=state.get("emitter"),
            cancel_event=state.get("cancel_event"),
        )
        return {"records": result.records, "pages_fetched": result.pages_fetched}

    def _synthesize_profiles(self, state: IngestionState) -> dict:
        markdown = render_profiles(state["records"])
        logger.info("[ingestion:synthesize_profiles] OUT profiles=%d markdown_len=%d", len(state["records"]), len(markdown))
        return {"markdown": markdown}

    def _index_profiles(self, state: IngestionState) -> dict:
        markdown = state.get("markdown") or ""
        if not markdown:
            return {"indexed": False, "index_error": None}
        key = state["organization"].key
        try:
            self.store_manager.upload_profiles(key, markdown)
        except Exception as e:
            # Fail-open: the harvested list is still a useful result.
            logger.warning("[ingestion:index_profiles] indexing failed key=%s: %s", key, e)
            return {"indexed": False, "index_error": str(e)}
        return {"indexed": True, "index_error": None}

    def _build_graph(self):
        graph = StateGraph(IngestionState)

        graph.add_node("resolve_institution", self._resolve_institution)
        graph.add_node("harvest_authors", self._harvest_authors)
        graph.add_node("synthesize_profiles", self._synthesize_profiles)
        graph.add_node("index_profiles", self._index_profiles)

        graph.set_entry_point("resolve_institution")
        graph.add_edge("resolve_institution", "harvest_authors")
        graph.add_edge("harvest_authors", "synthesize_profiles")
        graph.add_edge("synthesize_profiles", "index_profiles")
        graph.add_edge("index_profiles", END)

        return graph.compile()

    def run(
        self,
        institution_query: str,
        per_page: int = HARVEST_PAGE_SIZE,
        emitter: ProgressEmitter | None = None,
        cancel_event: threading.Event | None = None,
    ) -> Result:
        logger.info("[ingestion:run] START institution_query=%r per_page=%d", institution_query, per_page)
        initial: IngestionState = {
            "institution_query": institution_query,
            "per_page": per_page,
            "emitter": emitter,
            "cancel_event": cancel_event,
        }
        try:
            final = self.graph.invoke(initial)
        except NotFoundError as e:
            return Err(e.message)
        except Exception as e:
            logger.warning("[ingestion:run] failed institution_query=%r: %s", institution_query, e)
            return Err(f"Failed to fetch professors: {e}")

        organization: CanonicalOrganization = final["organization"]
        records = final.get("records") or ()
        data = {
            "institution_query": institution_query,
            "institution_id": organization.id,
            "institution_key": organization.key,
            "store": self.store_manager.store_name(organization.key),
            "count": len(records),
            "pages_fetched": final.get("pages_fetched", 0),
            "authors": [r.to_dict() for r in records[: self.max_returned_authors]],
            "saved_count": len(records),
            "max_returned_authors": self.max_returned_authors,
            "indexed": bool(final.get("indexed")),
        }
        if final.get("index_error"):
            data["index_error"] = final["index_error"]
        logger.info("[ingestion:run] END key=%s count=%d pages=%d indexed=%s", organization.key, len(records), data["pages_fetched"], data["indexed"])
        return Ok(data)

    def saved_profiles(self, institution: str) -> Result:
        """Read an institution's indexed profiles back, most-cited first."""
        key = institution_key(institution)
        try:
            text = self.store_manager.read_profiles(key)
        except Exception as e:
            logger.warning("[ingestion:saved_profiles] key=%s failed: %s", key, e)
            return Err(f"Failed to read saved professors: {e}")
        professors = [asdict(s) for s in summarize_profiles(text)]
        return Ok({
            "institution_key": key,
            "store": self.store_manager.store_name(key),
            "count": len(professors),
            "professors": professors,
        })


@lru_cache(maxsize=1)
def get_pipeline() -> IngestionPipeline:
    client = get_openalex_client()
    return IngestionPipeline(
        resolver=IdentityResolver(client),
        harvester=AuthorHarvester(client),
        store_manager=StoreManager(get_backend()),
    )


def ingest_institution(
    institution_query: str,
    per_page: int = HARVEST_PAGE_SIZE,
    emitter: ProgressEmitter | None = None,
    cancel_event: threading.Event | None = None,
) -> Result:
    """Tool entry point: harvest an institution's professors and index their profiles."""
    if emitter is None:
        return get_pipeline().run(
            institution_query, per_page=per_page, emitter=default_emitter(), cancel_event=cancel_event
        )
    detach = emitter.subscribe(log_progress)
    try:
        return get_pipeline().run(institution_query, per_page=per_page, emitter=emitter, cancel_event=cancel_event)
    finally:
        detach()


def saved_professors(institution: str) -> Result:
    return get_pipeline().saved_profiles(institution)
