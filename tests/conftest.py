"""
Shared fakes: an in-memory OpenAlex client and an in-memory store backend.

Neither touches the network, so the tests do not require OpenAlex, Milvus or HF API.
"""

from typing import Any

import pytest

from profindex.core.errors import StoreNotFoundError, UpstreamError


def make_author(n: int, institution_id: str = "https://openalex.org/I12345", **overrides: Any) -> dict[str, Any]:
    author = {
        "id": f"https://openalex.org/A{n}",
        "display_name": f"Author {n}",
        "orcid": f"https://orcid.org/0000-0000-0000-{n:04d}",
        "works_count": 10 + n,
        "cited_by_count": 100 + n,
        "summary_stats": {"h_index": 5, "2yr_mean_citedness": 6.5},
        "last_known_institutions": [{"id": institution_id, "display_name": "Test University"}],
        "topics": [],
        "counts_by_year": [],
        "works_api_url": f"https://api.openalex.org/works?filter=author.id:A{n}",
    }
    author.update(overrides)
    return author


class FakeOpenAlexClient:
    """Serves canned author pages in order; records every call."""

    def __init__(
        self,
        pages: list[dict[str, Any]] | None = None,
        institutions: list[dict[str, Any]] | None = None,
        authors: list[dict[str, Any]] | None = None,
        fail_on_page: int | None = None,
        endless: bool = False,
    ) -> None:
        self.pages = pages or []
        self.institutions = institutions or []
        self.authors = authors or []
        self.fail_on_page = fail_on_page
        self.endless = endless
        self.calls: list[tuple[str, tuple, dict]] = []

    def _page_calls(self) -> int:
        return sum(1 for name, _, _ in self.calls if name == "list_authors")

    def list_authors(self, filter_expr: str, cursor: str, per_page: int, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("list_authors", (filter_expr,), {"cursor": cursor, "per_page": per_page}))
        n = self._page_calls()
        if self.fail_on_page is not None and n == self.fail_on_page:
            raise UpstreamError("OpenAlex request failed (500): boom", status_code=500)
        if self.endless:
            return {"results": [make_author(n)], "meta": {"next_cursor": f"c{n}"}}
        return self.pages[n - 1]

    def search_institutions(self, query: str, per_page: int = 20) -> dict[str, Any]:
        self.calls.append(("search_institutions", (query,), {"per_page": per_page}))
        return {"results": self.institutions[:per_page]}

    def search_authors(self, query: str, per_page: int = 20) -> dict[str, Any]:
        self.calls.append(("search_authors", (query,), {"per_page": per_page}))
        return {"results": self.authors[:per_page]}

    def get_institution(self, institution_id: str) -> dict[str, Any]:
        self.calls.append(("get_institution", (institution_id,), {}))
        return self.institutions[0]


class FakeBackend:
    """In-memory named stores with the same contract as the Milvus backend."""

    def __init__(self) -> None:
        self.stores: dict[str, dict[str, list[str]]] = {}
        self.calls: list[tuple[str, tuple, dict]] = []
        self.retrieve_error: Exception | None = None
        self.upload_error: Exception | None = None
        self.search_error: Exception | None = None

    def retrieve_store(self, store: str) -> dict[str, Any]:
        self.calls.append(("retrieve_store", (store,), {}))
        if self.retrieve_error is not None:
            raise self.retrieve_error
        if store not in self.stores:
            raise StoreNotFoundError(store)
        return {"name": store, "file_count": len(self.stores[store])}

    def create_store(self, store: str, description: str = "") -> dict[str, Any]:
        self.calls.append(("create_store", (store,), {"description": description}))
        self.stores[store] = {}
        return {"name": store, "file_count": 0}

    def upload_file(self, store: str, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("upload_file", (store,), kwargs))
        if self.upload_error is not None:
            raise self.upload_error
        if store not in self.stores:
            raise StoreNotFoundError(store)
        self.stores[store][kwargs["external_id"]] = list(kwargs["chunks"])
        return {"store": store, "external_id": kwargs["external_id"], "chunks": len(kwargs["chunks"])}

    def read_file(self, store: str, external_id: str) -> list[str]:
        self.calls.append(("read_file", (store, external_id), {}))
        if store not in self.stores:
            raise StoreNotFoundError(store)
        return list(self.stores[store].get(external_id, []))

    def search(self, store_identifiers: list[str], query: str, top_k: int, rerank: bool = True) -> dict[str, Any]:
        self.calls.append(("search", (store_identifiers, query, top_k), {"rerank": rerank}))
        if self.search_error is not None:
            raise self.search_error
        return {"object": "list", "data": [{"text": "hit", "score": 0.9, "store": store_identifiers[0]}]}

    def question_answering(
        self, store_identifiers: list[str], query: str, top_k: int, rerank: bool = True
    ) -> dict[str, Any]:
        self.calls.append(("question_answering", (store_identifiers, query, top_k), {"rerank": rerank}))
        if self.search_error is not None:
            raise self.search_error
        return {"answer": "An answer.", "sources": []}

    def called(self, name: str) -> list[tuple[tuple, dict]]:
        return [(args, kwargs) for n, args, kwargs in self.calls if n == name]


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()
