"""
Indexing backend: named stores on Milvus, embeddings and rerank via Hugging Face Inference API.

Responsibility: Store lifecycle (retrieve/create), file upload with overwrite,
scoped multi-store semantic search and question answering. Each logical store
name maps to one Milvus collection; Milvus only allows [A-Za-z0-9_] in
collection names, so other characters are replaced.
"""

import json
import logging
import re
from functools import lru_cache
from typing import Any, Callable

import httpx

from profindex.agent.llm import generate_answer
from profindex.core.config import (
    EMBED_API_TIMEOUT,
    EMBED_BATCH_SIZE,
    HF_API_KEY,
    HF_EMBED_MODEL,
    HF_RERANK_MODEL,
    MILVUS_TOKEN,
    MILVUS_URI,
    RERANK_API_TIMEOUT,
    SEARCH_CANDIDATES,
    VECTOR_DIM,
)
from profindex.core.errors import ProviderMisconfiguredError, StoreNotFoundError, UpstreamError

logger = logging.getLogger(__name__)

HF_EMBED_URL = (
    "https://router.huggingface.co/hf-inference/models/"
    f"{HF_EMBED_MODEL}/pipeline/feature-extraction"
)
# Use router (api-inference.huggingface.co returns 410 Gone)
HF_RERANK_URL = f"https://router.huggingface.co/hf-inference/models/{HF_RERANK_MODEL}"

OUTPUT_FIELDS = ["text", "filename", "external_id", "chunk_index"]
QUERY_LIMIT = 16_384


def collection_name_for(store: str) -> str:
    """Physical Milvus collection for a logical store name ("professors-I123" -> "professors_I123")."""
    name = re.sub(r"[^A-Za-z0-9_]", "_", store.strip())
    if not name or name[0].isdigit():
        name = f"_{name}"
    return name


def _hf_headers() -> dict[str, str]:
    if not HF_API_KEY:
        raise ProviderMisconfiguredError(
            "HF_API_KEY must be set in .env. Get a token from https://huggingface.co/settings/tokens"
        )
    return {"Authorization": f"Bearer {HF_API_KEY}", "Content-Type": "application/json"}


def embed_texts(texts: list[str], batch_size: int | None = None) -> list[list[float]]:
    """
    Batch embed texts using Hugging Face Inference API (all-MiniLM-L6-v2).

    Returns one 384-dim vector per text, normalized for cosine similarity.
    """
    batch_size = batch_size if batch_size is not None else EMBED_BATCH_SIZE
    if not texts:
        return []
    headers = _hf_headers()
    all_embeddings: list[list[float]] = []

    with httpx.Client(timeout=EMBED_API_TIMEOUT) as client:
        for i in range(0, len(texts), batch_size):
            batch = texts[i : i + batch_size]
            payload = {"inputs": batch, "options": {"wait_for_model": True}}
            try:
                response = client.post(HF_EMBED_URL, json=payload, headers=headers)
            except httpx.HTTPError as e:
                raise UpstreamError(f"HF embedding request failed: {e}") from e
            if response.status_code == 401:
                raise ProviderMisconfiguredError(
                    "Invalid HF API key. Check HF_API_KEY at https://huggingface.co/settings/tokens"
                )
            if response.status_code != 200:
                raise UpstreamError(
                    f"HF embedding API error ({response.status_code}): {response.text[:200]}",
                    status_code=response.status_code,
                )
            result = response.json()
            if isinstance(result, list) and result and isinstance(result[0], list):
                batch_emb = result
            else:
                batch_emb = [result]

            for vec in batch_emb:
                norm = sum(x * x for x in vec) ** 0.5 or 1.0
                all_embeddings.append([x / norm for x in vec])

    logger.info("[vector_store:embed_texts] OUT vectors=%d", len(all_embeddings))
    return all_embeddings


def _to_score(item: Any) -> float:
    if isinstance(item, (int, float)):
        return float(item)
    if isinstance(item, list) and item and isinstance(item[0], (int, float)):
        return float(item[0])
    if isinstance(item, dict):
        return float(item.get("score", 0))
    return 0.0


def rerank_hits(query: str, hits: list[dict], top_k: int) -> list[dict]:
    """
    Rerank hits with the HF cross-encoder (BAAI/bge-reranker-base).

    Falls back to vector order when the reranker is unavailable or answers oddly.
    """
    if not hits or not query or not HF_API_KEY:
        return hits[:top_k]
    inputs = [{"text": query, "text_pair": h.get("text") or ""} for h in hits]
    payload = {"inputs": inputs, "options": {"wait_for_model": True}}
    try:
        with httpx.Client(timeout=RERANK_API_TIMEOUT) as client:
            response = client.post(HF_RERANK_URL, json=payload, headers=_hf_headers())
        if response.status_code != 200:
            logger.warning("[vector_store:rerank_hits] reranker error %s: %s", response.status_code, response.text[:200])
            return hits[:top_k]
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("[vector_store:rerank_hits] request failed: %s", e)
        return hits[:top_k]

    # Router sometimes returns [[s1, s2, ...]]: one element holding every score
    if isinstance(data, list) and len(data) == 1 and isinstance(data[0], list) and len(hits) > 1:
        data = data[0]
    if isinstance(data, dict) and "scores" in data:
        data = data["scores"]
    if not isinstance(data, list) or len(data) != len(hits):
        return hits[:top_k]

    scored = sorted(
        ({**hit, "rerank_score": _to_score(s)} for hit, s in zip(hits, data)),
        key=lambda h: -h["rerank_score"],
    )
    logger.info("[vector_store:rerank_hits] OUT reranked=%d", min(top_k, len(scored)))
    return scored[:top_k]


def get_milvus_client() -> Any:
    """Connect to Milvus. MILVUS_TOKEN is optional (local Milvus / Milvus Lite)."""
    if not MILVUS_URI:
        raise ProviderMisconfiguredError("MILVUS_URI must be set in .env")

    from pymilvus import MilvusClient

    client = MilvusClient(uri=MILVUS_URI, token=MILVUS_TOKEN) if MILVUS_TOKEN else MilvusClient(uri=MILVUS_URI)
    logger.info("Milvus connection established")
    return client


class MilvusStoreBackend:
    """Named document stores backed by one Milvus collection each."""

    def __init__(
        self,
        client_factory: Callable[[], Any] = get_milvus_client,
        embedder: Callable[[list[str]], list[list[float]]] = embed_texts,
        reranker: Callable[[str, list[dict], int], list[dict]] = rerank_hits,
        answerer: Callable[[str, list[dict]], str] = generate_answer,
        dimension: int = VECTOR_DIM,
    ) -> None:
        self._client_factory = client_factory
        self._client: Any = None
        self.embedder = embedder
        self.reranker = reranker
        self.answerer = answerer
        self.dimension = dimension

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    def _require(self, store: str) -> str:
        collection = collection_name_for(store)
        if not self.client.has_collection(collection):
            raise StoreNotFoundError(store)
        return collection

    def retrieve_store(self, store: str) -> dict[str, Any]:
        """Store metadata. Raises StoreNotFoundError when the store does not exist."""
        collection = self._require(store)
        stats = self.client.get_collection_stats(collection_name=collection) or {}
        rows = self.client.query(
            collection_name=collection,
            filter="",
            limit=QUERY_LIMIT,
            output_fields=["external_id", "filename"],
        )
        files: dict[str, dict[str, Any]] = {}
        for r in rows:
            ext = r.get("external_id") or ""
            entry = files.setdefault(ext, {"external_id": ext, "filename": r.get("filename") or "", "chunks": 0})
            entry["chunks"] += 1
        return {
            "name": store,
            "collection": collection,
            "row_count": int(stats.get("row_count", len(rows))),
            "file_count": len(files),
            "files": sorted(files.values(), key=lambda f: f["external_id"]),
        }

    def create_store(self, store: str, description: str = "") -> dict[str, Any]:
        collection = collection_name_for(store)
        self.client.create_collection(
            collection_name=collection,
            dimension=self.dimension,
            primary_field_name="id",
            vector_field_name="vector",
            metric_type="COSINE",
            auto_id=True,
        )
        logger.info("[vector_store:create_store] created store=%s collection=%s (%s)", store, collection, description)
        return {"name": store, "collection": collection, "row_count": 0, "file_count": 0, "files": []}

    def upload_file(
        self,
        store: str,
        *,
        filename: str,
        chunks: list[str],
        external_id: str,
        overwrite: bool = True,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Index one logical file as embedded chunks. With overwrite, rows previously
        uploaded under the same external_id are replaced. Embedding happens before
        any delete, so a failed embed leaves the previous rows in place.
        """
        collection = self._require(store)
        id_filter = f"external_id == {json.dumps(external_id)}"
        rows: list[dict[str, Any]] = []
        if chunks:
            vectors = self.embedder(chunks)
            rows = [
                {
                    "vector": vec,
                    "text": text,
                    "filename": filename,
                    "external_id": external_id,
                    "chunk_index": i,
                    "metadata": metadata or {},
                }
                for i, (text, vec) in enumerate(zip(chunks, vectors))
            ]
        if overwrite:
            self.client.delete(collection_name=collection, filter=id_filter)
        if rows:
            self.client.insert(collection_name=collection, data=rows)
        self.client.flush(collection_name=collection)
        logger.info("[vector_store:upload_file] store=%s external_id=%s chunks=%d overwrite=%s", store, external_id, len(chunks), overwrite)
        return {"store": store, "external_id": external_id, "filename": filename, "chunks": len(chunks)}

    def read_file(self, store: str, external_id: str) -> list[str]:
        """Chunks of one uploaded file, in upload order."""
        collection = self._require(store)
        rows = self.client.query(
            collection_name=collection,
            filter=f"external_id == {json.dumps(external_id)}",
            limit=QUERY_LIMIT,
            output_fields=["text", "chunk_index"],
        )
        rows = sorted(rows, key=lambda r: r.get("chunk_index", 0))
        return [r.get("text") or "" for r in rows]

    def search(
        self, store_identifiers: list[str], query: str, top_k: int, rerank: bool = True
    ) -> dict[str, Any]:
        """Semantic search across the given stores; hits sorted by score, best first."""
        collections = [(s, self._require(s)) for s in store_identifiers]
        query_vec = self.embedder([query])
        if not query_vec:
            return {"object": "list", "data": []}
        limit = max(top_k, SEARCH_CANDIDATES) if rerank else top_k
        hits: list[dict[str, Any]] = []
        for store, collection in collections:
            results = self.client.search(
                collection_name=collection,
                data=query_vec,
                limit=limit,
                output_fields=OUTPUT_FIELDS,
            )
            for h in results[0] if results else []:
                entity = h.get("entity") or h
                hits.append({
                    "id": h.get("id", entity.get("id")),
                    "score": float(h.get("distance", h.get("score", 0.0))),
                    "text": entity.get("text", ""),
                    "filename": entity.get("filename", ""),
                    "external_id": entity.get("external_id", ""),
                    "chunk_index": entity.get("chunk_index", 0),
                    "store": store,
                })
        hits.sort(key=lambda h: -h["score"])
        data = self.reranker(query, hits, top_k) if rerank else hits[:top_k]
        logger.info("[vector_store:search] OUT stores=%s hits=%d returned=%d rerank=%s", store_identifiers, len(hits), len(data), rerank)
        return {"object": "list", "data": data}

    def question_answering(
        self, store_identifiers: list[str], query: str, top_k: int, rerank: bool = True
    ) -> dict[str, Any]:
        """Search, then answer from the retrieved chunks with the LLM."""
        sources = self.search(store_identifiers, query, top_k, rerank=rerank)["data"]
        answer = self.answerer(query, sources) if sources else ""
        return {"answer": answer, "sources": sources}


@lru_cache(maxsize=1)
def get_backend() -> MilvusStoreBackend:
    """Process-wide backend built from config; the Milvus connection opens on first use."""
    return MilvusStoreBackend()
