"""
Unit tests for the retrieval gateway and status probe (in-memory backend).
"""

from profindex.core.errors import UpstreamError
from profindex.core.result import Err, Ok
from profindex.services.retrieval_service import RetrievalGateway
from profindex.services.status_service import StatusProbe
from profindex.services.store_manager import StoreManager


def test_broad_query_rejected_before_backend(backend) -> None:
    result = RetrievalGateway(backend, base_name="store").search("x" * 300, "I12345")
    assert isinstance(result, Err)
    assert "too broad" in result.error
    assert backend.calls == []


def test_many_or_clauses_rejected(backend) -> None:
    result = RetrievalGateway(backend, base_name="store").search("a OR b OR c OR d OR e OR f", "I12345")
    assert result.envelope()["success"] is False
    assert backend.calls == []


def test_search_targets_institution_store(backend) -> None:
    result = RetrievalGateway(backend, base_name="store").search("robotics", "I12345", top_k=3, rerank=False)
    assert isinstance(result, Ok)
    assert backend.called("search") == [((["store-I12345"], "robotics", 3), {"rerank": False})]
    env = result.envelope()
    assert env["success"] is True
    assert env["store"] == "store-I12345"
    assert env["generate_answer"] is False
    assert env["results"]["data"][0]["store"] == "store-I12345"


def test_answer_mode_uses_question_answering(backend) -> None:
    result = RetrievalGateway(backend, base_name="store").search("who works on NLP?", "I1", mode="answer")
    assert result.envelope()["results"] == {"answer": "An answer.", "sources": []}
    assert backend.called("search") == []
    assert len(backend.called("question_answering")) == 1


def test_url_institution_reduced_to_key(backend) -> None:
    RetrievalGateway(backend, base_name="store").search("robotics", "https://openalex.org/I12345")
    assert backend.called("search")[0][0][0] == ["store-I12345"]


def test_ingestion_and_retrieval_share_store_name(backend) -> None:
    manager = StoreManager(backend, base_name="store")
    gateway = RetrievalGateway(backend, base_name="store")
    manager.upload_profiles("I12345", "# A")
    gateway.search("anything", "I12345")
    uploaded_to = backend.called("upload_file")[0][0][0]
    searched = backend.called("search")[0][0][0]
    assert searched == [uploaded_to] == ["store-I12345"]


def test_backend_failure_becomes_err(backend) -> None:
    backend.search_error = UpstreamError("backend down")
    result = RetrievalGateway(backend, base_name="store").search("robotics", "I1")
    assert result.envelope() == {"success": False, "error": "Search failed: backend down"}


def test_status_for_institution_and_base(backend) -> None:
    backend.create_store("store-I1")
    probe = StatusProbe(backend, base_name="store")
    env = probe.status("I1").envelope()
    assert env["success"] is True
    assert env["status"] == "store is accessible"
    assert env["store"] == "store-I1"
    missing = probe.status().envelope()
    assert missing == {"success": False, "error": "Status check failed: Store not found: store"}


def test_malformed_query_becomes_err(backend) -> None:
    result = RetrievalGateway(backend, base_name="store").search(None, "I1")
    assert isinstance(result, Err)
    assert result.error.startswith("Search failed:")
    assert backend.calls == []


def test_malformed_status_key_becomes_err(backend) -> None:
    result = StatusProbe(backend, base_name="store").status(12345)
    assert isinstance(result, Err)
    assert result.error.startswith("Status check failed:")
    assert backend.calls == []
