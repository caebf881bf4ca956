"""
Unit tests for the query guard. No external services.
"""

import pytest

from profindex.core.errors import QueryTooBroadError
from profindex.services.query_guard import count_or_clauses, validate_query


def test_query_at_length_limit_passes() -> None:
    q = "a" * 240
    assert validate_query(q) == q


def test_query_over_length_limit_is_rejected() -> None:
    with pytest.raises(QueryTooBroadError) as exc:
        validate_query("a" * 241)
    assert "too broad" in exc.value.message


def test_four_or_clauses_pass_five_fail() -> None:
    assert validate_query("a OR b OR c OR d OR e")
    with pytest.raises(QueryTooBroadError):
        validate_query("a OR b OR c OR d OR e OR f")


def test_or_counting_is_case_insensitive_and_whole_word() -> None:
    assert count_or_clauses("x or y Or z OR w") == 3
    assert count_or_clauses("ORACLE and ORCID for doctors") == 0


def test_focused_query_passes_unchanged() -> None:
    assert validate_query("graph neural networks for drug discovery") == "graph neural networks for drug discovery"
